"""
Database access for run storage.

Provides PostgreSQL connections, schema setup and the gateway settings
key/value table.
"""

from contextlib import contextmanager
from typing import Generator

import psycopg
from psycopg.rows import dict_row

from runs_gateway.config import SettingsStore, settings
from runs_gateway.core.logging import get_logger

log = get_logger(__name__)


class Database(SettingsStore):
    """PostgreSQL database operations for run storage."""

    def __init__(self, connection_string: str | None = None):
        """
        Initialize database connection.

        Args:
            connection_string: PostgreSQL connection URL. Uses settings if not provided.
        """
        self.connection_string = connection_string or settings.database_url

    @contextmanager
    def get_connection(self) -> Generator[psycopg.Connection, None, None]:
        """Get a database connection as a context manager."""
        conn = psycopg.connect(self.connection_string, row_factory=dict_row)
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Initialize database schema (create tables if not exist)."""
        schema_sql = """
        -- run_records: One row per hash run
        CREATE TABLE IF NOT EXISTS run_records (
            id SERIAL PRIMARY KEY,
            run_number BIGINT,
            title TEXT NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'publish',
            attributes JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );

        -- At most one record per run number; numberless runs are never merged
        CREATE UNIQUE INDEX IF NOT EXISTS idx_run_records_run_number
            ON run_records(run_number) WHERE run_number IS NOT NULL;
        CREATE INDEX IF NOT EXISTS idx_run_records_run_date
            ON run_records((attributes->>'run_date'));

        -- gateway_settings: Operator-editable configuration
        CREATE TABLE IF NOT EXISTS gateway_settings (
            key VARCHAR(100) PRIMARY KEY,
            value TEXT NOT NULL DEFAULT '',
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );
        """

        with self.get_connection() as conn:
            conn.execute(schema_sql)
            conn.commit()
            log.info("database_schema_initialized")

    # Gateway settings

    def get_all(self) -> dict[str, str]:
        with self.get_connection() as conn:
            rows = conn.execute("SELECT key, value FROM gateway_settings").fetchall()
            return {row["key"]: row["value"] for row in rows}

    def set(self, key: str, value: str) -> None:
        sql = """
        INSERT INTO gateway_settings (key, value, updated_at)
        VALUES (%s, %s, NOW())
        ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
        """
        with self.get_connection() as conn:
            conn.execute(sql, (key, value))
            conn.commit()
        log.info("gateway_setting_saved", key=key)
