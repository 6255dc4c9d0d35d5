"""
Run record repository.

The reconciler only talks to RunRepository; PostgresRunRepository is the
production backend.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import psycopg
from psycopg.types.json import Jsonb

from runs_gateway.config import settings
from runs_gateway.core.database import Database
from runs_gateway.core.exceptions import DuplicateRunNumber
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import RunRecord, Visibility

log = get_logger(__name__)


def default_visibility(run_date: Any, today: date | None = None) -> Visibility:
    """
    Storage default: runs dated in the future are scheduled, not published.

    Unparseable dates are treated as published.
    """
    today = today or date.today()
    try:
        when = date.fromisoformat(str(run_date))
    except (TypeError, ValueError):
        return Visibility.PUBLISHED
    return Visibility.SCHEDULED if when > today else Visibility.PUBLISHED


class RunRepository(ABC):
    """Storage interface for run records."""

    def __init__(self, site_url: str | None = None):
        self.site_url = (site_url or settings.site_url).rstrip("/")

    @abstractmethod
    def find_by_run_number(self, run_number: int) -> RunRecord | None:
        """Find a record by run number, whatever its visibility."""
        pass

    @abstractmethod
    def create(self, title: str, attributes: dict[str, Any]) -> RunRecord:
        """
        Create a record.

        Raises:
            DuplicateRunNumber: a record with attributes["run_number"] exists
        """
        pass

    @abstractmethod
    def update(self, record_id: int, title: str, attributes: dict[str, Any]) -> RunRecord:
        """Set the title and merge attributes into the stored ones."""
        pass

    @abstractmethod
    def publish(self, record_id: int) -> None:
        """Make a record visible regardless of its date."""
        pass

    @abstractmethod
    def list_by_run_date(self) -> list[RunRecord]:
        """All records, ordered by run date ascending."""
        pass

    def permalink(self, record_id: int) -> str:
        return f"{self.site_url}/?p={record_id}"


class PostgresRunRepository(RunRepository):
    """Run records stored in PostgreSQL."""

    def __init__(self, db: Database | None = None, site_url: str | None = None):
        super().__init__(site_url)
        self.db = db or Database()

    def find_by_run_number(self, run_number: int) -> RunRecord | None:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM run_records WHERE run_number = %s LIMIT 1",
                (run_number,),
            ).fetchone()
            return self._row_to_record(row) if row else None

    def create(self, title: str, attributes: dict[str, Any]) -> RunRecord:
        sql = """
        INSERT INTO run_records (run_number, title, status, attributes)
        VALUES (%(run_number)s, %(title)s, %(status)s, %(attributes)s)
        RETURNING *
        """
        params = {
            "run_number": attributes.get("run_number"),
            "title": title,
            "status": default_visibility(attributes.get("run_date")).value,
            "attributes": Jsonb(attributes),
        }

        with self.db.get_connection() as conn:
            try:
                row = conn.execute(sql, params).fetchone()
                conn.commit()
            except psycopg.errors.UniqueViolation:
                conn.rollback()
                raise DuplicateRunNumber(attributes["run_number"])

        record = self._row_to_record(row)
        log.info("run_record_inserted", record_id=record.id, run_number=record.run_number)
        return record

    def update(self, record_id: int, title: str, attributes: dict[str, Any]) -> RunRecord:
        with self.db.get_connection() as conn:
            current = conn.execute(
                "SELECT attributes FROM run_records WHERE id = %s FOR UPDATE",
                (record_id,),
            ).fetchone()
            if not current:
                raise RuntimeError(f"Run record {record_id} not found")

            merged = {**(current["attributes"] or {}), **attributes}
            row = conn.execute(
                """
                UPDATE run_records
                SET title = %(title)s,
                    run_number = COALESCE(%(run_number)s, run_number),
                    status = %(status)s,
                    attributes = %(attributes)s,
                    updated_at = NOW()
                WHERE id = %(id)s
                RETURNING *
                """,
                {
                    "id": record_id,
                    "title": title,
                    "run_number": attributes.get("run_number"),
                    "status": default_visibility(merged.get("run_date")).value,
                    "attributes": Jsonb(merged),
                },
            ).fetchone()
            conn.commit()
            return self._row_to_record(row)

    def publish(self, record_id: int) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                "UPDATE run_records SET status = %s WHERE id = %s",
                (Visibility.PUBLISHED.value, record_id),
            )
            conn.commit()

    def list_by_run_date(self) -> list[RunRecord]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM run_records ORDER BY attributes->>'run_date' ASC NULLS FIRST, id ASC"
            ).fetchall()
            return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: dict) -> RunRecord:
        return RunRecord(
            id=row["id"],
            title=row["title"],
            run_number=row["run_number"],
            status=Visibility(row["status"]),
            attributes=row["attributes"] or {},
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
