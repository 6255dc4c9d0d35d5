#!/usr/bin/env python3
"""
Gateway administration CLI.

Usage:
    python -m runs_gateway.manage init-db
    python -m runs_gateway.manage show-config
    python -m runs_gateway.manage set-config authorised_emails "gm@example.com
    hare@example.com"
    python -m runs_gateway.manage export-csv > runs.csv
"""

import argparse
import sys

from runs_gateway.config import GatewayConfig, SettingsStore, ensure_webhook_secret, settings
from runs_gateway.core.database import Database
from runs_gateway.core.logging import configure_logging
from runs_gateway.processors.csv_bulk import export_csv
from runs_gateway.services.repository import PostgresRunRepository

SECRET_KEYS = {"anthropic_api_key", "webhook_secret", "smtp_password"}


def mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "*" * max(len(value) - 4, 4)


def show_config(store: SettingsStore) -> None:
    config = GatewayConfig.load(store)
    for key, value in config.model_dump().items():
        shown = mask(str(value)) if key in SECRET_KEYS else value
        if key == "authorised_emails":
            shown = ", ".join(sorted(config.authorised_senders)) or "(none)"
        print(f"{key:20} {shown}")


def set_config(store: SettingsStore, key: str, value: str) -> None:
    if key not in GatewayConfig.keys():
        raise SystemExit(f"Unknown setting: {key}. Choose from: {', '.join(GatewayConfig.keys())}")
    store.set(key, value)
    print(f"Saved {key}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Hash run email gateway administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create tables and a webhook secret")
    subparsers.add_parser("show-config", help="Print the gateway settings")
    set_parser = subparsers.add_parser("set-config", help="Store a gateway setting")
    set_parser.add_argument("key")
    set_parser.add_argument("value")
    subparsers.add_parser("export-csv", help="Write every run as CSV to stdout")

    args = parser.parse_args(argv)
    configure_logging(log_level=settings.log_level, json_output=False)

    db = Database()

    if args.command == "init-db":
        db.init_schema()
        secret = ensure_webhook_secret(db)
        print(f"Schema ready. Webhook secret: {mask(secret)}")
    elif args.command == "show-config":
        show_config(db)
    elif args.command == "set-config":
        set_config(db, args.key, args.value)
    elif args.command == "export-csv":
        _, csv_text = export_csv(PostgresRunRepository(db))
        sys.stdout.write(csv_text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
