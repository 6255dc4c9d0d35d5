"""
CSV bulk import and export of run records.

Import feeds every row through the Reconciler and classifies the result as
created, updated or unchanged. Export is the inverse and re-imports as
all-unchanged for runs that have a run number.
"""

import csv
import io

from runs_gateway.core.exceptions import GatewayError, ImportFailure
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import (
    Action,
    ExtractedFields,
    ImportSummary,
    InboundAttachment,
    RunRecord,
)
from runs_gateway.core.payload import decode_attachment_content
from runs_gateway.processors.reconciler import Reconciler
from runs_gateway.services.repository import RunRepository

log = get_logger(__name__)

CSV_COLUMNS = (
    "run_number",
    "title",
    "run_date",
    "start_time",
    "hares",
    "location",
    "what3words",
    "maps_url",
    "oninn",
    "notes",
)


def read_csv_attachment(attachments: list[InboundAttachment]) -> str:
    """
    Find the CSV among the message attachments and decode it.

    Raises:
        ImportFailure: nothing attached, or no attachment resembles a CSV
    """
    if not attachments:
        raise ImportFailure("No CSV file attached. Please attach a CSV file and resend.")

    content = ""
    for attachment in attachments:
        if attachment.looks_like_csv:
            content = decode_attachment_content(attachment.content)
            break

    if not content.strip():
        log.warning("csv_attachment_missing", attachments=len(attachments))
        raise ImportFailure("No CSV file found in attachments. Please attach a .csv file.")
    return content


class CsvImporter:
    """Imports run rows from CSV text."""

    def __init__(self, reconciler: Reconciler):
        self.reconciler = reconciler

    def run(self, raw_text: str, sender: str | None = None) -> ImportSummary:
        """
        Import every data row of a CSV.

        Row numbers in errors are 1-based and count the header as row 1. A row
        that fails, for any reason, is reported and the import carries on.

        Raises:
            ImportFailure: no data rows, or no recognised header columns
        """
        text = raw_text.lstrip("\ufeff")
        rows = [
            row for row in csv.reader(io.StringIO(text, newline=""))
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            raise ImportFailure("CSV file is empty or has no data rows.")

        header = [cell.strip().lower() for cell in rows[0]]
        indices = {column: header.index(column) for column in CSV_COLUMNS if column in header}
        if not indices:
            raise ImportFailure(
                "CSV header not recognised. Expected columns: " + ", ".join(CSV_COLUMNS)
            )

        summary = ImportSummary()
        for row_number, row in enumerate(rows[1:], start=2):
            values = {
                column: row[index].strip()
                for column, index in indices.items()
                if index < len(row) and row[index].strip()
            }
            fields = ExtractedFields.from_dict(values)

            if not fields.run_date and not fields.run_number:
                summary.errors.append(f"Row {row_number}: no date or run number")
                continue

            try:
                outcome = self.reconciler.apply(fields, sender)
            except GatewayError as e:
                summary.errors.append(f"Row {row_number}: {e.message}")
                continue
            except Exception as e:
                log.exception("csv_row_failed", row=row_number, error=str(e))
                summary.errors.append(f"Row {row_number}: could not be saved")
                continue

            if outcome.action == Action.CREATED:
                summary.created.append(outcome)
            elif outcome.changed:
                summary.updated.append(outcome)
            else:
                summary.unchanged += 1

        log.info(
            "csv_import_complete",
            created=len(summary.created),
            updated=len(summary.updated),
            unchanged=summary.unchanged,
            errors=len(summary.errors),
        )
        return summary


def export_csv(repository: RunRepository) -> tuple[int, str]:
    """
    Serialize every run record, ordered by run date.

    Returns:
        (number of runs, CSV text with header row)
    """
    records = repository.list_by_run_date()

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for record in records:
        writer.writerow([_cell(record, column) for column in CSV_COLUMNS])

    log.info("csv_export_built", runs=len(records))
    return len(records), buffer.getvalue()


def _cell(record: RunRecord, column: str) -> str:
    if column == "title":
        return record.title
    if column == "run_number":
        return str(record.run_number) if record.run_number else ""
    value = record.attributes.get(column)
    return "" if value is None else str(value)
