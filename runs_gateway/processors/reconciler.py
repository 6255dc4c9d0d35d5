"""
Reconciliation of extracted run details with stored run records.

Decides create vs update by run number, merges with the stored attributes,
derives the title, persists, publishes, and reports what changed.
"""

from typing import Any, Mapping

from runs_gateway.core.exceptions import (
    DuplicateRunNumber,
    FailureKind,
    ReconciliationError,
)
from runs_gateway.core.logging import get_logger
from runs_gateway.core.models import (
    ATTRIBUTE_FIELDS,
    DEFAULT_TITLE,
    Action,
    ExtractedFields,
    ReconciliationOutcome,
    RunRecord,
)
from runs_gateway.core.sanitize import sanitize_text
from runs_gateway.services.repository import RunRepository

log = get_logger(__name__)


def build_title(view: Mapping[str, Any], fallback: str | None = None) -> str:
    """
    Derive a run title.

    "Hares - Location", then hares, then location, then "Run #N", then the
    fallback (usually the title the extraction suggested), then "Hash Run".
    """
    hares = sanitize_text(view.get("hares"))
    location = sanitize_text(view.get("location"))
    run_number = view.get("run_number")

    if hares and location:
        return f"{hares} - {location}"
    if hares:
        return hares
    if location:
        return location
    if run_number:
        return f"Run #{int(run_number)}"
    return sanitize_text(fallback) or DEFAULT_TITLE


def _same(previous: Any, new: Any) -> bool:
    """Compare stored and incoming values in their text form."""
    def as_text(value: Any) -> str:
        return "" if value is None else str(value).strip()

    return as_text(previous) == as_text(new)


class Reconciler:
    """Applies ExtractedFields to the run repository."""

    def __init__(self, repository: RunRepository):
        self.repository = repository

    def apply(self, fields: ExtractedFields, sender: str | None = None) -> ReconciliationOutcome:
        """
        Create or update the run described by fields.

        Args:
            fields: Extracted or imported run details
            sender: Address the details came from, for the log

        Returns:
            ReconciliationOutcome with the written attributes and the
            field-level diff against what was stored before

        Raises:
            ReconciliationError: no existing run and no date to create one
        """
        existing = None
        if fields.run_number:
            existing = self.repository.find_by_run_number(fields.run_number)

        if existing is None and not fields.run_date:
            raise ReconciliationError(
                FailureKind.MISSING_DATE,
                "No date found in parsed data.",
            )

        written = fields.sanitized()

        if existing is not None:
            return self._update(existing, fields, written, sender)

        try:
            return self._create(fields, written, sender)
        except DuplicateRunNumber:
            # Another message created this run number first
            existing = self.repository.find_by_run_number(fields.run_number)
            if existing is None:
                raise
            log.warning("run_number_race_resolved", run_number=fields.run_number)
            return self._update(existing, fields, written, sender)

    def _create(
        self,
        fields: ExtractedFields,
        written: dict[str, Any],
        sender: str | None,
    ) -> ReconciliationOutcome:
        title = build_title(written, fallback=fields.title)
        record = self.repository.create(title, written)
        self.repository.publish(record.id)

        log.info(
            "run_created",
            record_id=record.id,
            run_number=record.run_number,
            title=title,
            sender=sender,
        )
        return ReconciliationOutcome(
            action=Action.CREATED,
            record_id=record.id,
            title=title,
            run_number=written.get("run_number"),
            written=written,
            changed={key: (None, value) for key, value in written.items()},
            permalink=self.repository.permalink(record.id),
        )

    def _update(
        self,
        existing: RunRecord,
        fields: ExtractedFields,
        written: dict[str, Any],
        sender: str | None,
    ) -> ReconciliationOutcome:
        stored = existing.attributes
        merged = {
            key: written[key] if written.get(key) not in (None, "") else stored.get(key)
            for key in ATTRIBUTE_FIELDS
        }
        merged = {key: value for key, value in merged.items() if value not in (None, "")}
        title = build_title(merged, fallback=fields.title or existing.title)

        changed = {
            key: (stored.get(key), value)
            for key, value in written.items()
            if not _same(stored.get(key), value)
        }

        self.repository.update(existing.id, title, written)
        self.repository.publish(existing.id)

        log.info(
            "run_updated",
            record_id=existing.id,
            run_number=existing.run_number,
            title=title,
            changed=sorted(changed),
            sender=sender,
        )
        return ReconciliationOutcome(
            action=Action.UPDATED,
            record_id=existing.id,
            title=title,
            run_number=existing.run_number,
            written=written,
            changed=changed,
            permalink=self.repository.permalink(existing.id),
        )
