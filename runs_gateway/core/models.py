"""
Data models for the run gateway.

Uses dataclasses for clean, typed data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from runs_gateway.core.payload import extract_sender_email
from runs_gateway.core.sanitize import (
    coerce_run_number,
    sanitize_field,
    sanitize_text,
    strip_html,
)

# Stored run attributes, in storage order
ATTRIBUTE_FIELDS = (
    "run_number",
    "run_date",
    "start_time",
    "hares",
    "location",
    "what3words",
    "maps_url",
    "oninn",
    "notes",
)

DEFAULT_TITLE = "Hash Run"


class Visibility(str, Enum):
    """Publication state of a run record."""

    PUBLISHED = "publish"
    SCHEDULED = "future"


class Action(str, Enum):
    """What a reconciliation did to the target record."""

    CREATED = "created"
    UPDATED = "updated"


class Command(str, Enum):
    """Inbound message commands, chosen by subject."""

    HELP = "help"
    EXPORT = "export"
    IMPORT = "import"
    RUN_UPDATE = "run_update"

    @classmethod
    def from_subject(cls, subject: str) -> "Command":
        keyword = (subject or "").strip().lower()
        for command in (cls.HELP, cls.EXPORT, cls.IMPORT):
            if keyword == command.value:
                return command
        return cls.RUN_UPDATE


@dataclass
class RunRecord:
    """A persisted hash run."""

    id: int
    title: str
    run_number: int | None = None
    status: Visibility = Visibility.PUBLISHED
    attributes: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def run_date(self) -> str:
        return str(self.attributes.get("run_date") or "")


@dataclass
class ExtractedFields:
    """
    Partial view of run attributes from the extraction service or a CSV row.

    None means "not mentioned". Fields are never cleared by a missing value.
    """

    run_number: int | None = None
    run_date: str | None = None
    start_time: str | None = None
    hares: str | None = None
    location: str | None = None
    what3words: str | None = None
    maps_url: str | None = None
    oninn: str | None = None
    notes: str | None = None
    title: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractedFields":
        """Create ExtractedFields from extraction JSON or a CSV row dict."""
        values: dict[str, Any] = {}
        for key in (*ATTRIBUTE_FIELDS, "title"):
            raw = data.get(key)
            if raw is None:
                continue
            if key == "run_number":
                number = coerce_run_number(raw)
                if number and number > 0:
                    values[key] = number
                continue
            text = str(raw).strip()
            if text:
                values[key] = text
        return cls(**values)

    def present(self) -> dict[str, Any]:
        """Attributes that were supplied, in storage order."""
        return {
            key: getattr(self, key)
            for key in ATTRIBUTE_FIELDS
            if getattr(self, key) not in (None, "")
        }

    def sanitized(self) -> dict[str, Any]:
        """Supplied attributes in their stored form, minus any that sanitize to nothing."""
        values = {key: sanitize_field(key, value) for key, value in self.present().items()}
        return {key: value for key, value in values.items() if value not in ("", 0)}


@dataclass
class ReconciliationOutcome:
    """Result of applying extracted fields to storage."""

    action: Action
    record_id: int
    title: str
    run_number: int | None = None
    written: dict[str, Any] = field(default_factory=dict)
    changed: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    permalink: str = ""


@dataclass
class InboundAttachment:
    """Attachment from the inbound webhook payload."""

    filename: str = ""
    content_type: str = ""
    content: Any = None

    @property
    def looks_like_csv(self) -> bool:
        content_type = self.content_type.lower()
        return (
            self.filename.lower().endswith(".csv")
            or "csv" in content_type
            or "text/plain" in content_type
        )


@dataclass
class InboundEmail:
    """Inbound message as delivered by the mail forwarding webhook."""

    sender: Any = None
    subject: str = ""
    text: str = ""
    html: str = ""
    attachments: list[InboundAttachment] = field(default_factory=list)

    @property
    def body(self) -> str:
        """Get email body, preferring plain text."""
        return self.text or strip_html(self.html)

    @property
    def sender_email(self) -> str:
        """Sender address resolved from whichever payload shape was used."""
        return extract_sender_email(self.sender)

    @property
    def command(self) -> Command:
        return Command.from_subject(self.subject)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "InboundEmail":
        """Create InboundEmail from the forwarding service's JSON body."""
        attachments = []
        for item in data.get("attachments") or []:
            if not isinstance(item, dict):
                continue
            attachments.append(InboundAttachment(
                filename=str(item.get("filename") or ""),
                content_type=str(item.get("contentType") or item.get("type") or ""),
                content=item.get("content"),
            ))

        return cls(
            sender=data.get("from"),
            subject=sanitize_text(data.get("subject")),
            text=_as_text(data.get("text")),
            html=_as_text(data.get("html")),
            attachments=attachments,
        )


@dataclass
class MailAttachment:
    """File attached to an outbound message."""

    filename: str
    content: bytes
    content_type: str = "text/csv"


@dataclass
class OutboundMessage:
    """Reply composed for the sender."""

    subject: str
    body: str
    is_html: bool = False
    attachments: list[MailAttachment] = field(default_factory=list)


@dataclass
class ImportSummary:
    """Per-row results of a CSV import."""

    created: list[ReconciliationOutcome] = field(default_factory=list)
    updated: list[ReconciliationOutcome] = field(default_factory=list)
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ProcessingResult:
    """Result from processing an inbound message."""

    success: bool
    action: str  # e.g., "replied", "dropped_unauthorised"
    command: Command | None = None
    sender: str | None = None
    error: str | None = None


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""
