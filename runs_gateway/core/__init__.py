"""Core modules for the run gateway."""

from .logging import configure_logging, get_logger, bind_context, clear_context
from .exceptions import (
    FailureKind,
    GatewayError,
    ExtractionError,
    ReconciliationError,
    ImportFailure,
    DuplicateRunNumber,
)
from .models import (
    Action,
    Command,
    ExtractedFields,
    InboundEmail,
    OutboundMessage,
    ReconciliationOutcome,
    RunRecord,
    Visibility,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "FailureKind",
    "GatewayError",
    "ExtractionError",
    "ReconciliationError",
    "ImportFailure",
    "DuplicateRunNumber",
    "Action",
    "Command",
    "ExtractedFields",
    "InboundEmail",
    "OutboundMessage",
    "ReconciliationOutcome",
    "RunRecord",
    "Visibility",
]
