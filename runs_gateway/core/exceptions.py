"""
Gateway error types.

Every error carries a message that is safe to show to the sender.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Why a message could not be turned into a run record."""

    NO_API_KEY = "no_api_key"
    REQUEST_FAILED = "api_request_failed"
    API_ERROR = "api_error"
    EMPTY_RESPONSE = "empty_response"
    INVALID_JSON = "invalid_json"
    PROVIDER_ERROR = "parse_error"
    MISSING_DATE = "no_date"


class GatewayError(Exception):
    """Base class for errors reported back to the sender."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExtractionError(GatewayError):
    """The extraction service did not produce usable run details."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind


class ReconciliationError(GatewayError):
    """Extracted details could not be applied to a run record."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind


class ImportFailure(GatewayError):
    """A CSV import could not start (no attachment, empty file, bad header)."""


class DuplicateRunNumber(GatewayError):
    """A record with this run number already exists."""

    def __init__(self, run_number: int):
        super().__init__(f"Run #{run_number} already exists.")
        self.run_number = run_number
