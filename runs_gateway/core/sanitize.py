"""
Value normalization applied before anything is written to a run record.

All functions are idempotent: sanitizing a stored value again yields the
same value, which keeps export/import round-trips stable.
"""

import html
import math
import re
from typing import Any
from urllib.parse import urlsplit

TAG_RE = re.compile(r"<[^>]+>")
SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
LEADING_INT_RE = re.compile(r"^\s*\+?(\d+)")
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f\s]+")

ALLOWED_URL_SCHEMES = {"http", "https", "geo", "mailto", "tel"}


def strip_html(markup: str) -> str:
    """Plain text of an HTML body: script and style blocks dropped, entities decoded."""
    if not markup:
        return ""
    text = SCRIPT_STYLE_RE.sub(" ", markup)
    text = html.unescape(TAG_RE.sub(" ", text))
    return re.sub(r"\s+", " ", text).strip()


def sanitize_text(value: Any) -> str:
    """Single-line text: no tags, no line breaks, single spaces."""
    if value is None:
        return ""
    text = TAG_RE.sub("", str(value))
    return re.sub(r"\s+", " ", text).strip()


def sanitize_multiline(value: Any) -> str:
    """Multi-line text: no tags, line breaks kept, spacing tidied per line."""
    if value is None:
        return ""
    text = TAG_RE.sub("", str(value))
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [re.sub(r"[ \t\f\v]+", " ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def sanitize_url(value: Any) -> str:
    """
    Normalize a URL for storage.

    Whitespace and control characters are removed, scheme-less links get
    http://, and anything outside the allowed schemes is dropped.
    """
    if value is None:
        return ""
    url = CONTROL_RE.sub("", str(value))
    if not url:
        return ""
    if url.startswith(("/", "#", "?")):
        return url

    scheme = urlsplit(url).scheme.lower()
    if not scheme or "." in scheme:
        return f"http://{url}"
    if scheme not in ALLOWED_URL_SCHEMES:
        return ""
    return url


def coerce_run_number(value: Any) -> int | None:
    """Read a run number from an int or the leading digits of a string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def sanitize_field(key: str, value: Any) -> Any:
    """Sanitize a run attribute according to its type."""
    if key == "run_number":
        return coerce_run_number(value) or 0
    if key == "maps_url":
        return sanitize_url(value)
    if key == "notes":
        return sanitize_multiline(value)
    return sanitize_text(value)
