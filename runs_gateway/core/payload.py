"""
Shape matchers for the loosely-typed parts of the webhook payload.

The forwarding service emits the sender and attachment content in several
shapes depending on how the message was parsed. Each table below is tried
in order; the first matcher returning a value wins. New shapes are added by
appending a matcher, callers do not change.
"""

import base64
import binascii
import re
from email.utils import parseaddr
from typing import Any, Callable

EMAIL_RE = re.compile(r"^[^@\s<>\"(),;:]+@[^@\s<>\"(),;:]+\.[^@\s<>\"(),;:]+$")
BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]+$")


def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


def _angle_address(text: Any) -> str | None:
    """Address from a 'Name <email@example.com>' string."""
    if not isinstance(text, str) or "<" not in text:
        return None
    _, address = parseaddr(text)
    return address or None


# Sender shapes


def _nested_value_list(sender: Any) -> str | None:
    # {"value": [{"address": ..., "name": ...}], "text": "..."}
    if isinstance(sender, dict):
        value = sender.get("value")
        if isinstance(value, list) and value and isinstance(value[0], dict):
            return value[0].get("address")
    return None


def _flat_object(sender: Any) -> str | None:
    if isinstance(sender, dict):
        return sender.get("address")
    return None


def _sender_list(sender: Any) -> str | None:
    if isinstance(sender, list) and sender and isinstance(sender[0], dict):
        return sender[0].get("address")
    return None


def _object_text(sender: Any) -> str | None:
    if isinstance(sender, dict):
        return _angle_address(sender.get("text"))
    return None


def _display_name_string(sender: Any) -> str | None:
    return _angle_address(sender)


def _bare_address(sender: Any) -> str | None:
    if isinstance(sender, str):
        return sender
    return None


SENDER_SHAPES: tuple[Callable[[Any], str | None], ...] = (
    _nested_value_list,
    _flat_object,
    _sender_list,
    _object_text,
    _display_name_string,
    _bare_address,
)


def extract_sender_email(sender: Any) -> str:
    """
    Resolve the sender address from any known payload shape.

    Returns:
        Lower-cased address, or "" if no shape yields a valid address.
    """
    for shape in SENDER_SHAPES:
        candidate = shape(sender)
        if isinstance(candidate, str):
            candidate = candidate.strip()
            if is_valid_email(candidate):
                return candidate.lower()
    return ""


# Attachment content encodings


def _buffer_wrapper(content: Any) -> bytes | None:
    # {"type": "Buffer", "data": [byte, byte, ...]}
    if isinstance(content, dict) and content.get("type") == "Buffer":
        data = content.get("data")
        if isinstance(data, list):
            try:
                return bytes(data)
            except (TypeError, ValueError):
                return None
    return None


def _base64_text(content: Any) -> bytes | None:
    if isinstance(content, str) and len(content) > 20 and BASE64_RE.match(content):
        try:
            return base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            return None
    return None


def _plain_text(content: Any) -> bytes | None:
    if isinstance(content, str):
        return content.encode("utf-8")
    return None


ATTACHMENT_DECODERS: tuple[Callable[[Any], bytes | None], ...] = (
    _buffer_wrapper,
    _base64_text,
    _plain_text,
)


def decode_attachment_content(content: Any) -> str:
    """Decode attachment content from any known encoding into text."""
    for decoder in ATTACHMENT_DECODERS:
        data = decoder(content)
        if data is not None:
            return data.decode("utf-8", errors="replace")
    return ""
