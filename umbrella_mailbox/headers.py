"""Decoding helpers for raw header values returned by the IMAP server."""

from __future__ import annotations

import email.errors
import email.header


def decode_bytes(value: bytes | str | None) -> str | None:
    """Return *value* as text; undecodable bytes are replaced."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return str(value)


def decode_header_value(value: bytes | str | None) -> str | None:
    """Decode a raw header value, including RFC 2047 encoded-words."""
    text = decode_bytes(value)
    if text is None:
        return None
    try:
        return str(email.header.make_header(email.header.decode_header(text)))
    except (email.errors.HeaderParseError, UnicodeDecodeError, LookupError):
        return text
