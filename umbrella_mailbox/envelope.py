"""Conversion of IMAP FETCH responses into listing models.

``imapclient`` returns ENVELOPE data with undecoded ``bytes`` fields
(RFC 2047 encoded-words included).  Everything is decoded here, once,
so the rest of the pipeline only sees typed models.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .bodystructure import parse_body_structure
from .headers import decode_bytes, decode_header_value
from .models import Address, Envelope, MessageEnvelope


def parse_envelope(raw: Any) -> Envelope:
    """Convert an ``imapclient.response_types.Envelope`` into an ``Envelope``."""
    if raw is None:
        return Envelope()
    return Envelope(
        date=raw.date,
        subject=decode_header_value(raw.subject),
        message_id=decode_bytes(raw.message_id),
        in_reply_to=decode_bytes(raw.in_reply_to),
        from_=_parse_address_list(raw.from_),
        sender=_parse_address_list(raw.sender),
        reply_to=_parse_address_list(raw.reply_to),
        to=_parse_address_list(raw.to),
        cc=_parse_address_list(raw.cc),
        bcc=_parse_address_list(raw.bcc),
    )


def _parse_address_list(raw: Any) -> list[Address]:
    if not raw:
        return []
    addresses: list[Address] = []
    for item in raw:
        mailbox = decode_bytes(item.mailbox)
        host = decode_bytes(item.host)
        # Group start/end markers carry no host
        if host is None:
            continue
        addresses.append(
            Address(
                name=decode_header_value(item.name) or "",
                address=f"{mailbox}@{host}" if mailbox else host,
            )
        )
    return addresses


def build_message_envelope(uid: int, data: Mapping[bytes, Any]) -> MessageEnvelope:
    """Build a ``MessageEnvelope`` from one message's FETCH response items.

    Optional fields are only set when the server returned them, so a
    record never gains placeholders for data that was not requested.
    """
    fields: dict[str, Any] = {
        "uid": uid,
        "envelope": parse_envelope(data.get(b"ENVELOPE")),
    }
    if b"FLAGS" in data:
        fields["flags"] = [decode_bytes(flag) or "" for flag in data[b"FLAGS"]]
    if b"RFC822.SIZE" in data:
        fields["size"] = int(data[b"RFC822.SIZE"])
    if b"BODYSTRUCTURE" in data:
        structure = parse_body_structure(data[b"BODYSTRUCTURE"])
        if structure is not None:
            fields["body_structure"] = structure
    return MessageEnvelope(**fields)
