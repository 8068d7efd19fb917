"""Decode IMAP BODYSTRUCTURE responses into ``BodyStructureNode`` trees.

``imapclient`` hands back BODYSTRUCTURE as nested tuples of ``bytes``
(``imapclient.response_types.BodyData``).  A multipart node starts with
its child parts (``BodyData`` wraps them in a list, the raw response has
them as leading tuples) followed by the subtype and extension data.  A
single-part node is laid out as::

    (type, subtype, params, id, description, encoding, size, ...)

followed by type-specific fields and then extension data (md5,
disposition, language, location).  Part ids are not part of the response;
they are derived from child positions the way IMAP section numbers are.

Malformed nodes never raise: unreadable fields are left unset so later
stages can ignore the node.
"""

from __future__ import annotations

import email.utils
import urllib.parse
from collections.abc import Sequence
from typing import Any

import structlog

from .headers import decode_bytes, decode_header_value
from .models import MAX_STRUCTURE_DEPTH, TEXT_PART_ID, BodyStructureNode

logger = structlog.get_logger()

_SIZE_INDEX = 6
_ENCODING_INDEX = 5


def parse_body_structure(data: Sequence[Any] | None) -> BodyStructureNode | None:
    """Return the root node of *data*, or ``None`` if there is nothing to parse."""
    if not data:
        return None
    if _is_multipart(data):
        return _parse_multipart(data, "", depth=0)
    return _parse_single(data, TEXT_PART_ID)


def _is_multipart(data: Sequence[Any]) -> bool:
    return isinstance(data[0], (list, tuple))


def _split_multipart(data: Sequence[Any]) -> tuple[list[Any], list[Any]]:
    """Split a multipart node into (child parts, trailing fields)."""
    if isinstance(data[0], list):
        return list(data[0]), list(data[1:])
    parts: list[Any] = []
    for item in data:
        if not isinstance(item, (list, tuple)):
            break
        parts.append(item)
    return parts, list(data[len(parts):])


def _child_id(parent_id: str, index: int) -> str:
    return f"{parent_id}.{index}" if parent_id else str(index)


def _parse_multipart(data: Sequence[Any], part_id: str, depth: int) -> BodyStructureNode:
    parts, rest = _split_multipart(data)
    subtype = (decode_bytes(_get(rest, 0)) or "mixed").lower()
    params = _parse_params(_get(rest, 1))
    disposition, disposition_params = _parse_disposition(_get(rest, 2))

    children: list[BodyStructureNode] = []
    if depth >= MAX_STRUCTURE_DEPTH:
        logger.warning("body_structure_truncated", part_id=part_id, depth=depth)
    else:
        for index, part in enumerate(parts, start=1):
            if not part:
                continue
            child_id = _child_id(part_id, index)
            if _is_multipart(part):
                children.append(_parse_multipart(part, child_id, depth + 1))
            else:
                children.append(_parse_single(part, child_id))

    return BodyStructureNode(
        part_id=part_id,
        mime_type=f"multipart/{subtype}",
        disposition=disposition,
        disposition_filename=_filename(disposition_params) if disposition == "attachment" else None,
        parameters=params,
        children=children,
    )


def _parse_single(data: Sequence[Any], part_id: str) -> BodyStructureNode:
    maintype = (decode_bytes(_get(data, 0)) or "text").lower()
    subtype = (decode_bytes(_get(data, 1)) or "plain").lower()
    params = _parse_params(_get(data, 2))
    encoding = decode_bytes(_get(data, _ENCODING_INDEX))

    # Extension data follows the type-specific fields: text/* has a line
    # count, message/rfc822 has envelope, body and line count.
    if maintype == "text":
        ext_index = 8
    elif (maintype, subtype) in (("message", "rfc822"), ("message", "global")):
        ext_index = 10
    else:
        ext_index = 7
    disposition, disposition_params = _parse_disposition(_get(data, ext_index + 1))

    filename = _filename(disposition_params) or _filename(params)

    # message/rfc822 parts stay leaves: the encapsulated message is
    # reported as a single part rather than walked into.
    return BodyStructureNode(
        part_id=part_id,
        mime_type=f"{maintype}/{subtype}",
        encoding=encoding.lower() if encoding else None,
        size=_parse_size(_get(data, _SIZE_INDEX)),
        disposition=disposition,
        disposition_filename=filename if disposition == "attachment" else None,
        parameters=params,
    )


def _get(data: Sequence[Any], index: int) -> Any:
    return data[index] if len(data) > index else None


def _parse_size(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, (bytes, str)):
        text = decode_bytes(value) or ""
        return int(text) if text.isdigit() else None
    return None


def _parse_params(value: Any) -> dict[str, str]:
    """Turn a flat ``(key, value, key, value, ...)`` list into a dict."""
    if not isinstance(value, (list, tuple)):
        return {}
    params: dict[str, str] = {}
    for key, item in zip(value[0::2], value[1::2]):
        name = decode_bytes(key)
        text = decode_bytes(item)
        if name and text is not None:
            params[name.lower()] = text
    return params


def _parse_disposition(value: Any) -> tuple[str | None, dict[str, str]]:
    if not isinstance(value, (list, tuple)) or not value:
        return None, {}
    kind = decode_bytes(value[0])
    if not kind:
        return None, {}
    return kind.lower(), _parse_params(_get(value, 1))


def _filename(params: dict[str, str]) -> str | None:
    """Pick the filename out of disposition or content-type parameters."""
    for key in ("filename", "name"):
        if key in params:
            return decode_header_value(params[key])
        extended = params.get(f"{key}*")
        if extended is not None:
            return _decode_extended_value(extended)
    return None


def _decode_extended_value(value: str) -> str:
    """Decode an RFC 2231 ``charset'language'percent-encoded`` value."""
    charset, _, encoded = email.utils.decode_rfc2231(value)
    try:
        return urllib.parse.unquote(encoded, encoding=charset or "utf-8", errors="replace")
    except LookupError:
        return urllib.parse.unquote(encoded, errors="replace")
