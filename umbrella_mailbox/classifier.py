"""Decide which parts of a message hold its text, HTML and attachments."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import TEXT_PART_ID, AttachmentInfo, BodyStructureNode
from .walker import walk


@dataclass
class PartClassification:
    """Attachment metadata plus the part ids to download for text and HTML."""

    attachments: list[AttachmentInfo] = field(default_factory=list)
    text_part_id: str | None = None
    html_part_id: str | None = None


def classify(
    root: BodyStructureNode | None,
    want_attachments: bool = True,
    want_text: bool = True,
    want_html: bool = True,
) -> PartClassification:
    """Classify the leaves of *root*.

    The ``want_*`` flags record what the caller is after; the result is
    the same for any combination, and it is up to the caller which parts
    it uses.  When several leaves share ``text/plain`` (or ``text/html``)
    the last one in traversal order wins.
    """
    result = PartClassification()
    if root is None:
        return result

    if not root.is_multipart:
        if root.mime_type == "text/plain":
            result.text_part_id = TEXT_PART_ID
        elif root.mime_type == "text/html":
            result.html_part_id = TEXT_PART_ID
        return result

    for leaf in walk(root):
        if leaf.disposition == "attachment":
            result.attachments.append(
                AttachmentInfo(
                    part_id=leaf.part_id,
                    filename=leaf.filename,
                    mime_type=leaf.mime_type,
                    encoding=leaf.encoding,
                    size=leaf.size,
                )
            )
        elif leaf.mime_type == "text/plain":
            result.text_part_id = leaf.part_id
        elif leaf.mime_type == "text/html":
            result.html_part_id = leaf.part_id

    return result
