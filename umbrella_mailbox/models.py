"""Data models for mailbox listings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Part id IMAP uses for the sole body of a non-multipart message.
TEXT_PART_ID = "TEXT"

MAX_STRUCTURE_DEPTH = 32


class IncludePart(str, Enum):
    """Optional data a listing can attach to each message."""

    BODY_STRUCTURE = "body_structure"
    FLAGS = "flags"
    SIZE = "size"
    ATTACHMENTS_INFO = "attachments_info"
    TEXT_CONTENT = "text_content"
    HTML_CONTENT = "html_content"


class BodyStructureNode(BaseModel):
    """One node of a message's MIME tree as described by BODYSTRUCTURE.

    Containers (multipart nodes) have ``children`` and no ``size``;
    content-bearing leaves have no children and carry a ``size``.
    """

    part_id: str = Field(description='IMAP section path, e.g. "1.2" ("TEXT" for single-part)')
    mime_type: str = Field(description='Lower-case "type/subtype"')
    encoding: str | None = Field(default=None, description="Content-Transfer-Encoding")
    size: int | None = Field(default=None, ge=0, description="Encoded size in bytes")
    disposition: str | None = Field(default=None, description="attachment / inline")
    disposition_filename: str | None = Field(default=None)
    parameters: dict[str, str] = Field(
        default_factory=dict,
        description="Content-Type parameters (charset, name, boundary, ...)",
    )
    children: list[BodyStructureNode] = Field(default_factory=list)

    @property
    def is_multipart(self) -> bool:
        return bool(self.children)


class AttachmentInfo(BaseModel):
    """Metadata for a part whose disposition is ``attachment``."""

    part_id: str
    filename: str | None = None
    mime_type: str
    encoding: str | None = None
    size: int


class Address(BaseModel):
    name: str = ""
    address: str


class Envelope(BaseModel):
    """Header-derived message metadata returned by IMAP ENVELOPE."""

    model_config = ConfigDict(populate_by_name=True)

    date: datetime | None = None
    subject: str | None = None
    message_id: str | None = None
    in_reply_to: str | None = None
    from_: list[Address] = Field(default_factory=list, alias="from")
    sender: list[Address] = Field(default_factory=list)
    reply_to: list[Address] = Field(default_factory=list)
    to: list[Address] = Field(default_factory=list)
    cc: list[Address] = Field(default_factory=list)
    bcc: list[Address] = Field(default_factory=list)


class MessageEnvelope(BaseModel):
    """Metadata fetched for one message in the bulk fetch.

    Only the optional fields that were actually requested are set.
    """

    uid: int = Field(description="Mailbox-scoped stable message identifier")
    envelope: Envelope
    flags: list[str] | None = None
    size: int | None = Field(default=None, ge=0)
    body_structure: BodyStructureNode | None = None


class OutputRecord(MessageEnvelope):
    """One flattened listing result."""

    attachments_info: list[AttachmentInfo] | None = None
    text_content: str | None = None
    html_content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict holding only the fields that were explicitly set."""
        data = self.model_dump(mode="json", by_alias=True)
        return {key: value for key, value in data.items() if key in self.model_fields_set}
