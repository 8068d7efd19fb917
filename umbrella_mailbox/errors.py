"""Exceptions raised while listing a mailbox."""

from __future__ import annotations


class MailboxError(Exception):
    """Base class for all listing failures."""


class TransportError(MailboxError):
    """The IMAP connection failed, stalled or returned an unusable response."""


class ContentDecodeError(MailboxError):
    """A fetched body part is not valid UTF-8."""

    def __init__(self, uid: int, part_id: str, reason: str) -> None:
        super().__init__(f"part {part_id} of message {uid} is not valid UTF-8: {reason}")
        self.uid = uid
        self.part_id = part_id


class ListingCancelledError(MailboxError):
    """The listing was cancelled before every message was processed."""
