"""MailboxLister: list a mailbox and enrich each message on demand.

A listing runs in two strictly ordered phases on one IMAP connection:

1. one bulk metadata fetch, drained completely into memory;
2. per message, in order: classify its body parts and download only the
   text / HTML parts that were asked for.

Downloading a part while the bulk fetch is still streaming would put two
commands on the wire at once, so phase 2 never starts before phase 1 ends.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection, Sequence
from typing import Any

import structlog

from .classifier import classify
from .config import ListingConfig
from .content import ContentFetcher
from .errors import ListingCancelledError, MailboxError
from .imap_client import AsyncImapSession
from .models import IncludePart, MessageEnvelope, OutputRecord

logger = structlog.get_logger()

# Parts that can only be derived from BODYSTRUCTURE
STRUCTURE_PARTS = frozenset(
    {
        IncludePart.ATTACHMENTS_INFO,
        IncludePart.TEXT_CONTENT,
        IncludePart.HTML_CONTENT,
    }
)


def build_fetch_fields(include: Collection[IncludePart]) -> list[str]:
    """Return the FETCH data items needed for *include*.

    UID and ENVELOPE are always fetched.  BODYSTRUCTURE is also fetched
    when only attachments or content were asked for, since it is needed
    to locate the parts.
    """
    fields = ["UID", "ENVELOPE"]
    if IncludePart.BODY_STRUCTURE in include or STRUCTURE_PARTS.intersection(include):
        fields.append("BODYSTRUCTURE")
    if IncludePart.FLAGS in include:
        fields.append("FLAGS")
    if IncludePart.SIZE in include:
        fields.append("RFC822.SIZE")
    return fields


class MailboxLister:
    """Produce one :class:`OutputRecord` per message matching a search."""

    def __init__(self, session: AsyncImapSession, *, fetch_timeout_seconds: float | None = None) -> None:
        self._session = session
        self._content = ContentFetcher(session, timeout_seconds=fetch_timeout_seconds)

    async def list_messages(
        self,
        mailbox: str,
        criteria: Sequence[Any],
        include: Collection[IncludePart] = (),
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[OutputRecord]:
        """List *mailbox* (opened read-only) for messages matching *criteria*.

        Records come back in the order the server returned the messages.
        Any transport or decode failure aborts the whole listing; no
        partial result is returned.
        """
        include = frozenset(include)
        fields = build_fetch_fields(include)
        logger.info("mailbox_listing_started", mailbox=mailbox, fields=fields)

        await self._session.open_mailbox(mailbox, read_only=True)

        try:
            messages = [message async for message in self._session.fetch_messages(criteria, fields)]
        except MailboxError:
            logger.exception("mailbox_bulk_fetch_failed", mailbox=mailbox)
            raise
        logger.info("messages_buffered", mailbox=mailbox, count=len(messages))

        records: list[OutputRecord] = []
        for message in messages:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "mailbox_listing_cancelled",
                    mailbox=mailbox,
                    processed=len(records),
                    total=len(messages),
                )
                raise ListingCancelledError(
                    f"listing of {mailbox} cancelled after {len(records)} of {len(messages)} messages"
                )
            try:
                records.append(await self._build_record(message, include))
            except MailboxError:
                logger.exception("mailbox_listing_failed", mailbox=mailbox, uid=message.uid)
                raise

        logger.info("mailbox_listing_complete", mailbox=mailbox, records=len(records))
        return records

    async def _build_record(self, message: MessageEnvelope, include: frozenset[IncludePart]) -> OutputRecord:
        want_attachments = IncludePart.ATTACHMENTS_INFO in include
        want_text = IncludePart.TEXT_CONTENT in include
        want_html = IncludePart.HTML_CONTENT in include

        fields: dict[str, Any] = {"uid": message.uid, "envelope": message.envelope}
        for name in ("flags", "size"):
            if name in message.model_fields_set:
                fields[name] = getattr(message, name)
        if IncludePart.BODY_STRUCTURE in include and message.body_structure is not None:
            fields["body_structure"] = message.body_structure

        if want_attachments or want_text or want_html:
            parts = classify(message.body_structure, want_attachments, want_text, want_html)
            if want_attachments:
                fields["attachments_info"] = parts.attachments
            if want_text and parts.text_part_id:
                fields["text_content"] = await self._content.fetch(message.uid, parts.text_part_id)
            if want_html and parts.html_part_id:
                fields["html_content"] = await self._content.fetch(message.uid, parts.html_part_id)

        logger.debug("message_listed", uid=message.uid, fields=sorted(fields))
        return OutputRecord(**fields)


async def list_mailbox(
    config: ListingConfig,
    *,
    cancel_event: asyncio.Event | None = None,
) -> list[OutputRecord]:
    """Connect, list ``config.mailbox`` and always disconnect afterwards."""
    session = AsyncImapSession(config.imap, config.retry)
    await session.connect()
    try:
        lister = MailboxLister(session, fetch_timeout_seconds=config.imap.fetch_timeout_seconds)
        return await lister.list_messages(
            config.mailbox,
            config.search.to_imap(),
            config.include,
            cancel_event=cancel_event,
        )
    finally:
        await session.disconnect()
