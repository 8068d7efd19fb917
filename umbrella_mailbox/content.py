"""Download a single body part and materialise it as text."""

from __future__ import annotations

import asyncio

import structlog

from .errors import ContentDecodeError, TransportError
from .imap_client import AsyncImapSession

logger = structlog.get_logger()


class ContentFetcher:
    """Fetch a body part by UID and part id and decode it as UTF-8.

    The fetcher does not check that *part_id* is the right part; callers
    pass ids chosen by :func:`umbrella_mailbox.classifier.classify`.
    """

    def __init__(self, session: AsyncImapSession, *, timeout_seconds: float | None = None) -> None:
        self._session = session
        self._timeout_seconds = timeout_seconds

    async def fetch(self, uid: int, part_id: str) -> str:
        """Return the full content of *part_id* of message *uid*.

        Raises :class:`TransportError` if the stream fails or stalls past
        the timeout, and :class:`ContentDecodeError` if the bytes are not
        valid UTF-8.  Truncated content is never returned.
        """
        chunks: list[bytes] = []
        try:
            async with asyncio.timeout(self._timeout_seconds):
                async for chunk in self._session.download(uid, part_id):
                    chunks.append(chunk)
        except TimeoutError as exc:
            raise TransportError(
                f"timed out after {self._timeout_seconds}s fetching part {part_id} of message {uid}"
            ) from exc

        raw = b"".join(chunks)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ContentDecodeError(uid, part_id, str(exc)) from exc

        logger.debug("part_fetched", uid=uid, part_id=part_id, size=len(raw), chunks=len(chunks))
        return text
