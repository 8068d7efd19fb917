"""Async IMAP session wrapping imapclient with asyncio.to_thread."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any, TypeVar

import structlog
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientAbortError, IMAPClientError

from .config import ImapConfig, RetryConfig
from .envelope import build_message_envelope
from .errors import TransportError
from .models import MessageEnvelope
from .retry import with_retry

logger = structlog.get_logger()

T = TypeVar("T")

# IMAPClientError is imaplib.IMAP4.error, the base of every protocol error
_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (IMAPClientError, OSError)


class AsyncImapSession:
    """Async-friendly IMAP session over a single connection.

    All blocking ``imapclient`` operations are wrapped with
    ``asyncio.to_thread()`` to avoid blocking the event loop.  The
    connection carries one command at a time: callers must await each
    method (and fully drain each generator) before issuing the next.
    """

    def __init__(self, config: ImapConfig, retry: RetryConfig | None = None) -> None:
        self._config = config
        self._retry = retry or RetryConfig()
        self._conn: IMAPClient | None = None
        self._mailbox: str | None = None
        # Set when a command was abandoned mid-flight; the socket may still
        # carry its response, so nothing else may be sent on it.
        self._broken = False

    @property
    def mailbox(self) -> str | None:
        return self._mailbox

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect and log in, retrying transient network failures."""

        @with_retry(self._retry, retryable_exceptions=(OSError, IMAPClientAbortError))
        async def _connect() -> None:
            await asyncio.to_thread(self._connect_sync)

        try:
            await _connect()
        except _TRANSPORT_ERRORS as exc:
            raise TransportError(
                f"could not connect to {self._config.host}:{self._config.port}: {exc}"
            ) from exc
        logger.info("imap_connected", host=self._config.host, port=self._config.port)

    def _connect_sync(self) -> None:
        conn = IMAPClient(
            self._config.host,
            port=self._config.port,
            ssl=self._config.use_ssl,
            timeout=self._config.timeout_seconds,
        )
        try:
            conn.login(self._config.username, self._config.password.get_secret_value())
        except IMAPClientError:
            conn.shutdown()
            raise
        self._conn = conn

    async def disconnect(self) -> None:
        """Log out and drop the connection.

        A broken connection is closed without LOGOUT: an abandoned command
        may still be running in its worker thread.
        """
        if self._conn is not None:
            await asyncio.to_thread(self._disconnect_sync)
            self._conn = None
            self._mailbox = None
            self._broken = False
            logger.info("imap_disconnected")

    def _disconnect_sync(self) -> None:
        assert self._conn is not None
        try:
            if self._broken:
                self._conn.shutdown()
            else:
                self._conn.logout()
        except _TRANSPORT_ERRORS as exc:
            logger.debug("imap_logout_failed", error=str(exc))

    async def is_connected(self) -> bool:
        """Check connection liveness with a NOOP command."""
        if self._conn is None or self._broken:
            return False
        try:
            await asyncio.to_thread(self._conn.noop)
        except _TRANSPORT_ERRORS:
            return False
        return True

    async def open_mailbox(self, path: str, *, read_only: bool = True) -> int:
        """Select *path* (EXAMINE when *read_only*) and return its message count."""
        conn = self._require_conn()
        info = await self._run(conn.select_folder, path, readonly=read_only)
        self._mailbox = path
        exists = int(info.get(b"EXISTS", 0))
        logger.info("imap_mailbox_opened", mailbox=path, read_only=read_only, exists=exists)
        return exists

    # ------------------------------------------------------------------
    # Message retrieval
    # ------------------------------------------------------------------

    async def search(self, criteria: Sequence[Any]) -> list[int]:
        """Return the UIDs matching *criteria* in server order."""
        conn = self._require_conn()
        uids = await self._run(conn.search, list(criteria))
        return list(uids)

    async def fetch_messages(
        self,
        criteria: Sequence[Any],
        fields: Sequence[str],
    ) -> AsyncIterator[MessageEnvelope]:
        """Search, then fetch *fields* for every match in batches.

        Yields one ``MessageEnvelope`` per message.  The generator must be
        drained before any other command is sent on this session.
        """
        conn = self._require_conn()
        uids = await self.search(criteria)
        logger.debug("imap_search_complete", matched=len(uids), mailbox=self._mailbox)

        batch_size = self._config.fetch_batch_size
        for start in range(0, len(uids), batch_size):
            batch = uids[start : start + batch_size]
            response = await self._run(conn.fetch, batch, list(fields))
            # Unsolicited FETCH updates are keyed by sequence number, not UID
            for uid in batch:
                if uid in response:
                    yield build_message_envelope(uid, response[uid])

    async def download(self, uid: int, part_id: str) -> AsyncIterator[bytes]:
        """Stream the raw bytes of body part *part_id* of message *uid*.

        Uses ``BODY.PEEK`` partial fetches so the ``\\Seen`` flag is never
        set.  The stream ends after the first short chunk.
        """
        conn = self._require_conn()
        chunk_size = self._config.download_chunk_size
        offset = 0
        while True:
            section = f"BODY.PEEK[{part_id}]<{offset}.{chunk_size}>"
            response = await self._run(conn.fetch, [uid], [section])
            chunk = _section_bytes(response.get(uid), part_id)
            if chunk:
                yield chunk
            if len(chunk) < chunk_size:
                return
            offset += len(chunk)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_conn(self) -> IMAPClient:
        assert self._conn is not None, "Not connected"
        return self._conn

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking imapclient call in a thread, wrapping its errors.

        Cancelling the caller does not stop the thread, so a cancelled call
        marks the session broken.
        """
        if self._broken:
            raise TransportError("connection abandoned after a cancelled command")
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except asyncio.CancelledError:
            self._broken = True
            logger.warning("imap_command_abandoned", mailbox=self._mailbox)
            raise
        except _TRANSPORT_ERRORS as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc


def _section_bytes(data: Mapping[bytes, Any] | None, part_id: str) -> bytes:
    """Pull the ``BODY[part]<origin>`` item out of a FETCH response."""
    if data is None:
        raise TransportError(f"no FETCH response for part {part_id}")
    prefix = f"BODY[{part_id}]".encode()
    for key, value in data.items():
        if isinstance(key, bytes) and key.startswith(prefix):
            return value or b""
    raise TransportError(f"FETCH response is missing BODY[{part_id}]")
