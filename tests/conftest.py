"""Shared test fixtures for the umbrella_mailbox test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import pytest

from umbrella_mailbox.config import ImapConfig, ListingConfig, RetryConfig
from umbrella_mailbox.models import BodyStructureNode, Envelope, MessageEnvelope


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(
        host="imap.test.com",
        port=993,
        use_ssl=True,
        username="testuser",
        password="testpass",
        timeout_seconds=5.0,
        fetch_timeout_seconds=5.0,
        fetch_batch_size=2,
        download_chunk_size=4,
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_wait_seconds=0.01,
        max_wait_seconds=0.1,
        multiplier=2.0,
    )


@pytest.fixture
def listing_config(imap_config: ImapConfig, retry_config: RetryConfig) -> ListingConfig:
    return ListingConfig(mailbox="INBOX", imap=imap_config, retry=retry_config)


# ------------------------------------------------------------------
# BodyStructureNode builders
# ------------------------------------------------------------------


def _leaf(
    part_id: str,
    mime_type: str = "text/plain",
    *,
    size: int | None = 10,
    encoding: str | None = "7bit",
    disposition: str | None = None,
    filename: str | None = None,
) -> BodyStructureNode:
    return BodyStructureNode(
        part_id=part_id,
        mime_type=mime_type,
        encoding=encoding,
        size=size,
        disposition=disposition,
        disposition_filename=filename,
    )


def _container(
    part_id: str,
    children: list[BodyStructureNode],
    mime_type: str = "multipart/mixed",
) -> BodyStructureNode:
    return BodyStructureNode(part_id=part_id, mime_type=mime_type, children=children)


def _mixed_with_alternative() -> BodyStructureNode:
    """multipart/mixed( multipart/alternative(text, html), pdf attachment )."""
    return _container(
        "",
        [
            _container(
                "1",
                [
                    _leaf("1.1", "text/plain", size=10),
                    _leaf("1.2", "text/html", size=20),
                ],
                mime_type="multipart/alternative",
            ),
            _leaf(
                "2",
                "application/pdf",
                size=500,
                encoding="base64",
                disposition="attachment",
                filename="report.pdf",
            ),
        ],
    )


@pytest.fixture
def mixed_structure() -> BodyStructureNode:
    return _mixed_with_alternative()


# ------------------------------------------------------------------
# Raw BODYSTRUCTURE tuples as returned by imapclient
# ------------------------------------------------------------------

RAW_TEXT_PLAIN = (
    b"TEXT", b"PLAIN", (b"CHARSET", b"utf-8"), None, None, b"7BIT", 10, 1,
    None, None, None, None,
)
RAW_TEXT_HTML = (
    b"text", b"html", (b"charset", b"utf-8"), None, None, b"quoted-printable", 20, 1,
    None, None, None, None,
)
RAW_PDF_ATTACHMENT = (
    b"application", b"pdf", (b"name", b"a.pdf"), None, None, b"base64", 500,
    None, (b"attachment", (b"filename", b"a.pdf")), None, None,
)
RAW_ALTERNATIVE = (RAW_TEXT_PLAIN, RAW_TEXT_HTML, b"alternative", (b"boundary", b"alt"), None, None, None)
RAW_MIXED = (RAW_ALTERNATIVE, RAW_PDF_ATTACHMENT, b"mixed", (b"boundary", b"mix"), None, None, None)


# ------------------------------------------------------------------
# Message builders and a fake IMAP session
# ------------------------------------------------------------------


def _make_message(
    uid: int,
    structure: BodyStructureNode | None = None,
    *,
    flags: list[str] | None = None,
    size: int | None = None,
) -> MessageEnvelope:
    fields: dict[str, Any] = {"uid": uid, "envelope": Envelope(subject=f"Message {uid}")}
    if structure is not None:
        fields["body_structure"] = structure
    if flags is not None:
        fields["flags"] = flags
    if size is not None:
        fields["size"] = size
    return MessageEnvelope(**fields)


class FakeSession:
    """In-memory stand-in for ``AsyncImapSession`` that records every call."""

    def __init__(
        self,
        messages: Sequence[MessageEnvelope] = (),
        parts: dict[tuple[int, str], bytes] | None = None,
    ) -> None:
        self.messages = list(messages)
        self.parts = dict(parts or {})
        self.download_errors: dict[tuple[int, str], Exception] = {}
        self.fetch_error: Exception | None = None
        self.calls: list[tuple[Any, ...]] = []

    async def open_mailbox(self, path: str, *, read_only: bool = True) -> int:
        self.calls.append(("open_mailbox", path, read_only))
        return len(self.messages)

    async def fetch_messages(
        self,
        criteria: Sequence[Any],
        fields: Sequence[str],
    ) -> AsyncIterator[MessageEnvelope]:
        self.calls.append(("fetch_start", tuple(criteria), tuple(fields)))
        for message in self.messages:
            yield message
        if self.fetch_error is not None:
            raise self.fetch_error
        self.calls.append(("fetch_end",))

    async def download(self, uid: int, part_id: str) -> AsyncIterator[bytes]:
        self.calls.append(("download", uid, part_id))
        data = self.parts[(uid, part_id)]
        middle = len(data) // 2
        if data[:middle]:
            yield data[:middle]
        error = self.download_errors.get((uid, part_id))
        if error is not None:
            raise error
        if data[middle:]:
            yield data[middle:]

    @property
    def downloads(self) -> list[tuple[int, str]]:
        return [(call[1], call[2]) for call in self.calls if call[0] == "download"]
