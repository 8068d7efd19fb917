"""Umbrella Mailbox: list IMAP messages with on-demand structure and content."""

from .classifier import PartClassification, classify
from .config import ImapConfig, ListingConfig, RetryConfig
from .content import ContentFetcher
from .errors import ContentDecodeError, ListingCancelledError, MailboxError, TransportError
from .imap_client import AsyncImapSession
from .lister import MailboxLister, build_fetch_fields, list_mailbox
from .models import (
    AttachmentInfo,
    BodyStructureNode,
    Envelope,
    IncludePart,
    MessageEnvelope,
    OutputRecord,
)
from .search import SearchCriteria
from .walker import LeafPartInfo, walk

__all__ = [
    "AsyncImapSession",
    "AttachmentInfo",
    "BodyStructureNode",
    "ContentDecodeError",
    "ContentFetcher",
    "Envelope",
    "ImapConfig",
    "IncludePart",
    "LeafPartInfo",
    "ListingCancelledError",
    "ListingConfig",
    "MailboxError",
    "MailboxLister",
    "MessageEnvelope",
    "OutputRecord",
    "PartClassification",
    "RetryConfig",
    "SearchCriteria",
    "TransportError",
    "build_fetch_fields",
    "classify",
    "list_mailbox",
    "walk",
]
