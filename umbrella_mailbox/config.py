"""Mailbox listing configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
Nested models are populated from their own env-var prefixes.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

from .models import IncludePart
from .search import SearchCriteria


class ImapConfig(BaseSettings):
    """IMAP server connection settings."""

    model_config = {"env_prefix": "IMAP_"}

    host: str = Field(description="IMAP server hostname")
    port: int = Field(default=993, description="IMAP server port")
    use_ssl: bool = Field(default=True, description="Use SSL/TLS connection")
    username: str = Field(description="IMAP login username")
    password: SecretStr = Field(description="IMAP login password")
    timeout_seconds: float = Field(
        default=30.0,
        description="Socket timeout for every IMAP command",
    )
    fetch_timeout_seconds: float = Field(
        default=120.0,
        description="Upper bound for downloading one body part",
    )
    fetch_batch_size: int = Field(
        default=200,
        ge=1,
        description="Messages per UID FETCH command in the bulk metadata fetch",
    )
    download_chunk_size: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Bytes requested per partial BODY.PEEK fetch",
    )


class RetryConfig(BaseSettings):
    """Retry / backoff settings for establishing the IMAP connection."""

    model_config = {"env_prefix": "RETRY_"}

    max_attempts: int = Field(default=3, description="Maximum connection attempts")
    initial_wait_seconds: float = Field(
        default=1.0,
        description="Initial backoff wait in seconds",
    )
    max_wait_seconds: float = Field(
        default=30.0,
        description="Maximum backoff wait in seconds",
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class ListingConfig(BaseSettings):
    """Root configuration for one ``python -m umbrella_mailbox list`` run."""

    model_config = {"env_prefix": "LISTING_"}

    mailbox: str = Field(default="INBOX", description="Mailbox (folder) to list")
    include: list[IncludePart] = Field(
        default_factory=list,
        description="Optional parts to attach to each record (JSON list)",
    )
    search: SearchCriteria = Field(
        default_factory=SearchCriteria,
        description="Search filter (JSON object)",
    )
    log_json: bool = Field(default=True, description="Emit JSON log lines")
    log_level: str = Field(default="INFO", description="Root log level")
    log_imap_protocol: bool = Field(default=False, description="Keep imapclient's protocol trace in the log")

    imap: ImapConfig = Field(default_factory=ImapConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
