"""Entry point for the mailbox lister.

Usage::

    python -m umbrella_mailbox list   # one JSON record per line on stdout

Everything else comes from the environment (see ``ListingConfig``), e.g.::

    IMAP_HOST=imap.example.com IMAP_USERNAME=u IMAP_PASSWORD=p \\
    LISTING_MAILBOX=Archive LISTING_INCLUDE='["text_content", "attachments_info"]' \\
    LISTING_SEARCH='{"since": "2025-01-01", "seen": false}' \\
    python -m umbrella_mailbox list
"""

from __future__ import annotations

import asyncio
import json
import sys

import structlog

from .config import ListingConfig
from .errors import MailboxError
from .lister import list_mailbox
from .logging import setup_logging
from .models import OutputRecord
from .shutdown import install_signal_handlers

logger = structlog.get_logger()


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] != "list":
        print("Usage: python -m umbrella_mailbox list", file=sys.stderr)
        sys.exit(1)

    config = ListingConfig()
    setup_logging(
        json=config.log_json,
        level=config.log_level,
        imap_protocol=config.log_imap_protocol,
    )

    try:
        records = asyncio.run(_run(config))
    except MailboxError:
        logger.exception("mailbox_listing_aborted", mailbox=config.mailbox)
        sys.exit(1)
    except asyncio.CancelledError:
        logger.error("mailbox_listing_interrupted", mailbox=config.mailbox)
        sys.exit(1)

    for record in records:
        sys.stdout.write(json.dumps(record.to_dict()) + "\n")


async def _run(config: ListingConfig) -> list[OutputRecord]:
    cancel_event = asyncio.Event()
    install_signal_handlers(cancel_event, asyncio.current_task())
    return await list_mailbox(config, cancel_event=cancel_event)


if __name__ == "__main__":
    main()
