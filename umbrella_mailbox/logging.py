"""Log setup for listing runs: structlog events on stderr, records on stdout."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

# imapclient traces every command and response line below this logger
IMAP_PROTOCOL_LOGGER = "imapclient"


def setup_logging(
    *,
    json: bool = True,
    level: str = "INFO",
    stream: TextIO | None = None,
    imap_protocol: bool = False,
) -> None:
    """Route structlog and stdlib logging to one handler on *stream*.

    Parameters
    ----------
    json:
        JSON lines (the default) or the console renderer.
    level:
        Root log level name, case-insensitive.
    stream:
        Defaults to stderr; stdout carries the listing itself.
    imap_protocol:
        Keep imapclient's wire trace.  When *False* the ``imapclient``
        logger is held at WARNING regardless of *level*, so a DEBUG run
        does not dump message bodies fetched with ``BODY.PEEK``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    protocol_logger = logging.getLogger(IMAP_PROTOCOL_LOGGER)
    protocol_logger.setLevel(logging.NOTSET if imap_protocol else logging.WARNING)
