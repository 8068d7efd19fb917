"""Stop a listing on SIGTERM / SIGINT.

The first signal asks the lister to stop at the next message boundary.  A
second signal cancels the listing task outright, abandoning whatever IMAP
command is in flight; the session then drops its connection without
LOGOUT.
"""

from __future__ import annotations

import asyncio
import signal

import structlog

logger = structlog.get_logger()


def install_signal_handlers(cancel_event: asyncio.Event, task: asyncio.Task | None = None) -> None:
    """Register SIGTERM and SIGINT handlers on the running loop.

    *cancel_event* is set on the first signal.  If *task* is given, a
    signal arriving after the event is already set cancels it.
    """
    loop = asyncio.get_running_loop()

    def _handle(sig: signal.Signals) -> None:
        if cancel_event.is_set() and task is not None and not task.done():
            logger.warning("listing_interrupted", signal=sig.name)
            task.cancel()
            return
        logger.info("listing_stop_requested", signal=sig.name)
        cancel_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _handle, sig)
