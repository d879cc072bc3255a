"""Stop the bridge between messages on SIGTERM / SIGINT."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable, Iterable

import structlog

logger = structlog.get_logger()

STOP_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(
    shutdown_event: asyncio.Event,
    signals: Iterable[signal.Signals] = STOP_SIGNALS,
) -> Callable[[], None]:
    """Make *signals* set *shutdown_event* on the running loop.

    The sync loop only looks at the event between messages and between
    cycles, so a message in flight is always finished and marked first.
    Repeated signals while stopping are logged and otherwise ignored.

    Returns a callable that removes the handlers again.
    """
    loop = asyncio.get_running_loop()
    installed = tuple(signals)

    def _request_stop(sig: signal.Signals) -> None:
        if shutdown_event.is_set():
            logger.warning("shutdown_already_requested", signal=sig.name)
            return
        logger.info("shutdown_requested", signal=sig.name)
        shutdown_event.set()

    for sig in installed:
        loop.add_signal_handler(sig, _request_stop, sig)

    def remove() -> None:
        for sig in installed:
            loop.remove_signal_handler(sig)

    return remove
