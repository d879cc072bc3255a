"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# Libraries that log one line per request or connection at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def setup_logging(
    *,
    json: bool = True,
    level: str = "INFO",
    **context: str,
) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Parameters
    ----------
    json:
        Emit JSON lines when *True*; otherwise use structlog's console
        renderer.
    level:
        Root log level name, case-insensitive.
    context:
        Key/value pairs bound to every event emitted afterwards, e.g.
        ``mailbox="INBOX"``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # Stdlib records (uvicorn) get the same timestamp and level
            # fields as structlog events
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if context:
        structlog.contextvars.bind_contextvars(**context)
