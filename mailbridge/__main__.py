"""Entry point for the mailbridge package.

Usage::

    python -m mailbridge serve   # poll forever, with health endpoints
    python -m mailbridge once    # run a single sync cycle and exit
"""

from __future__ import annotations

import asyncio
import sys


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in ("serve", "once"):
        print("Usage: python -m mailbridge <serve|once>", file=sys.stderr)
        sys.exit(1)

    from .config import BridgeConfig
    from .service import BridgeService

    mode = sys.argv[1]
    config = BridgeConfig()
    service = BridgeService(config)

    if mode == "serve":
        asyncio.run(service.run())

    elif mode == "once":
        from .logging import setup_logging

        setup_logging(
            json=config.log_json,
            level=config.log_level,
            mailbox=config.imap.mailbox,
        )
        report = asyncio.run(service.run_once())
        sys.exit(0 if report is not None else 1)


if __name__ == "__main__":
    main()
