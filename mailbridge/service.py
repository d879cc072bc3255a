"""BridgeService: wires up collaborators and runs the poll loop."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from enum import Enum

import structlog
import uvicorn

from .config import BridgeConfig
from .dispatcher import AttachmentDispatcher
from .errors import MailboxOperationFailed
from .health import create_health_app
from .imap_client import ImapMailbox
from .logging import setup_logging
from .models import RunReport
from .orchestrator import SyncOrchestrator
from .payload import PayloadTemplates
from .shutdown import install_signal_handlers
from .tracker import JiraTracker

logger = structlog.get_logger()


class BridgeStatus(str, Enum):
    """Runtime status of the bridge process."""

    STARTING = "starting"
    RUNNING = "running"
    DEGRADED = "degraded"
    STOPPING = "stopping"
    STOPPED = "stopped"


class BridgeService:
    """Polls the mailbox on a fixed cadence and syncs it into Jira.

    ``run()`` starts the following concurrently via
    :class:`asyncio.TaskGroup`:

    * The poll loop (one :meth:`run_cycle` per ``poll_interval_seconds``)
    * FastAPI health server (for K8s probes)

    Cycles never overlap: the next one starts only after the previous one
    returned.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        mailbox: ImapMailbox | None = None,
        tracker: JiraTracker | None = None,
    ) -> None:
        self.config = config
        self.status: BridgeStatus = BridgeStatus.STARTING
        self.start_time: float = time.monotonic()
        self.last_run_time: datetime | None = None
        self.last_run_error: str | None = None
        self.totals: dict[str, int] = {
            "cycles": 0,
            "created": 0,
            "commented": 0,
            "skipped": 0,
            "failed": 0,
        }

        self._shutdown_event = asyncio.Event()
        self._mailbox = mailbox or ImapMailbox(config.imap)
        self._tracker = tracker or JiraTracker(
            config.tracker,
            PayloadTemplates.load(config.tracker),
            config.retry,
        )
        self._orchestrator = SyncOrchestrator(
            self._mailbox,
            self._tracker,
            dispatcher=AttachmentDispatcher(self._tracker),
            shutdown_event=self._shutdown_event,
        )

    # ------------------------------------------------------------------
    # One cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> RunReport | None:
        """Connect, sync every unprocessed message, disconnect.

        Returns ``None`` when the mailbox could not be read; the failure is
        logged and left for the next cycle.
        """
        self.totals["cycles"] += 1
        try:
            await self._mailbox.connect()
            report = await self._orchestrator.run_once()
        except MailboxOperationFailed as exc:
            self.status = BridgeStatus.DEGRADED
            self.last_run_error = str(exc)
            logger.error("sync_cycle_aborted", error=str(exc))
            return None
        finally:
            await self._mailbox.disconnect()

        self.last_run_time = datetime.now(UTC)
        self.last_run_error = None
        if self.status is BridgeStatus.DEGRADED:
            self.status = BridgeStatus.RUNNING
        for key, value in report.as_dict().items():
            if key in self.totals:
                self.totals[key] += value
        return report

    async def run_once(self) -> RunReport | None:
        """Single cycle with the tracker client opened and closed around it."""
        await self._tracker.start()
        try:
            return await self.run_cycle()
        finally:
            await self._tracker.stop()

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    async def _run_poll_loop(self) -> None:
        logger.info("poll_loop_started", interval=self.config.poll_interval_seconds)
        self.status = BridgeStatus.RUNNING
        try:
            while not self._shutdown_event.is_set():
                try:
                    await self.run_cycle()
                except Exception:
                    self.status = BridgeStatus.DEGRADED
                    logger.exception("sync_cycle_error")
                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self.config.poll_interval_seconds,
                    )
                except TimeoutError:
                    pass
        finally:
            # Unblock the health server if the loop ended on its own
            self._shutdown_event.set()
            logger.info("poll_loop_stopped")

    # ------------------------------------------------------------------
    # Health server
    # ------------------------------------------------------------------

    async def _run_health_server(self) -> None:
        """Start the FastAPI health server and shut it down on signal."""
        app = create_health_app(self)
        config = uvicorn.Config(
            app,
            host="0.0.0.0",
            port=self.config.health_port,
            log_level="warning",
        )
        server = uvicorn.Server(config)

        serve_task = asyncio.create_task(server.serve())
        await self._shutdown_event.wait()
        server.should_exit = True
        await serve_task

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Start all subsystems and run until shutdown::

            asyncio.run(service.run())
        """
        setup_logging(
            json=self.config.log_json,
            level=self.config.log_level,
            mailbox=self.config.imap.mailbox,
        )
        remove_signal_handlers = install_signal_handlers(self._shutdown_event)
        self.start_time = time.monotonic()

        logger.info("bridge_starting", poll_interval=self.config.poll_interval_seconds)

        await self._tracker.start()

        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(self._run_poll_loop())
                tg.create_task(self._run_health_server())
        except* Exception:
            logger.exception("bridge_task_group_error")
        finally:
            self.status = BridgeStatus.STOPPING
            await self._tracker.stop()
            self.status = BridgeStatus.STOPPED
            remove_signal_handlers()
            logger.info("bridge_stopped")

    def request_shutdown(self) -> None:
        self._shutdown_event.set()
