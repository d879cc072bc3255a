"""SyncOrchestrator: reflects each unprocessed message in the tracker once.

Per message: classify the subject, extract and sanitize the body, create an
issue or comment on the referenced one, and only when the tracker accepted
the write mark the message processed and forward its attachments.  Anything
that goes wrong stops at the message boundary: the message stays
unprocessed and the next poll retries it.
"""

from __future__ import annotations

import asyncio

import structlog

from .classifier import classify
from .dispatcher import AttachmentDispatcher
from .errors import DanglingTicketReference, NoBodyFound, SyncError
from .extractor import extract
from .interface import Mailbox, Tracker
from .models import (
    Classification,
    Commented,
    Created,
    Failed,
    InlinePart,
    IssueLookup,
    MailMessage,
    NewIssue,
    Reply,
    RunReport,
    Skipped,
    SyncOutcome,
    TicketPayload,
)
from .sanitizer import BodyType, sanitize

logger = structlog.get_logger()


def build_payload(message: MailMessage, body: InlinePart) -> TicketPayload:
    """Sanitize the fields of *message* that end up in the tracker."""
    summary = sanitize(message.subject, BodyType.PLAIN)
    return TicketPayload(
        # Jira summaries are single-line
        summary=" ".join(summary.split()),
        description=sanitize(
            body.payload,
            BodyType.from_content_type(body.content_type),
            body.charset,
        ),
        sender=sanitize(str(message.sender), BodyType.PLAIN),
    )


def comment_summary(payload: TicketPayload) -> str:
    if not payload.sender:
        return payload.summary
    return f"{payload.summary} ({payload.sender})"


class SyncOrchestrator:
    """Drives one polling cycle against a :class:`Mailbox` and a :class:`Tracker`.

    Messages are handled strictly one after another, in the order the
    mailbox returned them.  If *shutdown_event* is set between messages the
    cycle stops early; whatever was not marked is picked up next time.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        tracker: Tracker,
        *,
        dispatcher: AttachmentDispatcher | None = None,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        self._mailbox = mailbox
        self._tracker = tracker
        self._dispatcher = dispatcher or AttachmentDispatcher(tracker)
        self._shutdown_event = shutdown_event

    async def run_once(self) -> RunReport:
        """Process every currently unprocessed message.

        :class:`~mailbridge.errors.MailboxOperationFailed` from listing the
        mailbox aborts the cycle and propagates to the caller.
        """
        messages = await self._mailbox.list_unprocessed()
        report = RunReport()

        if not messages:
            logger.info("mailbox_empty")
            return report

        logger.info("messages_found", count=len(messages))
        for index, message in enumerate(messages):
            if self._shutdown_event is not None and self._shutdown_event.is_set():
                logger.info("sync_interrupted", remaining=len(messages) - index)
                break
            outcome = await self.process_message(message)
            report.record(message.uid, outcome)

        logger.info("sync_cycle_complete", **report.as_dict())
        return report

    async def process_message(self, message: MailMessage) -> SyncOutcome:
        """Run one message through the state machine; never raises."""
        log = logger.bind(uid=message.uid, subject=message.subject)

        classification = classify(message.subject)
        ticket_key = classification.ticket_key if isinstance(classification, Reply) else None

        try:
            extracted = extract(message.parts)
        except NoBodyFound as exc:
            log.warning("message_skipped", ticket_key=ticket_key, reason=str(exc))
            return Skipped(reason=str(exc))

        try:
            payload = build_payload(message, extracted.body)
            outcome = await self._write_to_tracker(classification, payload)
        except SyncError as exc:
            log.error(
                "message_failed",
                ticket_key=ticket_key,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return Failed(reason=str(exc))
        except Exception as exc:
            log.exception("message_failed_unexpectedly", ticket_key=ticket_key)
            return Failed(reason=f"{type(exc).__name__}: {exc}")

        ticket_key = outcome.ticket_key

        try:
            await self._mailbox.mark_processed(message.uid)
        except Exception as exc:
            # The tracker already holds this message; the next poll will
            # write it again unless the mailbox is fixed first.
            log.error("mark_processed_failed", ticket_key=ticket_key, error=str(exc))
            return Failed(reason=f"written to {ticket_key} but not marked processed: {exc}")

        log.info(
            "message_synced",
            outcome=type(outcome).__name__.lower(),
            ticket_key=ticket_key,
            attachments=len(extracted.attachments),
        )

        if ticket_key and extracted.attachments:
            await self._dispatcher.dispatch(ticket_key, extracted.attachments)

        return outcome

    async def _write_to_tracker(
        self,
        classification: Classification,
        payload: TicketPayload,
    ) -> Created | Commented:
        match classification:
            case Reply(ticket_key=key):
                if await self._tracker.get_issue(key) is IssueLookup.NOT_FOUND:
                    raise DanglingTicketReference(key)
                await self._tracker.add_comment(key, comment_summary(payload), payload.description)
                return Commented(ticket_key=key)
            case NewIssue():
                key = await self._tracker.create_issue(payload.summary, payload.description)
                return Created(ticket_key=key)
        raise AssertionError(f"unhandled classification {classification!r}")
