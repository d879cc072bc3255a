"""Best-effort forwarding of message attachments to a ticket."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from .errors import AttachmentDispatchFailed
from .interface import Tracker
from .models import AttachmentPart

logger = structlog.get_logger()


class AttachmentDispatcher:
    """Uploads attachments one by one; a failure never stops the rest."""

    def __init__(self, tracker: Tracker) -> None:
        self._tracker = tracker

    async def dispatch(
        self,
        ticket_key: str,
        attachments: Sequence[AttachmentPart],
    ) -> list[AttachmentDispatchFailed]:
        """Upload every attachment to *ticket_key*.

        Returns the failures (already logged); an empty list means every
        attachment made it.
        """
        if not ticket_key:
            raise ValueError("attachments need a resolved ticket key")

        failures: list[AttachmentDispatchFailed] = []
        for attachment in attachments:
            try:
                await self._tracker.add_attachment(
                    ticket_key,
                    attachment.filename,
                    attachment.payload,
                )
            except Exception as exc:
                failure = AttachmentDispatchFailed(ticket_key, attachment.filename, exc)
                failures.append(failure)
                logger.warning(
                    "attachment_dispatch_failed",
                    ticket_key=ticket_key,
                    filename=attachment.filename,
                    error=str(exc),
                )
        return failures
