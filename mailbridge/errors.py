"""Exceptions raised while syncing a single message.

The orchestrator catches every :class:`SyncError` at the message boundary
and turns it into a ``Skipped`` or ``Failed`` outcome.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all per-message sync failures."""


class NoBodyFound(SyncError):
    """The message has no inline part to use as the ticket body."""


class TrackerRejected(SyncError):
    """The tracker answered a request with a non-success status."""

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        super().__init__(f"{operation} rejected with HTTP {status_code}: {body}")
        self.operation = operation
        self.status_code = status_code
        self.body = body


class DanglingTicketReference(SyncError):
    """A reply references a ticket the tracker does not know."""

    def __init__(self, ticket_key: str) -> None:
        super().__init__(f"ticket {ticket_key} does not exist")
        self.ticket_key = ticket_key


class AttachmentDispatchFailed(SyncError):
    """A single attachment could not be uploaded."""

    def __init__(self, ticket_key: str, filename: str, cause: Exception) -> None:
        super().__init__(f"attaching {filename!r} to {ticket_key} failed: {cause}")
        self.ticket_key = ticket_key
        self.filename = filename
        self.cause = cause


class MailboxOperationFailed(SyncError):
    """The mailbox refused or failed a command."""


class TrackerTransportFailed(SyncError):
    """The tracker could not be reached."""
