"""Collaborator interfaces the sync engine is written against."""

from __future__ import annotations

import abc

from .models import IssueLookup, MailMessage


class Mailbox(abc.ABC):
    """Source of messages and keeper of the processed marker.

    A message passed to :meth:`mark_processed` must never again be returned
    by :meth:`list_unprocessed`.
    """

    @abc.abstractmethod
    async def list_unprocessed(self) -> list[MailMessage]:
        """Return every message not yet marked processed, in mailbox order.

        Raises :class:`~mailbridge.errors.MailboxOperationFailed` when the
        mailbox cannot be queried at all.
        """
        ...

    @abc.abstractmethod
    async def mark_processed(self, uid: str) -> None:
        """Durably exclude *uid* from future :meth:`list_unprocessed` calls.

        Raises :class:`~mailbridge.errors.MailboxOperationFailed`.
        """
        ...


class Tracker(abc.ABC):
    """Issue tracker the bridge writes to.

    Every method raises :class:`~mailbridge.errors.TrackerRejected` on a
    non-success status and :class:`~mailbridge.errors.TrackerTransportFailed`
    when the tracker cannot be reached.
    """

    @abc.abstractmethod
    async def create_issue(self, summary: str, description: str) -> str:
        """Create an issue and return its key."""
        ...

    @abc.abstractmethod
    async def get_issue(self, key: str) -> IssueLookup:
        ...

    @abc.abstractmethod
    async def add_comment(self, key: str, summary: str, description: str) -> None:
        ...

    @abc.abstractmethod
    async def add_attachment(self, key: str, filename: str, content: bytes) -> None:
        ...
