"""Data model shared by the sync engine and its collaborators.

Message parts and results are closed unions of frozen dataclasses; callers
match on them with ``match``/``case`` rather than probing attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias


@dataclass(frozen=True)
class Sender:
    """Display name and address of the message author."""

    name: str
    address: str

    def __str__(self) -> str:
        if self.name and self.address:
            return f"{self.name} <{self.address}>"
        return self.name or self.address


@dataclass(frozen=True)
class InlinePart:
    """A body part rendered as message content (plain text, HTML, ...)."""

    content_type: str
    payload: bytes
    charset: str = "utf-8"


@dataclass(frozen=True)
class AttachmentPart:
    """A file attached to the message."""

    filename: str
    payload: bytes
    content_type: str = "application/octet-stream"


MessagePart: TypeAlias = InlinePart | AttachmentPart


@dataclass(frozen=True)
class MailMessage:
    """Immutable view of one unprocessed mailbox entry.

    ``uid`` is assigned by the mailbox and is only meaningful to the
    mailbox that produced it.
    """

    uid: str
    subject: str
    sender: Sender
    parts: tuple[MessagePart, ...] = ()


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class NewIssue:
    """The message opens a new ticket."""


@dataclass(frozen=True)
class Reply:
    """The message follows up on an existing ticket."""

    ticket_key: str


Classification: TypeAlias = NewIssue | Reply


# ----------------------------------------------------------------------
# Sync outcomes
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Created:
    ticket_key: str


@dataclass(frozen=True)
class Commented:
    ticket_key: str


@dataclass(frozen=True)
class Skipped:
    reason: str


@dataclass(frozen=True)
class Failed:
    reason: str


SyncOutcome: TypeAlias = Created | Commented | Skipped | Failed


@dataclass(frozen=True)
class TicketPayload:
    """Sanitized fields sent to the tracker for one message."""

    summary: str
    description: str
    sender: str


class IssueLookup(str, Enum):
    """Result of asking the tracker whether a ticket exists."""

    EXISTS = "exists"
    NOT_FOUND = "not_found"


@dataclass
class RunReport:
    """Outcomes of one polling cycle, in mailbox order."""

    outcomes: list[tuple[str, SyncOutcome]] = field(default_factory=list)

    def record(self, uid: str, outcome: SyncOutcome) -> None:
        self.outcomes.append((uid, outcome))

    def count(self, kind: type) -> int:
        return sum(1 for _, outcome in self.outcomes if isinstance(outcome, kind))

    @property
    def created(self) -> int:
        return self.count(Created)

    @property
    def commented(self) -> int:
        return self.count(Commented)

    @property
    def skipped(self) -> int:
        return self.count(Skipped)

    @property
    def failed(self) -> int:
        return self.count(Failed)

    def as_dict(self) -> dict[str, int]:
        return {
            "fetched": len(self.outcomes),
            "created": self.created,
            "commented": self.commented,
            "skipped": self.skipped,
            "failed": self.failed,
        }
