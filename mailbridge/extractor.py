"""Body extraction: choose the ticket body and collect attachments."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import NoBodyFound
from .models import AttachmentPart, InlinePart, MessagePart


@dataclass(frozen=True)
class ExtractedBody:
    """Primary inline part plus the attachments worth forwarding."""

    body: InlinePart
    attachments: list[AttachmentPart] = field(default_factory=list)


def extract(parts: Sequence[MessagePart]) -> ExtractedBody:
    """Split *parts* into the primary body and the attachment list.

    The first ``text/plain`` inline part is the body; without one, the first
    inline part of any type is used and must still be sanitized.  Attachments
    without a filename are dropped.

    Raises :class:`NoBodyFound` when there is no inline part at all.
    """
    first_inline: InlinePart | None = None
    plain: InlinePart | None = None
    attachments: list[AttachmentPart] = []

    for part in parts:
        match part:
            case InlinePart(content_type=content_type):
                if first_inline is None:
                    first_inline = part
                if plain is None and content_type.lower() == "text/plain":
                    plain = part
            case AttachmentPart(filename=filename):
                if filename and filename.strip():
                    attachments.append(part)

    body = plain or first_inline
    if body is None:
        raise NoBodyFound("message has no inline body part")
    return ExtractedBody(body=body, attachments=attachments)
