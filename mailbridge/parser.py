"""MIME parser: raw RFC 822 bytes to :class:`MailMessage`."""

from __future__ import annotations

import email
import email.policy
import email.utils
from collections.abc import Iterator
from email.message import EmailMessage

from .models import AttachmentPart, InlinePart, MailMessage, MessagePart, Sender


class MimeParser:
    """Stateless parser: raw RFC 822 bytes → MailMessage.

    Parts with ``Content-Disposition: attachment`` or a filename become
    :class:`AttachmentPart`; every other leaf part is an :class:`InlinePart`.
    Embedded ``message/rfc822`` parts are kept whole as ``.eml`` attachments
    instead of being walked into.
    """

    def parse(self, uid: str, raw_bytes: bytes) -> MailMessage:
        msg = email.message_from_bytes(raw_bytes, policy=email.policy.default)
        return MailMessage(
            uid=uid,
            subject=_header(msg, "Subject"),
            sender=self._parse_sender(_header(msg, "From")),
            parts=tuple(self._convert(part) for part in _iter_leaves(msg)),
        )

    def _convert(self, part: EmailMessage) -> MessagePart:
        content_type = part.get_content_type()
        disposition = (part.get_content_disposition() or "").lower()
        filename = (part.get_filename() or "").strip()

        if content_type == "message/rfc822":
            inner = part.get_payload(0)
            return AttachmentPart(
                filename=filename or "message.eml",
                payload=inner.as_bytes(),
                content_type=content_type,
            )

        payload = part.get_payload(decode=True) or b""
        if disposition == "attachment" or filename:
            return AttachmentPart(filename=filename, payload=payload, content_type=content_type)
        return InlinePart(
            content_type=content_type,
            payload=payload,
            charset=part.get_content_charset() or "utf-8",
        )

    def _parse_sender(self, header_value: str) -> Sender:
        name, address = email.utils.parseaddr(header_value)
        return Sender(name=name, address=address)


def _iter_leaves(part: EmailMessage) -> Iterator[EmailMessage]:
    """Yield leaf parts in document order, stopping at embedded messages."""
    if part.get_content_maintype() == "multipart":
        for sub in part.iter_parts():
            yield from _iter_leaves(sub)
    else:
        yield part


def _header(msg: EmailMessage, name: str) -> str:
    value = msg.get(name)
    if value is None:
        return ""
    # policy.default already decodes RFC 2047 words; unfold what is left
    return " ".join(str(value).split())
