"""Subject classification: new issue, or reply to ``[<PROJECT>-<n>]``."""

from __future__ import annotations

import re

from .models import Classification, NewIssue, Reply

# Trailing "[KEY-123]"; the key may not contain brackets or whitespace.
_TICKET_SUFFIX = re.compile(r"\[([^\[\]\s]+-\d+)\]$")


def classify(subject: str) -> Classification:
    """Classify a subject line.

    Only the final bracket pair counts, and only when it closes the subject
    (trailing whitespace aside): ``"Re: [FOO] update [BAR-12]"`` is a reply
    to ``BAR-12`` while ``"[BAR-12] update"`` is a new issue.
    """
    match = _TICKET_SUFFIX.search(subject.rstrip())
    if match is None:
        return NewIssue()
    return Reply(ticket_key=match.group(1))
