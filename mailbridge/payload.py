"""Tracker request bodies built from operator-supplied JSON templates.

A template is any JSON document containing the ``%SUMMARY%`` and
``%DESCRIPTION%`` placeholders inside string values.  Values are JSON
string-escaped before substitution so the rendered document stays valid
whatever the email contained.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from .config import TrackerConfig

_PLACEHOLDER = re.compile(r"%(SUMMARY|DESCRIPTION)%")


def json_escape(value: str) -> str:
    """Escape *value* for use inside a JSON string literal (no quotes)."""
    return json.dumps(value, ensure_ascii=False)[1:-1]


@dataclass(frozen=True)
class PayloadTemplate:
    """One request body template."""

    name: str
    text: str

    def __post_init__(self) -> None:
        found = set(_PLACEHOLDER.findall(self.text))
        missing = {"SUMMARY", "DESCRIPTION"} - found
        if missing:
            raise ValueError(f"template {self.name!r} lacks %{sorted(missing)[0]}%")

    @classmethod
    def from_file(cls, path: str | Path) -> PayloadTemplate:
        path = Path(path)
        return cls(name=path.name, text=path.read_text(encoding="utf-8"))

    def render(self, summary: str, description: str) -> str:
        values = {
            "SUMMARY": json_escape(summary),
            "DESCRIPTION": json_escape(description),
        }
        # Single pass: substituted text is never scanned for placeholders
        return _PLACEHOLDER.sub(lambda m: values[m.group(1)], self.text)


@dataclass(frozen=True)
class PayloadTemplates:
    """The pair of templates the tracker adapter needs."""

    new_issue: PayloadTemplate
    comment: PayloadTemplate

    @classmethod
    def load(cls, config: TrackerConfig) -> PayloadTemplates:
        return cls(
            new_issue=PayloadTemplate.from_file(config.new_issue_template),
            comment=PayloadTemplate.from_file(config.comment_template),
        )
