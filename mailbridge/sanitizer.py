"""Turn an arbitrary email body into plain text safe for a ticket.

JSON escaping happens later, in :mod:`mailbridge.payload`.
"""

from __future__ import annotations

import html
import re
import unicodedata
from enum import Enum

import bleach

# Elements whose content is never readable text.
_SCRIPT_LIKE = re.compile(
    r"<(script|style|head|title)\b[^>]*>.*?</\1\s*>",
    flags=re.IGNORECASE | re.DOTALL,
)
_LINE_BREAK = re.compile(r"<br\s*/?>", flags=re.IGNORECASE)
_BLOCK_END = re.compile(
    r"</(p|div|li|tr|table|h[1-6]|blockquote|pre|ul|ol)\s*>",
    flags=re.IGNORECASE,
)
_EXCESS_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")

# Anything that is not a letter, digit, whitespace we keep, ASCII
# punctuation (backslash included) or common typographic punctuation.
_SUSPICIOUS = re.compile(
    r"[^\w \t\n!-/:-@\[-`{-~¡-¿×÷‐-‧‰-⁞₠-₿]+"
)


class BodyType(str, Enum):
    PLAIN = "plain"
    HTML = "html"

    @classmethod
    def from_content_type(cls, content_type: str) -> BodyType:
        if content_type.lower() == "text/html":
            return cls.HTML
        return cls.PLAIN


def sanitize(raw: bytes | str, body_type: BodyType, charset: str = "utf-8") -> str:
    """Return readable plain text for *raw*.

    Steps, in order: strip markup (HTML only), normalize line endings,
    compose decomposed accents (NFC), replace runs of suspicious characters
    with a single space, trim.
    Never raises.
    """
    text = _decode(raw, charset)
    if body_type is BodyType.HTML:
        text = strip_markup(text)
    text = unicodedata.normalize("NFC", normalize_newlines(text))
    text = _SUSPICIOUS.sub(" ", text)
    return text.strip()


def strip_markup(markup: str) -> str:
    """Reduce HTML to its text, keeping paragraph and line breaks.

    Entity-encoded markup such as ``&lt;script&gt;`` turns into real tags
    once unescaped, so stripping repeats until the text stops changing.
    """
    text = normalize_newlines(markup)
    while True:
        stripped = _strip_once(text)
        if stripped == text:
            break
        text = stripped
    return _EXCESS_BLANK_LINES.sub("\n\n", text.replace("\xa0", " "))


def _strip_once(text: str) -> str:
    text = _SCRIPT_LIKE.sub("", text)
    text = _LINE_BREAK.sub("\n", text)
    text = _BLOCK_END.sub("\n", text)
    text = bleach.clean(text, tags=set(), attributes={}, strip=True, strip_comments=True)
    return html.unescape(text)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _decode(raw: bytes | str, charset: str) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")
