"""Tests for mailbridge.sanitizer."""

from __future__ import annotations

import unicodedata

import pytest

from mailbridge.sanitizer import BodyType, normalize_newlines, sanitize, strip_markup


class TestPlainText:
    def test_ordinary_prose_unchanged(self):
        assert sanitize(b"It crashes on start", BodyType.PLAIN) == "It crashes on start"

    def test_accepts_str(self):
        assert sanitize("Hello", BodyType.PLAIN) == "Hello"

    def test_line_endings_normalized(self):
        assert sanitize(b"a\r\nb\rc\nd", BodyType.PLAIN) == "a\nb\nc\nd"

    def test_control_characters_become_space(self):
        assert sanitize(b"a\x00\x01b", BodyType.PLAIN) == "a b"

    def test_trimmed(self):
        assert sanitize(b"  \n hello \n\n", BodyType.PLAIN) == "hello"

    def test_backslash_kept(self):
        assert sanitize("C:\\temp\\log.txt", BodyType.PLAIN) == "C:\\temp\\log.txt"

    def test_quotes_kept_for_later_escaping(self):
        assert sanitize('He said "hi"', BodyType.PLAIN) == 'He said "hi"'

    def test_typographic_punctuation_kept(self):
        text = "“Quoted” — and… 50 € • done"
        assert sanitize(text, BodyType.PLAIN) == text

    def test_accented_letters_kept(self):
        assert sanitize("Grüße, café, Ærø", BodyType.PLAIN) == "Grüße, café, Ærø"

    def test_decomposed_accents_composed(self):
        decomposed = unicodedata.normalize("NFD", "Café naïve")
        assert sanitize(decomposed, BodyType.PLAIN) == "Café naïve"

    def test_decomposed_accents_in_html(self):
        decomposed = unicodedata.normalize("NFD", "<p>Grüße</p>").encode("utf-8")
        assert sanitize(decomposed, BodyType.HTML) == "Grüße"

    def test_markup_not_touched_for_plain(self):
        assert sanitize("use <b> for bold", BodyType.PLAIN) == "use <b> for bold"

    def test_emoji_collapsed(self):
        assert sanitize("ok \U0001F642", BodyType.PLAIN) == "ok"

    def test_charset_respected(self):
        assert sanitize("café".encode("latin-1"), BodyType.PLAIN, "latin-1") == "café"

    def test_unknown_charset_falls_back(self):
        assert sanitize(b"hello", BodyType.PLAIN, "x-no-such-charset") == "hello"

    def test_undecodable_bytes_removed(self):
        result = sanitize(b"ok \xff\xfe done", BodyType.PLAIN)
        assert "\ufffd" not in result
        assert result.startswith("ok")
        assert result.endswith("done")


class TestHtml:
    def test_tags_stripped(self):
        assert sanitize(b"<p>Hello <b>world</b></p>", BodyType.HTML) == "Hello world"

    def test_script_content_removed(self):
        raw = b"<p>Hi</p><script type='text/javascript'>alert('x')</script>"
        assert sanitize(raw, BodyType.HTML) == "Hi"

    def test_style_and_head_removed(self):
        raw = b"<html><head><title>T</title><style>p {color: red}</style></head><body><p>x</p></body></html>"
        assert sanitize(raw, BodyType.HTML) == "x"

    def test_event_handlers_removed(self):
        raw = b'<a href="https://example.com" onclick="steal()">link</a>'
        result = sanitize(raw, BodyType.HTML)
        assert result == "link"

    def test_comments_removed(self):
        assert sanitize(b"<!-- hidden -->visible", BodyType.HTML) == "visible"

    def test_entities_unescaped(self):
        assert sanitize(b"<p>Tom &amp; Jerry &lt;3</p>", BodyType.HTML) == "Tom & Jerry <3"

    def test_line_breaks_kept(self):
        assert sanitize(b"line1<br>line2<br/>line3", BodyType.HTML) == "line1\nline2\nline3"

    def test_paragraphs_become_lines(self):
        assert sanitize(b"<p>one</p><p>two</p>", BodyType.HTML) == "one\ntwo"

    def test_blank_lines_collapsed(self):
        assert strip_markup("a\n\n\n\nb") == "a\n\nb"

    def test_nbsp_becomes_space(self):
        assert sanitize(b"a&nbsp;b", BodyType.HTML) == "a b"

    def test_entity_encoded_markup_not_revived(self):
        raw = b"<p>&lt;script&gt;alert(1)&lt;/script&gt; &lt;img src=x onerror=alert(1)&gt;</p>"
        result = sanitize(raw, BodyType.HTML)
        assert "<" not in result
        assert "onerror" not in result
        assert "alert" not in result

    def test_double_encoded_markup_stripped(self):
        raw = b"before &amp;lt;b onclick=x&amp;gt;bold&amp;lt;/b&amp;gt; after"
        assert sanitize(raw, BodyType.HTML) == "before bold after"

    def test_strip_markup_is_stable(self):
        once = strip_markup("<p>Tom &amp; Jerry &lt;3</p>")
        assert strip_markup(once) == once


class TestBodyType:
    def test_html(self):
        assert BodyType.from_content_type("text/html") is BodyType.HTML

    def test_everything_else_plain(self):
        assert BodyType.from_content_type("text/plain") is BodyType.PLAIN
        assert BodyType.from_content_type("image/png") is BodyType.PLAIN


class TestIdempotence:
    @pytest.mark.parametrize(
        "text",
        [
            "It crashes on start",
            "Hello,\r\n\r\nthe export fails with error 0x80004005.\r\nRegards,\r\nAlice",
            "  padded text with\ttabs  ",
            "Path: C:\\Users\\alice\\report.docx (see attached)",
            "Prices: 50 €, 40 £; “quotes” — dashes…",
            "odd \x07 bell and \x1b escape",
            unicodedata.normalize("NFD", "résumé of the naïve café"),
        ],
    )
    def test_sanitize_twice_equals_once(self, text: str):
        once = sanitize(text, BodyType.PLAIN)
        assert sanitize(once, BodyType.PLAIN) == once


def test_normalize_newlines():
    assert normalize_newlines("a\r\n\rb") == "a\n\nb"
