"""Unit tests for the static character tables.

WHY: The tables are data, and data drifts: a lower-case transliteration
or a symbol listed in both Latin-1 tables changes what the user hears.

HOW: Table-wide checks plus a few direct classify_*() calls.
"""

import pytest

from morsefeed.core.charmap import (
    ASCII_NAMES,
    LATIN1_NAMES,
    LATIN1_TRANSLITERATIONS,
    GlyphKind,
    classify_ascii,
    classify_codepoint,
    classify_entity,
    classify_latin1,
)


class TestTables:
    def test_transliterations_are_upper_case(self):
        for code, text in LATIN1_TRANSLITERATIONS.items():
            assert text == text.upper(), hex(code)

    def test_every_letter_byte_mapped(self):
        for code in range(0xC0, 0x100):
            assert code in LATIN1_TRANSLITERATIONS or code in LATIN1_NAMES, hex(code)

    def test_ascii_names_cover_no_letters(self):
        assert not any(chr(c).isalnum() for c in ASCII_NAMES)


class TestClassify:
    @pytest.mark.parametrize("ch, kind, text", [
        ("a", GlyphKind.LITERAL, "A"),
        ("7", GlyphKind.LITERAL, "7"),
        ("?", GlyphKind.LITERAL, "?"),
        ("!", GlyphKind.NAMED, "exclamation"),
        ("~", GlyphKind.NAMED, "tilde"),
        ("'", GlyphKind.IGNORED, ""),
        (" ", GlyphKind.IGNORED, ""),
    ])
    def test_ascii(self, ch, kind, text):
        glyph = classify_ascii(ord(ch), in_word=False)
        assert (glyph.kind, glyph.text) == (kind, text)

    def test_double_quote_depends_on_position(self):
        assert classify_ascii(ord('"'), in_word=False).text == "quote"
        assert classify_ascii(ord('"'), in_word=True).text == "unquote"

    def test_entities(self):
        assert classify_entity(b"&amp;", False).text == "andsign"
        assert classify_entity(b"&quot;", True).text == "unquote"
        assert classify_entity(b"&#x27;", False).kind is GlyphKind.IGNORED

    def test_latin1_symbol_before_letter(self):
        assert classify_latin1(0xF7).text == "dividedby"
        assert classify_latin1(0xF8).text == "O"

    def test_codepoints(self):
        assert classify_codepoint(0x201C).text == "quote"
        assert classify_codepoint(0x2019).kind is GlyphKind.IGNORED
