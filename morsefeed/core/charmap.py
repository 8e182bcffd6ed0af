"""Static character tables: punctuation names, entities, Latin-1 and Unicode.

WHY: Morse code has no keys for most punctuation or for accented letters.
Every such character is either spelled out as a named word ("!" becomes
"exclamation"), folded into the word being built ("é" becomes "E"), kept
as-is (the four marks Morse does have), or dropped. Keeping those choices
in lookup tables instead of branching code makes them easy to audit.

HOW: Tables are keyed by byte value or code point. The classify_*()
helpers consult them in a fixed priority order and return a Glyph, a
tagged result (LITERAL, NAMED, TRANSLITERATED or IGNORED).

RULES:
- Letters and digits are upper-cased; . , ? / are kept literally
- The apostrophe and &#x27; are dropped (apostrophe or quote is ambiguous)
- '"' and &quot; read "quote" at the start of a word, "unquote" inside one
- Latin-1 symbol table wins over the Latin-1 letter table
- Transliterations are upper-cased like every other letter
"""

from __future__ import annotations

import enum
from typing import NamedTuple


class GlyphKind(enum.Enum):
    LITERAL = "literal"
    NAMED = "named"
    TRANSLITERATED = "transliterated"
    IGNORED = "ignored"


class Glyph(NamedTuple):
    """Result of classifying one character."""

    kind: GlyphKind
    text: str = ""


IGNORED = Glyph(GlyphKind.IGNORED)

# Marks Morse code can send directly.
LITERAL_PUNCTUATION = frozenset(b".,?/")

APOSTROPHE = ord("'")
DOUBLE_QUOTE = ord('"')

# ---------------------------------------------------------------------------
# 7-bit punctuation spelled out as words
# ---------------------------------------------------------------------------

ASCII_NAMES: dict[int, str] = {
    ord("!"): "exclamation",
    ord("#"): "hashmark",
    ord("$"): "dollarsign",
    ord("%"): "percent",
    ord("&"): "andsign",
    ord("("): "openparen",
    ord(")"): "closeparen",
    ord("*"): "asterisk",
    ord("+"): "plus",
    ord("-"): "dash",
    ord(":"): "colon",
    ord(";"): "semicolon",
    ord("<"): "lessthan",
    ord(">"): "greaterthan",
    ord("="): "=",
    ord("@"): "atsign",
    ord("["): "leftbracket",
    ord("\\"): "backslash",
    ord("]"): "rightbracket",
    ord("^"): "caret",
    ord("_"): "underscore",
    ord("`"): "backtick",
    ord("{"): "leftcurly",
    ord("|"): "verticalbar",
    ord("}"): "rightcurly",
    ord("~"): "tilde",
}

# ---------------------------------------------------------------------------
# HTML entities
# ---------------------------------------------------------------------------

ENTITY_NAMES: dict[bytes, str] = {
    b"&amp;": "andsign",
    b"&middot;": "dot",
    b"&gt;": "greaterthan",
    b"&lt;": "lessthan",
    b"&copy;": "copyright",
}

QUOTE_ENTITY = b"&quot;"

# ---------------------------------------------------------------------------
# Code points above Latin-1
# ---------------------------------------------------------------------------

# The tokenizer only looks up two-byte sequences (U+0100..U+07FF) here;
# three- and four-byte sequences are dropped before classification.
CODEPOINT_NAMES: dict[int, str] = {
    0x201C: "quote",    # left double quotation mark
    0x201D: "unquote",  # right double quotation mark
    0x00A9: "copyright",
    # U+02BC, U+2018, U+2019 deliberately absent: apostrophe or quote is ambiguous
}

# ---------------------------------------------------------------------------
# Latin-1 (0x80-0xFF)
# ---------------------------------------------------------------------------

LATIN1_NAMES: dict[int, str] = {
    0xA1: "exclamation",    # ¡
    0xA2: "cents",          # ¢
    0xA3: "pounds",         # £
    0xA4: "currency",       # ¤
    0xA5: "yen",            # ¥
    0xA6: "brokenbar",      # ¦
    0xA7: "section",        # §
    0xA9: "copyright",      # ©
    0xAB: "anglequote",     # «
    0xAC: "notsign",        # ¬
    0xAE: "registered",     # ®
    0xB0: "degrees",        # °
    0xB1: "plusorminus",    # ±
    0xB4: "accent",         # ´
    0xB5: "mu",             # µ
    0xB6: "paragraph",      # ¶
    0xB7: "cdot",           # ·
    0xBB: "angleunquote",   # »
    0xF7: "dividedby",      # ÷
}

# Upper case even for lower-case glyphs (ß -> "SS", ª -> "A"): transliterated
# letters join the surrounding word, which is always upper case.
LATIN1_TRANSLITERATIONS: dict[int, str] = {
    0xAA: "A",      # ª
    0xB2: "2",      # ²
    0xB3: "3",      # ³
    0xB9: "1",      # ¹
    0xBA: "O",      # º
    0xBC: "1/4",    # ¼
    0xBD: "1/2",    # ½
    0xBE: "3/4",    # ¾
    0xBF: "?",      # ¿
    0xD7: "X",      # ×
    0xDE: "TH",     # Þ
    0xDF: "SS",     # ß
    0xF0: "TH",     # ð
    0xFE: "TH",     # þ
}

_LATIN1_LETTER_RUNS = (
    (0xC0, 0xC5, "A"), (0xC6, 0xC6, "AE"), (0xC7, 0xC7, "C"),
    (0xC8, 0xCB, "E"), (0xCC, 0xCF, "I"), (0xD0, 0xD0, "D"),
    (0xD1, 0xD1, "N"), (0xD2, 0xD6, "O"), (0xD8, 0xD8, "O"),
    (0xD9, 0xDC, "U"), (0xDD, 0xDD, "Y"),
    (0xE0, 0xE5, "A"), (0xE6, 0xE6, "AE"), (0xE7, 0xE7, "C"),
    (0xE8, 0xEB, "E"), (0xEC, 0xEF, "I"), (0xF1, 0xF1, "N"),
    (0xF2, 0xF6, "O"), (0xF8, 0xF8, "O"), (0xF9, 0xFC, "U"),
    (0xFD, 0xFD, "Y"), (0xFF, 0xFF, "Y"),
)

for _first, _last, _text in _LATIN1_LETTER_RUNS:
    for _code in range(_first, _last + 1):
        LATIN1_TRANSLITERATIONS[_code] = _text


def _quote(in_word: bool) -> Glyph:
    return Glyph(GlyphKind.NAMED, "unquote" if in_word else "quote")


def classify_ascii(c: int, in_word: bool) -> Glyph:
    """Classify a 7-bit byte.

    Args:
        c: Byte value, 0x00-0x7F.
        in_word: Whether a word is currently being accumulated.
    """
    if 0x30 <= c <= 0x39 or 0x41 <= c <= 0x5A or 0x61 <= c <= 0x7A:
        return Glyph(GlyphKind.LITERAL, chr(c).upper())
    if c in LITERAL_PUNCTUATION:
        return Glyph(GlyphKind.LITERAL, chr(c))
    if c == APOSTROPHE:
        return IGNORED
    if c == DOUBLE_QUOTE:
        return _quote(in_word)
    name = ASCII_NAMES.get(c)
    if name is not None:
        return Glyph(GlyphKind.NAMED, name)
    return IGNORED


def classify_entity(entity: bytes, in_word: bool) -> Glyph:
    """Resolve a complete entity such as b"&amp;" (unknown ones are dropped)."""
    if entity == QUOTE_ENTITY:
        return _quote(in_word)
    name = ENTITY_NAMES.get(entity)
    if name is None:
        return IGNORED
    return Glyph(GlyphKind.NAMED, name)


def classify_codepoint(code: int) -> Glyph:
    """Classify a decoded code point above 0xFF."""
    name = CODEPOINT_NAMES.get(code)
    if name is None:
        return IGNORED
    return Glyph(GlyphKind.NAMED, name)


def classify_latin1(c: int) -> Glyph:
    """Classify a Latin-1 byte: symbol names first, then letter folding."""
    name = LATIN1_NAMES.get(c)
    if name is not None:
        return Glyph(GlyphKind.NAMED, name)
    text = LATIN1_TRANSLITERATIONS.get(c)
    if text is not None:
        return Glyph(GlyphKind.TRANSLITERATED, text)
    return IGNORED
