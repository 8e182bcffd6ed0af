"""Character-level tokenizer: whitespace tokens in, practice words out.

WHY: This is the heart of the tool. Raw prose — plain text or a fetched
web page — has to become words a Morse tone generator can key: letters
upper-cased, punctuation spelled out, tags and entities stripped from
HTML, accented letters folded to ASCII. Everything downstream (row
layout, playback, positions) only ever sees the words produced here.

HOW: iter_tokens() cuts the active span into whitespace-delimited tokens
and reports the byte offset just past each one. Tokenizer.feed() runs a
small automaton over one token's bytes. Its state (inside a tag, the
partial entity, the partial tag) survives between tokens of the same
document, so markup split by whitespace ("<a href=...>") is still
stripped. Character decisions are delegated to the charmap tables.

RULES:
- Priority: tag > entity > ASCII > UTF-8 multi-byte > Latin-1 symbol >
  Latin-1 letter
- Every tag emits a word when it closes: "|" for exactly </li>, else " "
- Tag text is kept to TAG_SIZE - 1 bytes, entity text to ENTITY_SIZE - 1
- Inside an unterminated entity no other classification applies
- A named word first flushes the word being accumulated
- A word longer than LINE_SIZE - 1 characters is split; the overflowing
  character starts the next piece
- Invalid UTF-8 lead bytes are re-read as Latin-1
- Valid 3- and 4-byte UTF-8 sequences are consumed and emit nothing
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, List, Tuple

from morsefeed.config import ENTITY_SIZE, LINE_SIZE, TAG_SIZE
from morsefeed.core.charmap import (
    Glyph,
    GlyphKind,
    IGNORED,
    classify_ascii,
    classify_codepoint,
    classify_entity,
    classify_latin1,
)
from morsefeed.core.ir import FILLER, LIST_SEPARATOR, Word, WordKind
from morsefeed.errors import InternalInvariantViolation

logger = logging.getLogger(__name__)

_LT = ord("<")
_GT = ord(">")
_AMP = ord("&")
_SEMICOLON = ord(";")

LIST_ITEM_CLOSE = b"</li>"

# Same set as C isspace() in the "C" locale.
_TOKEN_RE = re.compile(rb"[^ \t\n\r\x0b\x0c]+")

TOKEN_CAPACITY = LINE_SIZE - 1


def iter_tokens(lines: Iterable[Tuple[int, bytes]]) -> Iterator[Tuple[bytes, int]]:
    """Split lines into tokens, tracking where the next unread byte is.

    WHY: The resume position must point just past the last token that was
    completely emitted, so a later session starts on a token boundary.

    HOW: Each line arrives with its absolute offset. Tokens never span
    lines because a line always ends in whitespace or at end of input.
    Tokens longer than TOKEN_CAPACITY are cut into pieces.

    RULES:
    - The offset after a token includes its single trailing whitespace byte
    - A token at the very end of input reports the end offset

    Args:
        lines: (absolute_offset, line_bytes) pairs in input order.

    Yields:
        (token_bytes, offset_after_token) pairs.
    """
    for line_offset, line in lines:
        for match in _TOKEN_RE.finditer(line):
            start, end = match.span()
            while end - start > TOKEN_CAPACITY:
                cut = start + TOKEN_CAPACITY
                yield line[start:cut], line_offset + cut
                start = cut
            after = end + 1 if end < len(line) else end
            yield line[start:end], line_offset + after


class Tokenizer:
    """Per-document automaton that turns tokens into words.

    WHY: Tag and entity state must persist across tokens of one document
    and be discarded between documents, so it lives on an object the
    pipeline keeps for a run and resets per page.

    HOW: feed() walks the token byte by byte, appending literal and
    transliterated characters to the word being built and emitting named
    words as they are recognized.

    RULES:
    - filter_html enables tag and entity handling (web pages only)
    - reset() returns to the initial state for a new document
    """

    def __init__(self, filter_html: bool = False, word_capacity: int = TOKEN_CAPACITY) -> None:
        self.filter_html = filter_html
        self.word_capacity = word_capacity
        self.excluding_tag = False
        self._entity = bytearray()
        self._tag = bytearray()

    def reset(self) -> None:
        self.excluding_tag = False
        self._entity.clear()
        self._tag.clear()

    @property
    def in_entity(self) -> bool:
        return bool(self._entity)

    def _append_tag(self, c: int) -> None:
        if len(self._tag) < TAG_SIZE - 1:
            self._tag.append(c)

    def feed(self, token: bytes) -> List[Word]:
        """Convert one whitespace-free token into zero or more words.

        Args:
            token: Raw token bytes, no whitespace.

        Returns:
            Words in output order.

        Raises:
            InternalInvariantViolation: If the token was not fully consumed.
        """
        words: List[Word] = []
        word = ""
        size = len(token)
        index = 0

        def flush() -> str:
            if word:
                words.append(Word(word, WordKind.TEXT))
            return ""

        while index < size and len(word) <= self.word_capacity:
            c = token[index]
            glyph = IGNORED

            if self.filter_html and c == _LT:
                self.excluding_tag = True
                self._append_tag(c)

            elif self.excluding_tag and c == _GT:
                self.excluding_tag = False
                self._append_tag(c)
                marker = LIST_SEPARATOR if bytes(self._tag) == LIST_ITEM_CLOSE else FILLER
                self._tag.clear()
                word = flush()
                words.append(marker)

            elif self.excluding_tag:
                self._append_tag(c)

            elif self.filter_html and c == _AMP:
                self._entity[:] = b"&"

            elif self.filter_html and self._entity:
                if len(self._entity) < ENTITY_SIZE - 1:
                    self._entity.append(c)
                if c == _SEMICOLON:
                    entity = bytes(self._entity)
                    glyph = classify_entity(entity, bool(word))
                    if glyph.kind is GlyphKind.IGNORED:
                        logger.debug("dropped entity %r", entity)
                    self._entity.clear()

            elif c <= 0x7F:
                glyph = classify_ascii(c, bool(word))

            else:
                glyph, extra = _decode_multibyte(token, index)
                index += extra

            if glyph.kind is GlyphKind.NAMED:
                word = flush()
                words.append(Word(glyph.text, WordKind.NAMED))
            elif glyph.kind is not GlyphKind.IGNORED:
                if len(word) + len(glyph.text) > self.word_capacity:
                    word = flush()
                word += glyph.text

            index += 1

        if index < size:
            raise InternalInvariantViolation(
                "tokenizer stopped at byte {} of {}".format(index, size)
            )

        flush()
        return words

    def words(self, text: bytes) -> List[Word]:
        """Tokenize a whole chunk of text (convenience for callers and tests)."""
        result: List[Word] = []
        for match in _TOKEN_RE.finditer(text):
            result.extend(self.feed(match.group()))
        return result


_LEAD_MASKS = (
    # (mask, value, sequence length, payload mask)
    (0xE0, 0xC0, 2, 0x1F),
    (0xF0, 0xE0, 3, 0x0F),
    (0xF8, 0xF0, 4, 0x07),
)


def _decode_multibyte(token: bytes, index: int) -> Tuple[Glyph, int]:
    """Classify the non-ASCII byte at index.

    Returns:
        (glyph, extra) where extra is the number of continuation bytes
        consumed beyond the lead byte.
    """
    c = token[index]
    for mask, value, length, payload in _LEAD_MASKS:
        if c & mask != value:
            continue
        tail = token[index + 1:index + length]
        if len(tail) != length - 1 or any(b & 0xC0 != 0x80 for b in tail):
            break  # malformed: the lead byte alone is Latin-1
        code = c & payload
        for b in tail:
            code = (code << 6) | (b & 0x3F)
        if length > 2:
            return IGNORED, length - 1
        if code <= 0xFF:
            return classify_latin1(code), 1
        return classify_codepoint(code), 1
    return classify_latin1(c), 0
