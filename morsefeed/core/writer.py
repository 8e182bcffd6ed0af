"""Row layout and the word budget.

WHY: Words are practiced in rows: a file gets N words per line, the
player gets one row at a time and acknowledges each before the next is
sent. Both follow the same layout rules, so the layout lives here and
the destination is a pluggable RowSink.

HOW: RowWriter.emit() appends one Word to the open row, closes the row
when its last slot is filled and counts words against the budget.
RowSink is an ABC with one requirement, send_row(); before_word() is a
hook the player uses to poll the keyboard before every word.

RULES:
- A word is preceded by one space unless it starts a row
- A row ends after the slot index words_per_row - 1 (mod words_per_row)
- Filler words use the current slot index but do not advance it
- Only TEXT and NAMED words count against the budget; reaching it raises
  WordLimitReached after the word has been laid out
- finish() sends an open partial row; it never sends an empty row
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

from morsefeed.core.ir import Word
from morsefeed.errors import FeedIOError, WordLimitReached


class RowSink(ABC):
    """Destination for completed rows.

    To add a new destination:
    1. Subclass RowSink
    2. Implement send_row()
    3. Override before_word() if the sink reacts to user input
    """

    @abstractmethod
    def send_row(self, row: str) -> None:
        """Deliver one row of space-separated words (no trailing newline)."""

    def before_word(self) -> None:
        """Called before each word is laid out; may raise FeedInterrupt."""


class StreamSink(RowSink):
    """Writes rows as lines to a text stream, flushing after each."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def send_row(self, row: str) -> None:
        try:
            self.stream.write(row + "\n")
            self.stream.flush()
        except OSError as exc:
            raise FeedIOError("error writing output: {}".format(exc)) from exc


class RowWriter:
    """Lays words out into rows and enforces the word budget.

    Args:
        sink: Where completed rows go.
        words_per_row: Slots per row, at least 1.
        word_limit: Words to emit before stopping, or None for no limit.
    """

    def __init__(self, sink: RowSink, words_per_row: int, word_limit: Optional[int] = None) -> None:
        if words_per_row < 1:
            raise ValueError("words_per_row must be at least 1")
        self.sink = sink
        self.words_per_row = words_per_row
        self.word_limit = word_limit
        self.slot_index = 0
        self.word_count = 0
        self.rows = 0
        self._row: List[str] = []

    @property
    def row_open(self) -> bool:
        return bool(self._row)

    def emit(self, word: Word) -> None:
        self.sink.before_word()

        slot = self.slot_index % self.words_per_row
        if slot != 0:
            self._row.append(" ")
        self._row.append(word.text)
        if slot == self.words_per_row - 1:
            self._send_row()

        if word.advances:
            self.slot_index += 1
        if word.counts:
            self.word_count += 1
            if self.word_limit is not None and self.word_count >= self.word_limit:
                raise WordLimitReached()

    def finish(self, send_partial: bool = True) -> None:
        """Close the run: send or drop the open partial row."""
        if not self._row:
            return
        if send_partial:
            self._send_row()
        else:
            self._row.clear()

    def _send_row(self) -> None:
        row = "".join(self._row)
        self._row.clear()
        self.sink.send_row(row)
        self.rows += 1
