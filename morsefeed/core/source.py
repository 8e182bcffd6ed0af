"""Input buffers and active-span selection.

WHY: Start/stop markers and resume positions are byte offsets, so they
need the whole document in memory. Plain reading from a pipe with no
markers does not, and should not have to wait for end of input before
the first word is played.

HOW: ByteBuffer is a growable byte store that doubles its capacity, used
while reading a file or a streamed HTTP body. SourceBuffer holds a whole
document plus its active ByteSpan and narrows it in a fixed order:
select_after(), apply_resume(), select_before(). StreamSource yields
lines straight from a binary stream. Both expose lines() as
(absolute_offset, line_bytes) pairs for iter_tokens().

RULES:
- The span always satisfies 0 <= start <= end <= len(data)
- Markers are matched as exact byte sequences, first occurrence only
- The after-marker is searched in the whole document, the before-marker
  from the current start
- A resume offset only moves start forward (0 means "no saved position")
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Iterator, Optional, Tuple

from morsefeed.config import FIRST_BUFFER_SIZE
from morsefeed.core.ir import ByteSpan
from morsefeed.errors import BufferMemoryError, FeedIOError

logger = logging.getLogger(__name__)

_READ_CHUNK = 65536


class ByteBuffer:
    """Growable byte store with capacity doubling.

    RULES:
    - Capacity starts at initial_size and doubles until the data fits
    - An allocation failure raises BufferMemoryError; the caller discards
      whatever was collected
    """

    def __init__(self, initial_size: int = FIRST_BUFFER_SIZE) -> None:
        if initial_size < 1:
            raise ValueError("initial_size must be positive")
        self._data = bytearray(initial_size)
        self._used = 0

    def __len__(self) -> int:
        return self._used

    @property
    def capacity(self) -> int:
        return len(self._data)

    def extend(self, chunk: bytes) -> None:
        needed = self._used + len(chunk)
        if needed > len(self._data):
            new_size = len(self._data)
            while new_size < needed:
                new_size *= 2
            try:
                self._data.extend(bytes(new_size - len(self._data)))
            except MemoryError as exc:
                raise BufferMemoryError(
                    "unable to grow buffer to {} bytes".format(new_size)
                ) from exc
        self._data[self._used:needed] = chunk
        self._used = needed

    def getvalue(self) -> bytes:
        return bytes(self._data[:self._used])


def read_stream(stream: BinaryIO, initial_size: int = FIRST_BUFFER_SIZE) -> bytes:
    """Read a binary stream to the end.

    Raises:
        FeedIOError: If the stream cannot be read.
        BufferMemoryError: If the buffer cannot grow.
    """
    buffer = ByteBuffer(initial_size)
    try:
        while True:
            chunk = stream.read(_READ_CHUNK)
            if not chunk:
                break
            buffer.extend(chunk)
    except OSError as exc:
        raise FeedIOError("error reading input: {}".format(exc)) from exc
    return buffer.getvalue()


class SourceBuffer:
    """A whole document in memory with its active span.

    WHY: The pipeline, the link extractor and the position tracker all
    need the same view of "the part of the page we care about".

    HOW: The span starts as the whole document and is only ever narrowed.

    RULES:
    - Narrowing methods return True when they changed the span
    - lines() never yields bytes outside the span
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.span = ByteSpan(0, len(data))

    def __len__(self) -> int:
        return len(self.data)

    def select_after(self, marker: Optional[bytes]) -> bool:
        """Start the span just past the first occurrence of marker."""
        if not marker:
            return False
        found = self.data.find(marker)
        if found < 0:
            logger.debug("start marker %r not found", marker)
            return False
        start = found + len(marker)
        self.span = ByteSpan(start, max(self.span.end, start))
        return True

    def apply_resume(self, offset: int) -> bool:
        """Move the span start to a saved offset if it lies further in."""
        if offset <= self.span.start:
            return False
        self.span = ByteSpan(min(offset, self.span.end), self.span.end)
        return True

    def select_before(self, marker: Optional[bytes]) -> bool:
        """End the span at the first occurrence of marker at or after start."""
        if not marker:
            return False
        found = self.data.find(marker, self.span.start)
        if found < 0:
            logger.debug("end marker %r not found", marker)
            return False
        self.span = ByteSpan(self.span.start, found)
        return True

    def lines(self) -> Iterator[Tuple[int, bytes]]:
        offset = self.span.start
        end = self.span.end
        while offset < end:
            newline = self.data.find(b"\n", offset, end)
            stop = end if newline < 0 else newline + 1
            yield offset, self.data[offset:stop]
            offset = stop


class StreamSource:
    """Line-by-line view of a binary stream that is never fully buffered.

    RULES:
    - Offsets count bytes from the start of the stream
    - Read failures surface as FeedIOError
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def lines(self) -> Iterator[Tuple[int, bytes]]:
        offset = 0
        while True:
            try:
                line = self.stream.readline()
            except OSError as exc:
                raise FeedIOError("error reading input: {}".format(exc)) from exc
            if not line:
                return
            yield offset, line
            offset += len(line)
