"""Exception types for the feed pipeline.

WHY: Callers (the CLI, tests) need to tell apart an unreadable file, a
failed fetch, a dead player and a programming defect, and must never
confuse any of those with the user pressing q or n. Two separate
hierarchies keep cancellation out of the error channel.

HOW: MorseFeedError is the base of every failure; each subclass is one
error kind. FeedInterrupt is the base of cooperative cancellation raised
at word granularity by the row writer.

RULES:
- Library code raises, only the CLI prints and picks an exit status
- Never catch FeedInterrupt as an error (it is not a MorseFeedError)
- InternalInvariantViolation is always fatal
"""

from __future__ import annotations

from typing import Optional


class MorseFeedError(Exception):
    """Base class for every failure the pipeline reports."""


class FeedIOError(MorseFeedError):
    """Open/read/write/seek failure on an input, output or store file."""


class FetchError(MorseFeedError):
    """Raised when a page cannot be fetched.

    WHY: The pipeline stops on the first unreadable page; the message must
    say which URL failed and how.

    RULES:
    - url is always set
    - status_code is set only when the server answered
    """

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            text = "response code {} fetching {}: {}".format(status_code, url, message)
        else:
            text = "error fetching {}: {}".format(url, message)
        super().__init__(text)


class BufferMemoryError(MorseFeedError):
    """Allocation failure while growing a buffer; partial data is discarded."""


class PipeError(MorseFeedError):
    """Player pipe creation, read or write failure, or a missing acknowledgment."""


class ProcessSpawnError(MorseFeedError):
    """The player process could not be started."""


class InternalInvariantViolation(MorseFeedError):
    """The tokenizer stopped before consuming its whole token (a defect)."""


class UnknownLabelError(MorseFeedError):
    """A saved option set was requested under a label with no record."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__("no saved options named '{}'".format(label))


class NoStatePathError(MorseFeedError):
    """Position tracking or saved options need a store file, and none is configured."""


# ---------------------------------------------------------------------------
# Cooperative cancellation
# ---------------------------------------------------------------------------


class FeedInterrupt(Exception):
    """Base for control signals that unwind word emission early."""


class QuitRequested(FeedInterrupt):
    """The user pressed q/Q: finish cleanly and stop the whole run."""


class SkipRequested(FeedInterrupt):
    """The user pressed n/N: abandon the current page and move to the next."""


class WordLimitReached(FeedInterrupt):
    """The configured word budget has been spent."""
