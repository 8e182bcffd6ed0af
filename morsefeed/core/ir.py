"""Intermediate representation dataclasses for the feed pipeline.

WHY: The source, tokenizer, row writer and store all exchange a handful
of small values — spans, words, links, the parameter record. Giving each
one a typed home decouples the stages and keeps the tests readable.

HOW: Plain dataclasses plus one enum:
  ByteSpan   — active [start, end) window into a source buffer
  LinkEntry  — one (url, title) pair found on an index page
  WordKind   — what a Word is, which decides how it is counted
  Word       — one output unit produced by the tokenizer
  FeedParams — the fully-populated parameter record the CLI hands over
  FeedResult — what a run did, for the caller to report

RULES:
- ByteSpan always satisfies 0 <= start <= end
- Only TEXT and NAMED words count against the word budget
- FILLER words do not advance the row slot index; everything else does
- None in FeedParams means "not set" (the store writes it as -1 or "")
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ByteSpan:
    """Active byte window into a buffer: [start, end)."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end:
            raise ValueError("invalid span [{}, {})".format(self.start, self.end))

    def __len__(self) -> int:
        return self.end - self.start


@dataclass
class LinkEntry:
    """A link found on an index page, in order of appearance.

    RULES:
    - url is absolute (resolved against the page URL)
    - title is the anchor text, possibly empty, at most TITLE_SIZE - 1 chars
    """

    url: str
    title: str = ""


class WordKind(str, enum.Enum):
    """Classification of an output word.

    WHY: Row layout and the word budget treat words differently. A filler
    space keeps adjacent words apart but is not a word to practice; a list
    separator takes a row slot but should not use up the budget.

    RULES:
    - TEXT: accumulated letters/digits/. , ? / — counts, takes a slot
    - NAMED: spelled-out punctuation or symbol — counts, takes a slot
    - SEPARATOR: "|" for </li> and "=" between pages — takes a slot only
    - FILLER: the " " emitted for other tags — neither counts nor advances
    """

    TEXT = "text"
    NAMED = "named"
    SEPARATOR = "separator"
    FILLER = "filler"


@dataclass(frozen=True)
class Word:
    """One unit of normalized output text."""

    text: str
    kind: WordKind = WordKind.TEXT

    @property
    def counts(self) -> bool:
        """True when the word uses up one unit of the word budget."""
        return self.kind in (WordKind.TEXT, WordKind.NAMED)

    @property
    def advances(self) -> bool:
        """True when the word moves the row slot index forward."""
        return self.kind is not WordKind.FILLER


FILLER = Word(" ", WordKind.FILLER)
LIST_SEPARATOR = Word("|", WordKind.SEPARATOR)
PAGE_SEPARATOR = Word("=", WordKind.SEPARATOR)


@dataclass
class FeedParams:
    """Fully-populated parameter record for one run.

    WHY: The CLI parses and validates flags; everything downstream works
    from this one record, which is also what a saved option set stores.

    RULES:
    - Exactly one of in_file_name / url is normally set; neither means stdin
    - paris_wpm wins over codex_wpm when both are set
    - words_per_row None means "default for the chosen sink"
    - state_path is never stored in a saved option set
    """

    in_file_name: Optional[str] = None
    url: Optional[str] = None
    out_file_name: Optional[str] = None

    words_per_row: Optional[int] = None
    word_count: Optional[int] = None
    use_player: bool = False
    save_position: bool = False
    follow_links: bool = False

    text_after: Optional[str] = None
    text_before: Optional[str] = None
    linked_text_after: Optional[str] = None
    linked_text_before: Optional[str] = None

    freq: Optional[float] = None
    paris_wpm: Optional[float] = None
    codex_wpm: Optional[float] = None
    farnsworth_wpm: Optional[float] = None
    print_fcc_wpm: bool = False

    state_path: Optional[str] = None

    @property
    def source_id(self) -> Optional[str]:
        """Key used for the resume position: the URL, else the input path."""
        return self.url if self.url is not None else self.in_file_name


@dataclass
class FeedResult:
    """Summary of a finished run."""

    words: int = 0
    rows: int = 0
    quit: bool = False
    limit_reached: bool = False
    pages: int = 0
    positions: dict[str, int] = field(default_factory=dict)
