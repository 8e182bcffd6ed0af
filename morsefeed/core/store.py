"""Persistent positions and saved option sets.

WHY: Practice sessions are short and documents are long. The store
remembers, per source, the byte offset where reading stopped, and keeps
named option sets so a favourite configuration is one flag away.

HOW: One tab-separated text file, one record per line. Two record
shapes share it:

  position <TAB> source_id <TAB> offset
  state <TAB> label <TAB> 15 option fields (see OPTION_FIELDS)

Every update is read-modify-write of the whole file. Fields are escaped
so tabs, newlines and backslashes survive.

RULES:
- A missing store file reads as empty
- Records of any other shape are preserved untouched
- Writing offset 0 removes the position record (nothing is written when
  there was none)
- In option records unset numbers are -1 and unset strings are empty;
  floats are written "%12.3f"
- Escapes: \\t \\n \\r \\\\; an unknown escape yields the character itself,
  a lone trailing backslash yields a backslash
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from morsefeed.core.ir import FeedParams
from morsefeed.errors import FeedIOError, UnknownLabelError

logger = logging.getLogger(__name__)

Record = List[str]

POSITION_TAG = "position"
STATE_TAG = "state"
POSITION_FIELDS = 3

DEFAULT = -1

# (attribute, kind) in record order after the label
OPTION_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("in_file_name", "str"),
    ("url", "str"),
    ("words_per_row", "int"),
    ("word_count", "int"),
    ("use_player", "bool"),
    ("save_position", "bool"),
    ("follow_links", "bool"),
    ("text_after", "str"),
    ("text_before", "str"),
    ("linked_text_after", "str"),
    ("linked_text_before", "str"),
    ("freq", "float"),
    ("paris_wpm", "float"),
    ("codex_wpm", "float"),
    ("farnsworth_wpm", "float"),
)
STATE_FIELDS = 2 + len(OPTION_FIELDS)

_ESCAPES = {"\t": "\\t", "\n": "\\n", "\r": "\\r", "\\": "\\\\"}
_UNESCAPES = {"t": "\t", "n": "\n", "r": "\r", "\\": "\\"}


# ---------------------------------------------------------------------------
# Record format
# ---------------------------------------------------------------------------


def escape_field(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def format_records(records: List[Record]) -> str:
    return "".join(
        "\t".join(escape_field(field) for field in record) + "\n"
        for record in records
    )


def parse_records(text: str) -> List[Record]:
    """Split store text into records of unescaped fields."""
    records: List[Record] = []
    fields: Record = []
    cell: List[str] = []
    index = 0
    size = len(text)

    while index < size:
        ch = text[index]
        if ch == "\\":
            index += 1
            if index < size:
                cell.append(_UNESCAPES.get(text[index], text[index]))
            else:
                cell.append("\\")
        elif ch == "\t":
            fields.append("".join(cell))
            cell = []
        elif ch == "\n":
            fields.append("".join(cell))
            records.append(fields)
            fields, cell = [], []
        else:
            cell.append(ch)
        index += 1

    if cell or fields:
        fields.append("".join(cell))
        records.append(fields)
    return records


def _find(records: List[Record], tag: str, key: str, size: int) -> Optional[int]:
    for index, record in enumerate(records):
        if len(record) == size and record[0] == tag and record[1] == key:
            return index
    return None


# ---------------------------------------------------------------------------
# Option field conversion
# ---------------------------------------------------------------------------


def _format_option(value: object, kind: str) -> str:
    if kind == "str":
        return "" if value is None else str(value)
    if kind == "bool":
        return "1" if value else "0"
    if kind == "int":
        return str(DEFAULT if value is None else value)
    return "%12.3f" % (DEFAULT if value is None else value)


def _parse_option(text: str, kind: str) -> object:
    if kind == "str":
        return text or None
    if kind == "bool":
        return _to_int(text) != 0
    if kind == "int":
        number = _to_int(text)
        return None if number == DEFAULT else number
    try:
        number = float(text.strip())
    except ValueError:
        return None
    return None if number < 0 else number


def _to_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return DEFAULT


class PositionStore:
    """Reads and writes the store file.

    WHY: The pipeline and the CLI should not care about the file format,
    only about "where did I stop in X" and "what options are called Y".

    RULES:
    - Every method re-reads the file; nothing is cached between calls
    - Write failures raise FeedIOError
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> List[Record]:
        try:
            with open(self.path, encoding="utf-8", newline="") as f:
                return parse_records(f.read())
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise FeedIOError("error reading {}: {}".format(self.path, exc)) from exc

    def _save(self, records: List[Record]) -> None:
        try:
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(format_records(records))
        except OSError as exc:
            raise FeedIOError("error writing {}: {}".format(self.path, exc)) from exc

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def read_position(self, source_id: str) -> int:
        """Saved offset for source_id, or 0 when none is stored."""
        records = self._load()
        index = _find(records, POSITION_TAG, source_id, POSITION_FIELDS)
        if index is None:
            return 0
        offset = _to_int(records[index][2])
        if offset < 0:
            logger.warning("ignoring bad position %r for %s", records[index][2], source_id)
            return 0
        return offset

    def write_position(self, source_id: str, offset: int) -> None:
        """Store offset for source_id; 0 removes the record."""
        records = self._load()
        index = _find(records, POSITION_TAG, source_id, POSITION_FIELDS)
        if offset == 0:
            if index is None:
                return
            del records[index]
        elif index is None:
            records.append([POSITION_TAG, source_id, str(offset)])
        else:
            records[index][2] = str(offset)
        self._save(records)
        logger.debug("position for %s set to %d", source_id, offset)

    # ------------------------------------------------------------------
    # Saved option sets
    # ------------------------------------------------------------------

    def save_options(self, label: str, params: FeedParams) -> None:
        """Insert or replace the option set stored under label."""
        record = [STATE_TAG, label] + [
            _format_option(getattr(params, name), kind) for name, kind in OPTION_FIELDS
        ]
        records = self._load()
        index = _find(records, STATE_TAG, label, STATE_FIELDS)
        if index is None:
            records.append(record)
        else:
            records[index] = record
        self._save(records)

    def load_options(self, label: str) -> FeedParams:
        """Return the option set stored under label.

        Raises:
            UnknownLabelError: If no record carries that label.
        """
        records = self._load()
        index = _find(records, STATE_TAG, label, STATE_FIELDS)
        if index is None:
            raise UnknownLabelError(label)
        values = records[index][2:]
        params = FeedParams()
        for (name, kind), text in zip(OPTION_FIELDS, values):
            setattr(params, name, _parse_option(text, kind))
        return params
