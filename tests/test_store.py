"""Unit tests for the position and option store.

WHY: The store file outlives every run. A parsing slip can lose every
saved position, or corrupt saved option sets the user cannot easily
recreate.

HOW: PositionStore is pointed at a file under tmp_path; the record format
helpers are tested on literal strings.

RULES:
- Records written by other tools must survive every update
- A missing file behaves like an empty store
"""

import pytest

from morsefeed.core.ir import FeedParams
from morsefeed.core.store import (
    PositionStore,
    escape_field,
    format_records,
    parse_records,
)
from morsefeed.errors import FeedIOError, UnknownLabelError


class TestRecordFormat:
    def test_escape(self):
        assert escape_field("a\tb\nc\rd\\e") == "a\\tb\\nc\\rd\\\\e"

    def test_parse_round_trip_of_special_key(self):
        records = [["position", "we\tird\nname\\", "7"]]
        assert parse_records(format_records(records)) == records

    def test_unknown_escape_yields_character(self):
        assert parse_records("a\\qb\n") == [["aqb"]]

    def test_trailing_backslash(self):
        assert parse_records("ab\\") == [["ab\\"]]

    def test_last_line_without_newline(self):
        assert parse_records("x\ty\nz") == [["x", "y"], ["z"]]

    def test_empty_fields(self):
        assert parse_records("a\t\tb\n") == [["a", "", "b"]]


class TestPositions:
    def test_write_read_and_remove(self, store, store_path):
        store.write_position("book.txt", 42)
        assert store.read_position("book.txt") == 42
        store.write_position("book.txt", 0)
        assert store.read_position("book.txt") == 0
        assert "book.txt" not in store_path.read_text(encoding="utf-8")

    def test_missing_file_reads_zero(self, store):
        assert store.read_position("anything") == 0

    def test_zero_without_record_writes_nothing(self, store, store_path):
        store.write_position("book.txt", 0)
        assert not store_path.exists()

    def test_update_in_place(self, store, store_path):
        store.write_position("a", 1)
        store.write_position("b", 2)
        store.write_position("a", 3)
        assert store_path.read_text(encoding="utf-8") == "position\ta\t3\nposition\tb\t2\n"

    def test_other_records_preserved(self, store, store_path):
        store_path.write_text("comment\tkept\nposition\ta\t5\textra\n", encoding="utf-8")
        store.write_position("a", 9)
        assert store_path.read_text(encoding="utf-8") == (
            "comment\tkept\nposition\ta\t5\textra\nposition\ta\t9\n"
        )

    def test_garbage_offset_reads_zero(self, store, store_path):
        store_path.write_text("position\ta\tlots\n", encoding="utf-8")
        assert store.read_position("a") == 0

    def test_write_failure(self, tmp_path):
        directory = tmp_path / "is-a-dir"
        directory.mkdir()
        with pytest.raises(FeedIOError):
            PositionStore(directory).write_position("a", 1)


class TestOptionSets:
    def test_round_trip(self, store):
        params = FeedParams(
            url="https://example.com/book/",
            words_per_row=3,
            use_player=True,
            follow_links=True,
            linked_text_after="<main>",
            freq=700.0,
            paris_wpm=20.0,
            farnsworth_wpm=12.5,
        )
        store.save_options("fav", params)
        loaded = store.load_options("fav")
        assert loaded == params

    def test_unset_values_written_as_defaults(self, store, store_path):
        store.save_options("empty", FeedParams())
        fields = store_path.read_text(encoding="utf-8").rstrip("\n").split("\t")
        assert len(fields) == 17
        assert fields[:2] == ["state", "empty"]
        assert fields[2:4] == ["", ""]
        assert fields[4:6] == ["-1", "-1"]
        assert fields[6:9] == ["0", "0", "0"]
        assert fields[13:] == ["      -1.000"] * 4

    def test_replace_existing_label(self, store):
        store.save_options("x", FeedParams(words_per_row=2))
        store.save_options("x", FeedParams(words_per_row=7))
        assert store.load_options("x").words_per_row == 7

    def test_print_fcc_and_state_path_not_stored(self, store):
        store.save_options("x", FeedParams(print_fcc_wpm=True, state_path="/tmp/s"))
        loaded = store.load_options("x")
        assert loaded.print_fcc_wpm is False
        assert loaded.state_path is None

    def test_unknown_label(self, store):
        store.write_position("a", 1)
        with pytest.raises(UnknownLabelError, match="nope"):
            store.load_options("nope")

    def test_positions_and_options_share_file(self, store):
        store.write_position("book", 10)
        store.save_options("fav", FeedParams(words_per_row=4))
        store.write_position("book", 20)
        assert store.load_options("fav").words_per_row == 4
        assert store.read_position("book") == 20
