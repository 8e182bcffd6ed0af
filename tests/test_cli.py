"""Tests for the command-line interface.

WHY: The CLI is the only user-facing surface. Range checks, flag
dependencies and saved option sets must behave exactly as documented in
--help, and errors must come out as one readable line with a non-zero
exit status.

HOW: build_parser() is tested directly; main() is called with explicit
argv lists and its stdout/stderr captured with capsys. The store file is
redirected to tmp_path by the autouse fixture in conftest.py.

RULES:
- No test plays audio (the player is never requested from main())
- Usage errors are SystemExit(2) raised by argparse
"""

import pytest

from morsefeed import __version__
from morsefeed.cli import build_params, build_parser, main
from morsefeed.core.store import PositionStore
from morsefeed.errors import NoStatePathError


class TestParser:
    def test_defaults_are_unset(self):
        args = build_parser().parse_args([])
        assert args.input_file is None
        assert args.words_per_row is None
        assert args.mbeep is None
        assert args.save_position is None

    def test_all_flags(self):
        args = build_parser().parse_args([
            "-u", "https://example.com/", "-L", "-A", "<main>", "-B", "</main>",
            "-a", "start", "-b", "end", "-o", "out.txt", "-c", "3", "-n", "50",
            "-m", "-p", "-f", "700", "-w", "20", "--codex-wpm", "18", "-x", "12", "--fcc",
        ])
        assert args.url == "https://example.com/"
        assert args.follow_links is True
        assert args.linked_text_after == "<main>"
        assert args.words_per_row == 3
        assert args.word_count == 50
        assert args.freq == 700.0
        assert args.paris_wpm == 20.0
        assert args.codex_wpm == 18.0
        assert args.farnsworth_wpm == 12.0
        assert args.fcc is True

    def test_long_aliases(self):
        args = build_parser().parse_args(["--mbeep", "--paris-wpm", "25", "--farnsworth", "10"])
        assert args.mbeep is True
        assert args.paris_wpm == 25.0
        assert args.farnsworth_wpm == 10.0

    @pytest.mark.parametrize("argv", [
        ["-c", "0"],
        ["-c", "101"],
        ["-c", "many"],
        ["-n", "0"],
        ["-f", "19"],
        ["-f", "20001"],
        ["-w", "4"],
        ["--codex-wpm", "61"],
        ["-x", "fast"],
    ])
    def test_out_of_range(self, argv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(argv)
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("argv", [["-c", "1"], ["-c", "100"], ["-f", "20"], ["-w", "60"]])
    def test_range_limits_accepted(self, argv):
        build_parser().parse_args(argv)

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "morsefeed {}".format(__version__)

    def test_license(self, capsys):
        assert main(["--license"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Copyright (C) 2018-2021")
        assert "ADVISED OF THE POSSIBILITY OF SUCH DAMAGE." in out


class TestMain:
    def test_file_to_stdout(self, text_file, capsys):
        path = text_file(b"Hello, world!")
        assert main(["-i", path, "-c", "2"]) == 0
        assert capsys.readouterr().out == "HELLO, WORLD\nexclamation\n"

    def test_file_to_file(self, text_file, tmp_path):
        out = tmp_path / "out.txt"
        assert main(["-i", text_file(b"abc def"), "-o", str(out)]) == 0
        assert out.read_text(encoding="utf-8") == "ABC DEF\n"

    def test_word_count(self, text_file, capsys):
        assert main(["-i", text_file(b"a b c d"), "-n", "3"]) == 0
        assert capsys.readouterr().out == "A B C\n"

    def test_missing_file(self, tmp_path, capsys):
        assert main(["-i", str(tmp_path / "nope.txt")]) == 1
        assert capsys.readouterr().err.startswith("Error: unable to open")

    def test_links_require_url(self, text_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-i", text_file(b"x"), "-L"])
        assert exc_info.value.code == 2
        assert "-L requires -u" in capsys.readouterr().err

    def test_position_requires_named_input(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-p"])
        assert exc_info.value.code == 2

    def test_position_round_trip(self, text_file, capsys, tmp_path):
        path = text_file(b"one two three")
        assert main(["-i", path, "-p", "-n", "2"]) == 0
        assert capsys.readouterr().out == "ONE TWO\n"
        store = PositionStore(tmp_path / "default-state")
        assert store.read_position(path) == 4
        assert main(["-i", path, "-p"]) == 0
        assert capsys.readouterr().out == "TWO THREE\n"
        assert store.read_position(path) == 0


class TestSavedOptions:
    def test_save_then_restore(self, text_file, capsys):
        path = text_file(b"a b c d")
        assert main(["-i", path, "-c", "2", "-s", "pairs"]) == 0
        assert capsys.readouterr().out == "A B\nC D\n"

        assert main(["-r", "pairs"]) == 0
        assert capsys.readouterr().out == "A B\nC D\n"

    def test_explicit_flags_override(self, text_file, capsys):
        path = text_file(b"a b c d")
        main(["-i", path, "-c", "2", "-s", "pairs"])
        capsys.readouterr()
        assert main(["-r", "pairs", "-c", "4"]) == 0
        assert capsys.readouterr().out == "A B C D\n"

    def test_unknown_label(self, capsys):
        assert main(["-r", "missing"]) == 1
        assert "no saved options named 'missing'" in capsys.readouterr().err

    def test_no_store_path(self, monkeypatch):
        monkeypatch.delenv("MORSEFEED_STATE_FILE")
        monkeypatch.delenv("HOME", raising=False)
        args = build_parser().parse_args(["-r", "fav"])
        with pytest.raises(NoStatePathError):
            build_params(args)

    def test_no_store_path_reported(self, monkeypatch, text_file, capsys):
        monkeypatch.delenv("MORSEFEED_STATE_FILE")
        monkeypatch.delenv("HOME", raising=False)
        assert main(["-i", text_file(b"x"), "-p"]) == 1
        assert capsys.readouterr().err.startswith("Error: no store file")
