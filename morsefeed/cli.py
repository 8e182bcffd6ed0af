"""Command-line interface for morsefeed.

WHY: Users practice from the terminal: point the tool at a text file or
a web page and either write the normalized words out, or have them keyed
by the tone generator with pause, skip and quit on single keys. The CLI
turns flags (or a saved option set) into one FeedParams and runs the
pipeline.

HOW: argparse parses and range-checks the flags. Every option defaults
to None so that, with -r, only the flags actually given override the
loaded option set. -s stores the resulting option set before running.
Errors are printed as "Error: ..." on stderr; status lines (linked page
titles while playing) go to stderr too, so stdout stays clean.

RULES:
- -L requires -u; -p requires -i or -u
- -p, -s and -r need a store path ($HOME/.morsefeed or MORSEFEED_STATE_FILE)
- -c 1..100, -n >= 1, -f 20..20000, speeds 5..60
- Exit status: 0 success, 1 runtime error, 2 usage error, 130 Ctrl-C
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, List, Optional

from morsefeed import __version__
from morsefeed.config import LOG_LEVEL, MAX_WORDS_PER_ROW, default_state_path
from morsefeed.core.ir import FeedParams
from morsefeed.core.store import PositionStore
from morsefeed.errors import MorseFeedError, NoStatePathError
from morsefeed.pipeline import run_feed

logger = logging.getLogger(__name__)

MIN_FREQ = 20.0
MAX_FREQ = 20000.0
MIN_WPM = 5.0
MAX_WPM = 60.0

LICENSE_TEXT = """\
Copyright (C) 2018-2021 Michael Budiansky. All rights reserved.

Redistribution and use in source and binary forms, with or without modification, are permitted
provided that the following conditions are met:

Redistributions of source code must retain the above copyright notice, this list of conditions
and the following disclaimer.

Redistributions in binary form must reproduce the above copyright notice, this list of conditions
and the following disclaimer in the documentation and/or other materials provided with the
distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR
IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND
FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE,
DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY,
WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY
WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

# (argparse dest, FeedParams attribute)
_PARAM_FLAGS = (
    ("input_file", "in_file_name"),
    ("url", "url"),
    ("output_file", "out_file_name"),
    ("words_per_row", "words_per_row"),
    ("word_count", "word_count"),
    ("mbeep", "use_player"),
    ("save_position", "save_position"),
    ("follow_links", "follow_links"),
    ("text_after", "text_after"),
    ("text_before", "text_before"),
    ("linked_text_after", "linked_text_after"),
    ("linked_text_before", "linked_text_before"),
    ("freq", "freq"),
    ("paris_wpm", "paris_wpm"),
    ("codex_wpm", "codex_wpm"),
    ("farnsworth_wpm", "farnsworth_wpm"),
    ("fcc", "print_fcc_wpm"),
)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _int_range(low: int, high: Optional[int] = None) -> Callable[[str], int]:
    def convert(text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError("invalid integer: '{}'".format(text))
        if value < low or (high is not None and value > high):
            if high is None:
                raise argparse.ArgumentTypeError("must be at least {}".format(low))
            raise argparse.ArgumentTypeError("must be between {} and {}".format(low, high))
        return value

    return convert


def _float_range(low: float, high: float) -> Callable[[str], float]:
    def convert(text: str) -> float:
        try:
            value = float(text)
        except ValueError:
            raise argparse.ArgumentTypeError("invalid number: '{}'".format(text))
        if not low <= value <= high:
            raise argparse.ArgumentTypeError("must be between {:g} and {:g}".format(low, high))
        return value

    return convert


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running the pipeline.

    RULES:
    - Every option that maps onto FeedParams defaults to None
    - Boolean flags are store_true with default None, so "not given"
      is distinguishable from "given"
    """
    parser = argparse.ArgumentParser(
        prog="morsefeed",
        description="Convert prose from a file or web page into upper-case words "
                    "for Morse code practice, optionally keyed by mbeep.",
    )

    source = parser.add_argument_group("input")
    source.add_argument("-i", dest="input_file", metavar="FILE",
                        help="Read text from FILE (default: stdin).")
    source.add_argument("-u", dest="url", metavar="URL",
                        help="Read a web page; HTML tags and entities are filtered.")
    source.add_argument("-a", dest="text_after", metavar="TEXT",
                        help="Start after the first occurrence of TEXT.")
    source.add_argument("-b", dest="text_before", metavar="TEXT",
                        help="Stop before the first occurrence of TEXT.")
    source.add_argument("-L", dest="follow_links", action="store_true", default=None,
                        help="Read every page linked from the -u page, in order.")
    source.add_argument("-A", dest="linked_text_after", metavar="TEXT",
                        help="On linked pages, start after TEXT.")
    source.add_argument("-B", dest="linked_text_before", metavar="TEXT",
                        help="On linked pages, stop before TEXT.")

    output = parser.add_argument_group("output")
    output.add_argument("-o", dest="output_file", metavar="FILE",
                        help="Write words to FILE (default: stdout).")
    output.add_argument("-c", dest="words_per_row", metavar="N",
                        type=_int_range(1, MAX_WORDS_PER_ROW),
                        help="Words per row, 1-{} (default: 5, or 1 with -m).".format(
                            MAX_WORDS_PER_ROW))
    output.add_argument("-n", dest="word_count", metavar="N", type=_int_range(1),
                        help="Stop after N words.")
    output.add_argument("-p", dest="save_position", action="store_true", default=None,
                        help="Resume where the last run on this input stopped.")

    player = parser.add_argument_group("player")
    player.add_argument("-m", "--mbeep", dest="mbeep", action="store_true", default=None,
                        help="Key the words with mbeep (space pauses, n skips, q quits).")
    player.add_argument("-f", dest="freq", metavar="HZ",
                        type=_float_range(MIN_FREQ, MAX_FREQ),
                        help="Tone frequency, {:g}-{:g} Hz.".format(MIN_FREQ, MAX_FREQ))
    player.add_argument("-w", "--paris-wpm", dest="paris_wpm", metavar="WPM",
                        type=_float_range(MIN_WPM, MAX_WPM),
                        help="Speed in PARIS words per minute.")
    player.add_argument("--codex-wpm", dest="codex_wpm", metavar="WPM",
                        type=_float_range(MIN_WPM, MAX_WPM),
                        help="Speed in CODEX words per minute (ignored with -w).")
    player.add_argument("-x", "--farnsworth", dest="farnsworth_wpm", metavar="WPM",
                        type=_float_range(MIN_WPM, MAX_WPM),
                        help="Farnsworth character speed.")
    player.add_argument("--fcc", dest="fcc", action="store_true", default=None,
                        help="Have mbeep print the effective FCC speed.")

    saved = parser.add_argument_group("saved options")
    saved.add_argument("-s", dest="save_label", metavar="LABEL",
                       help="Save these options under LABEL, then run.")
    saved.add_argument("-r", dest="restore_label", metavar="LABEL",
                       help="Load options saved under LABEL; other flags override.")

    parser.add_argument("-v", "--version", action="version",
                        version="%(prog)s {}".format(__version__))
    parser.add_argument("--license", action="store_true",
                        help="Show the copyright and license, then exit.")
    parser.add_argument("--debug", action="store_true",
                        help="Log debug messages to stderr.")
    return parser


def _store_path() -> str:
    path = default_state_path()
    if path is None:
        raise NoStatePathError("no store file: set HOME or MORSEFEED_STATE_FILE")
    return str(path)


def build_params(args: argparse.Namespace) -> FeedParams:
    """Merge a saved option set (with -r) and the explicit flags.

    Raises:
        NoStatePathError: If -r is given and no store path is known.
        UnknownLabelError: If nothing is saved under the -r label.
    """
    if args.restore_label:
        params = PositionStore(_store_path()).load_options(args.restore_label)
    else:
        params = FeedParams()

    for dest, attr in _PARAM_FLAGS:
        value = getattr(args, dest)
        if value is not None:
            setattr(params, attr, value)

    if params.save_position or args.save_label:
        params.state_path = _store_path()
    return params


def _check_params(parser: argparse.ArgumentParser, params: FeedParams) -> None:
    if params.follow_links and not params.url:
        parser.error("-L requires -u")
    if params.save_position and not params.source_id:
        parser.error("-p requires -i or -u")


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    WHY: This is the function that __main__.py calls and that users
    invoke via ``morsefeed`` or ``python -m morsefeed``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the exit status instead of calling sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.license:
        print(LICENSE_TEXT, end="")
        return 0
    _configure_logging(args.debug)

    try:
        params = build_params(args)
        _check_params(parser, params)

        if args.save_label:
            PositionStore(params.state_path).save_options(args.save_label, params)
            logger.info("saved options as %s", args.save_label)

        result = run_feed(params, on_status=_status if params.use_player else None)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        return 130
    except MorseFeedError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    logger.info("%d words in %d rows", result.words, result.rows)
    return 0


if __name__ == "__main__":
    sys.exit(main())
