"""Shared test fixtures for the morsefeed test suite.

WHY: The pipeline, controller and CLI tests all need the same stand-ins
for the outside world: a player that acknowledges rows, a keyboard with
scripted keystrokes, a web server with canned pages. Centralizing them
keeps each test focused on behavior.

HOW: ACK_PLAYER_SCRIPT is a tiny Python program run as the player child
process: it logs every row it receives and answers "ok". FakeTerminal,
FakeFetcher and RecordingPlayer are in-process doubles.

RULES:
- No test touches the real terminal or the network
- Real child processes are only ever sys.executable
- Store files always live under tmp_path
"""

import sys
from typing import Dict, List, Optional

import pytest

from morsefeed.core.ir import FeedParams
from morsefeed.core.store import PositionStore
from morsefeed.core.writer import RowSink
from morsefeed.errors import FetchError


# ---------------------------------------------------------------------------
# Player child process
# ---------------------------------------------------------------------------

ACK_PLAYER_SCRIPT = (
    "import sys\n"
    "log = open(sys.argv[1], 'a')\n"
    "for line in sys.stdin:\n"
    "    log.write(line)\n"
    "    log.flush()\n"
    "    print('ok', flush=True)\n"
)


@pytest.fixture
def player_log(tmp_path):
    """Path of the file the acknowledging player appends rows to."""
    return tmp_path / "player.log"


@pytest.fixture
def ack_player_args(player_log):
    """Argument vector for a child process that acknowledges every row."""
    return [sys.executable, "-c", ACK_PLAYER_SCRIPT, str(player_log)]


# ---------------------------------------------------------------------------
# In-process doubles
# ---------------------------------------------------------------------------


class FakeTerminal:
    """Stands in for TerminalGuard with a scripted key sequence.

    None in the script means "no key pending" for that poll.
    """

    def __init__(self, keys: Optional[List[Optional[str]]] = None) -> None:
        self.keys = list(keys or [])
        self.acquired = 0
        self.released = 0
        self.active = False

    def acquire(self) -> bool:
        self.acquired += 1
        self.active = True
        return True

    def release(self) -> None:
        if self.active:
            self.released += 1
        self.active = False

    def read_key(self) -> Optional[str]:
        if not self.keys:
            return None
        return self.keys.pop(0)


class ListSink(RowSink):
    """Collects rows in a list."""

    def __init__(self) -> None:
        self.rows: List[str] = []

    def send_row(self, row: str) -> None:
        self.rows.append(row)


class RecordingPlayer(ListSink):
    """Player double: records rows and raises scripted interrupts.

    Args:
        interrupts: Maps the 0-based index of a word to the exception
            raised just before that word is laid out.
    """

    def __init__(self, interrupts: Optional[Dict[int, BaseException]] = None) -> None:
        super().__init__()
        self.interrupts = dict(interrupts or {})
        self.words_seen = 0
        self.started = False
        self.closed = False

    def before_word(self) -> None:
        index = self.words_seen
        self.words_seen += 1
        exc = self.interrupts.pop(index, None)
        if exc is not None:
            raise exc

    def __enter__(self):
        self.started = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True


class FakeFetcher:
    """Serves canned pages by URL and records every request."""

    def __init__(self, pages: Dict[str, bytes]) -> None:
        self.pages = dict(pages)
        self.requests: List[str] = []

    def fetch(self, url: str) -> bytes:
        self.requests.append(url)
        if url not in self.pages:
            raise FetchError(url, "Not Found", 404)
        return self.pages[url]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def list_sink():
    return ListSink()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "morsefeed-state"


@pytest.fixture
def store(store_path):
    return PositionStore(store_path)


@pytest.fixture
def text_file(tmp_path):
    """Factory writing bytes to a temp file and returning its path string."""

    def _make(content: bytes, name: str = "input.txt") -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)

    return _make


@pytest.fixture
def make_params(store_path):
    """Factory for FeedParams with the temp store path filled in."""

    def _make(**kwargs) -> FeedParams:
        kwargs.setdefault("state_path", str(store_path))
        return FeedParams(**kwargs)

    return _make


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch, tmp_path):
    """Point the default store at tmp_path for every test."""
    monkeypatch.setenv("MORSEFEED_STATE_FILE", str(tmp_path / "default-state"))


@pytest.fixture
def make_terminal():
    """The FakeTerminal class, for tests that script keystrokes."""
    return FakeTerminal


@pytest.fixture
def make_player():
    """The RecordingPlayer class, for pipeline tests."""
    return RecordingPlayer


@pytest.fixture
def make_fetcher():
    """The FakeFetcher class, for pipeline tests."""
    return FakeFetcher
