"""Player process control: spawn, row protocol, keyboard.

WHY: The tone generator runs as a child process. It reads one row per
line on its stdin, keys it, and writes one line back on stdout when it
is done. Waiting for that acknowledgment is what keeps the text and
the sound in step, and what lets pause/skip/quit act between words.

HOW: PlaybackController is a RowSink. start() spawns the player with
subprocess.Popen, both ends piped, and (with key control) puts the
terminal into key mode. send_row() writes the row and blocks on the
acknowledgment. before_word() polls the keyboard: space toggles pause
(and spins until resumed), q quits, n skips. close() closes the pipes,
waits for the child and restores the terminal.

RULES:
- States: idle -> spawned -> streaming <-> paused -> terminating -> idle
- The player is always started with echo mode and the row-ack protocol
- An empty or failed acknowledgment read is a PipeError
- close() is safe to call more than once and from error paths
"""

from __future__ import annotations

import enum
import logging
import subprocess
import time
from typing import Callable, List, Optional

from morsefeed.config import PAUSE_POLL_INTERVAL_S, PAUSE_SETTLE_S, PLAYER_COMMAND
from morsefeed.core.ir import FeedParams
from morsefeed.core.writer import RowSink
from morsefeed.errors import PipeError, ProcessSpawnError, QuitRequested, SkipRequested
from morsefeed.playback.terminal import SignalGuard, TerminalGuard

logger = logging.getLogger(__name__)

PAUSE_KEY = " "
QUIT_KEYS = ("q", "Q")
SKIP_KEYS = ("n", "N")


class PlayerState(str, enum.Enum):
    """Lifecycle of one player session."""

    IDLE = "idle"
    SPAWNED = "spawned"
    STREAMING = "streaming"
    PAUSED = "paused"
    TERMINATING = "terminating"


def build_player_args(
    freq: Optional[float] = None,
    paris_wpm: Optional[float] = None,
    codex_wpm: Optional[float] = None,
    farnsworth_wpm: Optional[float] = None,
    print_fcc_wpm: bool = False,
    command: str = PLAYER_COMMAND,
) -> List[str]:
    """Build the player's argument vector.

    RULES:
    - Always: command, -e (echo), -I (row-ack protocol)
    - paris_wpm wins over codex_wpm
    - Numbers are formatted with three decimals
    - -c (read from stdin) is always last
    """
    args = [command, "-e", "-I"]
    if freq is not None:
        args += ["-f", "%.3f" % freq]
    if paris_wpm is not None:
        args += ["-w", "%.3f" % paris_wpm]
    elif codex_wpm is not None:
        args += ["--codex-wpm", "%.3f" % codex_wpm]
    if farnsworth_wpm is not None:
        args += ["-x", "%.3f" % farnsworth_wpm]
    if print_fcc_wpm:
        args.append("--fcc")
    args.append("-c")
    return args


class PlaybackController(RowSink):
    """One session with the external player.

    Args:
        args: Player argument vector (see build_player_args()).
        key_control: Poll the keyboard for pause/skip/quit.
        terminal: Terminal guard for key mode (defaults to stdin).
        install_signals: Install the terminal-restoring signal handlers.
        sleep: Sleep function (replaced in tests).
    """

    def __init__(
        self,
        args: List[str],
        key_control: bool = False,
        terminal: Optional[TerminalGuard] = None,
        install_signals: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.args = list(args)
        self.key_control = key_control
        self.terminal = terminal or TerminalGuard()
        self._signals = SignalGuard(self.terminal) if install_signals else None
        self._sleep = sleep
        self._process: Optional[subprocess.Popen] = None
        self.state = PlayerState.IDLE

    @classmethod
    def from_params(cls, params: FeedParams, key_control: bool = False) -> PlaybackController:
        return cls(
            build_player_args(
                freq=params.freq,
                paris_wpm=params.paris_wpm,
                codex_wpm=params.codex_wpm,
                farnsworth_wpm=params.farnsworth_wpm,
                print_fcc_wpm=params.print_fcc_wpm,
            ),
            key_control=key_control,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spawn the player and enter key mode if requested.

        Raises:
            ProcessSpawnError: If the executable cannot be started.
        """
        if self.state is not PlayerState.IDLE:
            raise RuntimeError("player already started")
        logger.debug("starting player: %s", " ".join(self.args))
        try:
            self._process = subprocess.Popen(
                self.args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            raise ProcessSpawnError(
                "unable to start {}: {}".format(self.args[0], exc)
            ) from exc
        self.state = PlayerState.SPAWNED

        try:
            if self._signals is not None:
                self._signals.install()
            if self.key_control and not self.terminal.acquire():
                self.key_control = False
        except BaseException:
            self.close()
            raise

    def close(self) -> Optional[int]:
        """Close both pipes, wait for the player and restore the terminal.

        Returns:
            The player's exit status, or None if it was never started.
        """
        process, self._process = self._process, None
        if process is None:
            self._restore()
            return None

        self.state = PlayerState.TERMINATING
        status = None
        try:
            for pipe in (process.stdin, process.stdout):
                if pipe is None:
                    continue
                try:
                    pipe.close()
                except OSError as exc:
                    logger.debug("error closing player pipe: %s", exc)
            status = process.wait()
            logger.debug("player exited with status %s", status)
        finally:
            self._restore()
            self.state = PlayerState.IDLE
        return status

    def _restore(self) -> None:
        self.terminal.release()
        if self._signals is not None:
            self._signals.release()

    def __enter__(self) -> PlaybackController:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    # ------------------------------------------------------------------
    # RowSink
    # ------------------------------------------------------------------

    def send_row(self, row: str) -> None:
        """Write one row and wait for the player's acknowledgment.

        Raises:
            PipeError: On write failure or a missing acknowledgment.
        """
        process = self._process
        if process is None or process.stdin is None or process.stdout is None:
            raise PipeError("player is not running")
        if self.state is PlayerState.SPAWNED:
            self.state = PlayerState.STREAMING

        try:
            process.stdin.write(row.encode("utf-8") + b"\n")
            process.stdin.flush()
            ack = process.stdout.readline()
        except OSError as exc:
            raise PipeError("error talking to player: {}".format(exc)) from exc
        if not ack:
            raise PipeError("player closed its output without acknowledging")

    def before_word(self) -> None:
        if self.key_control:
            self.check_keys()

    def check_keys(self) -> None:
        """Handle pending keystrokes; blocks here while paused.

        Raises:
            QuitRequested: On q or Q.
            SkipRequested: On n or N.
        """
        paused = False
        while True:
            key = self.terminal.read_key()
            if key == PAUSE_KEY:
                paused = not paused
                if paused:
                    self.state = PlayerState.PAUSED
                    self._sleep(PAUSE_SETTLE_S)
                else:
                    self.state = PlayerState.STREAMING
            elif key in QUIT_KEYS:
                self.state = PlayerState.STREAMING
                raise QuitRequested()
            elif key in SKIP_KEYS:
                self.state = PlayerState.STREAMING
                raise SkipRequested()

            if not paused:
                return
            if key is None:
                self._sleep(PAUSE_POLL_INTERVAL_S)
