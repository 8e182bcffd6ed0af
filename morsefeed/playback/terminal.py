"""Terminal mode and signal handling for key control.

WHY: Pause, skip and quit are single keystrokes read without Enter and
without blocking playback. That needs the terminal out of canonical
mode with echo off and stdin non-blocking, and a user must never be left
with a broken shell, however the program ends.

HOW: TerminalGuard saves the terminal attributes and file status flags,
switches to raw-ish input and restores both on release(). SignalGuard
installs handlers for the termination signals; each handler reports the
signal, releases the terminal and exits immediately.

RULES:
- acquire() is a no-op (returns False) when the descriptor is not a tty
- release() restores at most once per acquire()
- A signal handler exits with status 1, except SIGCHLD which is ignored
- SIGSEGV is left to faulthandler, which dumps every thread's stack but
  cannot restore the terminal; after a crash in key mode run `stty sane`
- SignalGuard.release() puts the previous handlers back
"""

from __future__ import annotations

import faulthandler
import fcntl
import logging
import os
import signal
import termios
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

_STDERR_FD = 2

HANDLED_SIGNALS = (
    "SIGINT",
    "SIGHUP",
    "SIGQUIT",
    "SIGTERM",
    "SIGPIPE",
    "SIGCHLD",
    "SIGTSTP",
)


class TerminalGuard:
    """Single-keystroke, non-blocking input on one file descriptor."""

    def __init__(self, fd: int = 0) -> None:
        self.fd = fd
        self._saved_attrs: Optional[list] = None
        self._saved_flags: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._saved_attrs is not None

    def acquire(self) -> bool:
        """Switch the terminal to key mode.

        Returns:
            True when key mode is active, False when fd is not a terminal.
        """
        if self.active:
            return True
        if not os.isatty(self.fd):
            logger.debug("fd %d is not a terminal, key control disabled", self.fd)
            return False

        attrs = termios.tcgetattr(self.fd)
        flags = fcntl.fcntl(self.fd, fcntl.F_GETFL)
        self._saved_attrs = attrs
        self._saved_flags = flags

        raw = termios.tcgetattr(self.fd)
        raw[3] &= ~(termios.ECHO | termios.ICANON)
        termios.tcsetattr(self.fd, termios.TCSANOW, raw)
        fcntl.fcntl(self.fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)
        return True

    def release(self) -> None:
        """Restore the saved terminal attributes and flags (once)."""
        attrs, flags = self._saved_attrs, self._saved_flags
        self._saved_attrs = None
        self._saved_flags = None
        if attrs is None:
            return
        try:
            termios.tcsetattr(self.fd, termios.TCSANOW, attrs)
            fcntl.fcntl(self.fd, fcntl.F_SETFL, flags)
        except (OSError, termios.error) as exc:
            logger.warning("could not restore terminal: %s", exc)

    def read_key(self) -> Optional[str]:
        """Return one pending keystroke, or None when nothing is waiting."""
        if not self.active:
            return None
        try:
            data = os.read(self.fd, 1)
        except BlockingIOError:
            return None
        if not data:
            return None
        return data.decode("latin-1")

    def __enter__(self) -> TerminalGuard:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.release()


class SignalGuard:
    """Restores the terminal and exits when a termination signal arrives.

    Args:
        terminal: Guard to release from the handler.
        exit_fn: Process exit function (replaced in tests).
    """

    def __init__(
        self,
        terminal: TerminalGuard,
        exit_fn: Callable[[int], None] = os._exit,
    ) -> None:
        self.terminal = terminal
        self._exit = exit_fn
        self._previous: Dict[int, object] = {}
        self._enabled_faulthandler = False

    @property
    def installed(self) -> bool:
        return bool(self._previous)

    def install(self) -> None:
        if not faulthandler.is_enabled():
            faulthandler.enable()
            self._enabled_faulthandler = True
        for name in HANDLED_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous[signum] = signal.signal(signum, self.handle)

    def release(self) -> None:
        previous, self._previous = self._previous, {}
        for signum, handler in previous.items():
            signal.signal(signum, handler)
        if self._enabled_faulthandler:
            faulthandler.disable()
            self._enabled_faulthandler = False

    def handle(self, signum: int, frame) -> None:  # noqa: ANN001
        if signum == getattr(signal, "SIGCHLD", None):
            return
        name = signal.Signals(signum).name
        os.write(_STDERR_FD, " signal_handler({})\n".format(name).encode())
        self.terminal.release()
        self._exit(1)

    def __enter__(self) -> SignalGuard:
        self.install()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.release()
