"""Wait for readable descriptors and for signals in one call."""

from __future__ import annotations

import select as _select
import signal as _signal
import sys
from types import FrameType
from typing import ClassVar

from moshutil.assertions import fatal_assert
from moshutil.timestamp import freeze_timestamp

__all__ = ["Select"]

MAX_SIGNAL_NUMBER = 64
# Number of zero-timeout selects after which polling is rate limited.
MAX_POLLS = 10


class _SignalInterrupt(Exception):
    """Breaks a wait when a registered signal arrives."""


class Select:
    """Process-wide waiter over file descriptors and registered signals.

    Signals registered with :meth:`add_signal` are blocked except while
    :meth:`select` waits, so they are only noticed there. Signals blocked
    elsewhere by the caller are still received during the wait.
    """

    verbose: ClassVar[int] = 0
    _instance: ClassVar[Select | None] = None

    def __init__(self) -> None:
        self._max_fd = -1
        self._all_fds: set[int] = set()
        self._read_fds: set[int] = set()
        self._got_signal = [False] * (MAX_SIGNAL_NUMBER + 1)
        self._consecutive_polls = 0
        self._waiting = False

    @classmethod
    def get_instance(cls) -> Select:
        """Return the shared instance that signal handlers report to."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def add_fd(self, fd: int) -> None:
        """Watch ``fd`` for readability."""
        self._max_fd = max(self._max_fd, fd)
        self._all_fds.add(fd)

    def clear_fds(self) -> None:
        """Stop watching every descriptor."""
        self._all_fds.clear()

    @staticmethod
    def add_signal(signum: int) -> None:
        """Block ``signum`` outside of waits and record it when it arrives."""
        fatal_assert(signum >= 0, "signum >= 0")
        fatal_assert(signum <= MAX_SIGNAL_NUMBER, "signum <= MAX_SIGNAL_NUMBER")
        _signal.pthread_sigmask(_signal.SIG_BLOCK, {signum})
        _signal.signal(signum, Select._handle_signal)

    @staticmethod
    def _handle_signal(signum: int, frame: FrameType | None) -> None:
        fatal_assert(signum >= 0, "signum >= 0")
        fatal_assert(signum <= MAX_SIGNAL_NUMBER, "signum <= MAX_SIGNAL_NUMBER")
        sel = Select.get_instance()
        sel._got_signal[signum] = True
        if sel._waiting:
            raise _SignalInterrupt

    def _clear_got_signal(self) -> None:
        self._got_signal = [False] * (MAX_SIGNAL_NUMBER + 1)

    def select(self, timeout: int) -> int:
        """Wait up to ``timeout`` milliseconds; negative waits forever.

        Returns the number of readable descriptors, or 0 when the wait timed
        out or was interrupted by a signal. Raises OSError on other failures.
        """
        self._read_fds = set()
        self._clear_got_signal()

        if Select.verbose > 1 and timeout == 0:
            sys.stderr.write("select: got poll (timeout 0)\n")
        if timeout == 0:
            self._consecutive_polls += 1
            if self._consecutive_polls >= MAX_POLLS:
                if Select.verbose > 1 and self._consecutive_polls == MAX_POLLS:
                    sys.stderr.write(f"select: got {MAX_POLLS} polls, rate limiting.\n")
                timeout = 1
        elif self._consecutive_polls:
            if Select.verbose > 1 and self._consecutive_polls >= MAX_POLLS:
                sys.stderr.write(
                    f"select: got {self._consecutive_polls} consecutive polls\n"
                )
            self._consecutive_polls = 0

        wait = None if timeout < 0 else timeout / 1000.0
        watched = sorted(self._all_fds)
        try:
            self._waiting = True
            try:
                old_mask = _signal.pthread_sigmask(_signal.SIG_SETMASK, ())
                try:
                    ready, _, _ = _select.select(watched, [], [], wait)
                finally:
                    _signal.pthread_sigmask(_signal.SIG_SETMASK, old_mask)
            finally:
                self._waiting = False
        except _SignalInterrupt:
            ready = []

        self._read_fds = set(ready)
        freeze_timestamp()
        return len(self._read_fds)

    def read(self, fd: int) -> bool:
        """Tell whether ``fd`` was readable after the last wait."""
        if fd not in self._all_fds:
            raise ValueError(f"descriptor {fd} is not watched")
        return fd in self._read_fds

    def signal(self, signum: int) -> bool:
        """Tell whether ``signum`` arrived during the last wait, consuming the notice."""
        fatal_assert(signum >= 0, "signum >= 0")
        fatal_assert(signum <= MAX_SIGNAL_NUMBER, "signum <= MAX_SIGNAL_NUMBER")
        received = self._got_signal[signum]
        self._got_signal[signum] = False
        return received

    def any_signal(self) -> bool:
        """Tell whether any signal arrived during the last wait, without consuming it."""
        return any(self._got_signal[:MAX_SIGNAL_NUMBER])

    @staticmethod
    def set_verbose(verbose: int) -> None:
        """Set the diagnostic level shared by all instances."""
        Select.verbose = verbose