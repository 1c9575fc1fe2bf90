"""Pseudo-terminal helpers: fork a child on a new pty, and raw terminal modes."""

from __future__ import annotations

import fcntl
import os
import struct
import sys
import termios
from typing import NamedTuple, Sequence

__all__ = ["Winsize", "ForkPty", "forkpty", "cfmakeraw"]

DEFAULT_ROWS = 25
DEFAULT_COLS = 80

_WINSIZE_FORMAT = "HHHH"


class Winsize(NamedTuple):
    """Terminal window size in characters and pixels."""

    rows: int
    cols: int
    xpixel: int = 0
    ypixel: int = 0


class ForkPty(NamedTuple):
    """Outcome of :func:`forkpty`.

    In the parent ``pid`` is the child's process id and ``master_fd`` the
    controlling side of the pty. In the child ``pid`` is 0 and ``master_fd``
    is None.
    """

    pid: int
    master_fd: int | None
    winsize: Winsize


def _set_winsize(fd: int, size: Winsize) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack(_WINSIZE_FORMAT, *size))


def _get_winsize(fd: int) -> Winsize:
    raw = fcntl.ioctl(fd, termios.TIOCGWINSZ, bytes(struct.calcsize(_WINSIZE_FORMAT)))
    return Winsize(*struct.unpack(_WINSIZE_FORMAT, raw))


def _become_session_leader(slave: int, slave_name: str) -> None:
    try:
        os.setsid()
    except OSError as exc:
        sys.stderr.write(f"setsid: {exc.strerror}\n")
    if hasattr(termios, "TIOCSCTTY"):
        fcntl.ioctl(slave, termios.TIOCSCTTY, 0)
    else:
        os.close(os.open(slave_name, os.O_RDWR))


def forkpty(
    termios_attrs: list | None = None,
    winsize: Sequence[int] | None = None,
) -> ForkPty:
    """Open a pty and fork; the child gets the pty as its controlling terminal.

    ``termios_attrs`` is a list as returned by ``termios.tcgetattr`` and is
    applied to the terminal before forking. ``winsize`` is ``(rows, cols)``
    or ``(rows, cols, xpixel, ypixel)``; without it the terminal is 25 rows
    by 80 columns. Raises OSError (or termios.error) if the pty cannot be
    set up.
    """
    master, slave = os.openpty()
    try:
        if termios_attrs is not None:
            termios.tcsetattr(slave, termios.TCSAFLUSH, termios_attrs)
        _set_winsize(slave, Winsize(DEFAULT_ROWS, DEFAULT_COLS))
        if winsize is not None:
            _set_winsize(slave, Winsize(*winsize))
        size = _get_winsize(slave)
        slave_name = os.ttyname(slave)
        pid = os.fork()
    except BaseException:
        os.close(slave)
        os.close(master)
        raise

    if pid == 0:
        try:
            _become_session_leader(slave, slave_name)
            os.close(master)
            for target in (0, 1, 2):
                os.dup2(slave, target)
            if slave > 2:
                os.close(slave)
        except OSError as exc:
            sys.stderr.write(f"forkpty: {exc}\n")
            sys.stderr.flush()
            os._exit(1)
        return ForkPty(0, None, size)

    os.close(slave)
    return ForkPty(pid, master, size)


def cfmakeraw(attrs: Sequence) -> list:
    """Return a copy of ``attrs`` (a termios attribute list) set to raw mode."""
    iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attrs
    iflag &= ~(
        termios.IGNBRK
        | termios.BRKINT
        | termios.PARMRK
        | termios.ISTRIP
        | termios.INLCR
        | termios.IGNCR
        | termios.ICRNL
        | termios.IXON
    )
    oflag &= ~termios.OPOST
    lflag &= ~(termios.ECHO | termios.ECHONL | termios.ICANON | termios.ISIG | termios.IEXTEN)
    cflag &= ~(termios.CSIZE | termios.PARENB)
    cflag |= termios.CS8

    control_chars = list(cc)
    control_chars[termios.VMIN] = 1  # a read is satisfied after one byte
    control_chars[termios.VTIME] = 0  # no timer
    return [iflag, oflag, cflag, lflag, ispeed, ospeed, control_chars]