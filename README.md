# moshutil

Small POSIX utilities for programs that drive interactive terminal sessions.
It has no dependencies outside the standard library.

## Installation

```
pip install moshutil
```

To run the test suite:

```
pip install "moshutil[test]"
pytest
```

## Modules

### `moshutil.assertions`

- `dos_assert(condition, expression)` does nothing when `condition` is true.
  Otherwise it raises `IllegalInputError`. The message names the calling
  function, file and line, and the `expression` text. Use it for invalid input
  that comes from the other side of a connection. `IllegalInputError.fatal`
  is `False`.
- `fatal_assert(condition, expression)` does nothing when `condition` is true.
  Otherwise it writes the calling function, file, line and `expression` to
  stderr and aborts the process with `os.abort()`.

### `moshutil.timestamp`

- `freeze_timestamp()` reads the monotonic clock and stores it in milliseconds.
- `frozen_timestamp()` returns the stored value. If nothing has been stored
  yet, it freezes one first. The value stays the same until
  `freeze_timestamp()` is called again.

### `moshutil.swrite`

- `swrite(fd, data, length=None)` writes `data` (bytes, or text encoded as
  UTF-8) to the descriptor `fd`, and keeps writing after short writes.
  - When `length` is given and not negative, at most that many bytes are written.
  - Otherwise the data is cut at its first NUL byte.
  - It raises `OSError` when a write fails or makes no progress.

### `moshutil.locale_utils`

- `LocaleVar(name, value)` is a frozen dataclass. `str()` of it gives
  `NAME=value`, or `[no charset variables]` when the name is empty.
- `get_ctype()` returns the first of `LC_ALL`, `LC_CTYPE` and `LANG` that is set
  in the environment. If none is set, it returns an empty `LocaleVar`.
- `locale_charset()` returns the current locale's codeset. `ANSI_X3.4-1968` is
  reported as `US-ASCII`.
- `is_utf8_locale()` is true when that codeset is `UTF-8` or `utf-8`.
- `set_native_locale()` adopts the locale from the environment. If that locale
  is not available, it does not raise. Instead it writes a note to stderr that
  names the responsible variable and suggests `locale-gen`.
- `clear_locale_variables()` removes `LANG`, `LANGUAGE`, `LC_ALL` and every
  `LC_*` category variable from `os.environ`.

### `moshutil.pty_compat`

- `forkpty(termios_attrs=None, winsize=None)` opens a pseudo-terminal and forks.
  - It first applies `termios_attrs` to the terminal, if given; this is a list
    as returned by `termios.tcgetattr`.
  - The window size is 25 rows by 80 columns unless `winsize` gives
    `(rows, cols)` or `(rows, cols, xpixel, ypixel)`.
  - It returns a `ForkPty(pid, master_fd, winsize)` named tuple. In the parent,
    `pid` is the child's id and `master_fd` is the controlling side of the pty.
  - In the child, `pid` is 0 and `master_fd` is `None`. The child is a new
    session leader with the pty as its controlling terminal and as its
    stdin, stdout and stderr.
  - Each tuple also carries the terminal's `Winsize`.
- `cfmakeraw(attrs)` returns a copy of a termios attribute list set to raw
  mode: 8-bit characters, no echo, no canonical input or signals, no output
  processing, and reads that return after one byte.

### `moshutil.fdselect`

`Select` waits on readable descriptors and registered signals in one call.
Get the shared instance with `Select.get_instance()`.

- `add_fd(fd)` adds a descriptor to watch, and `clear_fds()` removes them all.
- `Select.add_signal(signum)` blocks the signal outside of waits and records it
  when it arrives during one.
- `select(timeout)` waits up to `timeout` milliseconds; a negative timeout waits
  forever.
  - It returns the number of readable descriptors. It returns 0 on timeout or
    when a registered signal cut the wait short.
  - After 10 consecutive zero-timeout calls, polls are stretched to 1 ms.
  - Every call ends by calling `freeze_timestamp()`.
- `read(fd)` tells whether `fd` was readable after the last wait. It raises
  `ValueError` for a descriptor that is not watched.
- `signal(signum)` tells whether the signal arrived during the last wait, and
  consumes the notice. `any_signal()` checks all signals without consuming them.
- `Select.set_verbose(level)` sets the diagnostic level. At levels above 1,
  polling notes are written to stderr.

## Example

```python
import os
import signal
import sys

from moshutil.fdselect import Select
from moshutil.pty_compat import forkpty
from moshutil.swrite import swrite

child = forkpty(winsize=(24, 80))
if child.pid == 0:
    os.execvp("ls", ["ls", "-l"])

sel = Select.get_instance()
sel.add_fd(child.master_fd)
Select.add_signal(signal.SIGWINCH)

while True:
    sel.select(1000)
    if sel.signal(signal.SIGWINCH):
        print("window resized", file=sys.stderr)
    if sel.read(child.master_fd):
        try:
            chunk = os.read(child.master_fd, 1024)
        except OSError:
            break
        if not chunk:
            break
        swrite(sys.stdout.fileno(), chunk, len(chunk))

os.waitpid(child.pid, 0)
```

## What it does not do

This package is a set of building blocks:

- It installs no command-line program.
- It has no terminal emulator, network transport or encryption.
- It runs only on POSIX systems, because it relies on `termios`, `fcntl`,
  `os.fork` and signal masks.