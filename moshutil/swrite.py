"""Write a whole buffer to a file descriptor."""

from __future__ import annotations

import errno
import os
from typing import Optional, Union

__all__ = ["swrite"]


def swrite(fd: int, data: Union[bytes, str], length: Optional[int] = None) -> None:
    """Write ``data`` to ``fd`` completely, retrying after short writes.

    ``length`` limits how many bytes are written. When it is None or
    negative, the data is taken up to its first NUL byte. Text is encoded
    as UTF-8. Raises OSError if a write fails or makes no progress.
    """
    buffer = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if length is None or length < 0:
        end = buffer.find(b"\0")
        if end >= 0:
            buffer = buffer[:end]
    else:
        buffer = buffer[:length]

    view = memoryview(buffer)
    while len(view) > 0:
        written = os.write(fd, view)
        if written <= 0:
            raise OSError(errno.EIO, "write made no progress")
        view = view[written:]