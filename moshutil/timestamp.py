"""A process-wide millisecond timestamp that changes only when frozen again."""

from __future__ import annotations

import time

__all__ = ["freeze_timestamp", "frozen_timestamp"]

_millis_cache: int | None = None


def freeze_timestamp() -> None:
    """Read the monotonic clock and store it, in milliseconds."""
    global _millis_cache
    _millis_cache = time.monotonic_ns() // 1_000_000


def frozen_timestamp() -> int:
    """Return the stored timestamp, freezing one first if none is stored."""
    if _millis_cache is None:
        freeze_timestamp()
    assert _millis_cache is not None
    return _millis_cache