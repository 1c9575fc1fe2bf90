"""POSIX terminal-session utilities: assertions, locale checks, pty forking, signal-aware select, timestamps and complete writes."""

__version__ = "0.1.0"
__all__ = [
    "assertions",
    "fdselect",
    "locale_utils",
    "pty_compat",
    "swrite",
    "timestamp",
]