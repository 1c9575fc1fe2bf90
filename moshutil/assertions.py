"""Assertion helpers for untrusted input and for internal invariants."""

from __future__ import annotations

import inspect
import os
import sys
from types import FrameType

__all__ = ["IllegalInputError", "dos_assert", "fatal_assert"]


class IllegalInputError(Exception):
    """Raised when input from the other side breaks an expected rule.

    Such errors are never fatal: a peer must not be able to stop the
    program by sending garbage.
    """

    fatal = False


def _caller_location(frame: FrameType | None) -> tuple[str, str, int]:
    if frame is None:
        return ("<unknown>", "<unknown>", 0)
    return (frame.f_code.co_name, frame.f_code.co_filename, frame.f_lineno)


def dos_assert(condition: object, expression: str) -> None:
    """Raise IllegalInputError unless ``condition`` holds."""
    if condition:
        return
    current = inspect.currentframe()
    function, filename, line = _caller_location(
        current.f_back if current is not None else None
    )
    raise IllegalInputError(
        "Illegal counterparty input (possible denial of service) in function "
        f"{function} at {filename}:{line}, failed test: {expression}"
    )


def fatal_assert(condition: object, expression: str) -> None:
    """Report the failure on stderr and abort the process unless ``condition`` holds."""
    if condition:
        return
    current = inspect.currentframe()
    function, filename, line = _caller_location(
        current.f_back if current is not None else None
    )
    sys.stderr.write(
        f"Fatal assertion failure in function {function} at {filename}:{line}\n"
        f"Failed test: {expression}\n"
    )
    sys.stderr.flush()
    os.abort()