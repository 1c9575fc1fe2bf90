"""Inspection and adjustment of the process locale."""

from __future__ import annotations

import locale
import os
import sys
from dataclasses import dataclass

__all__ = [
    "LocaleVar",
    "get_ctype",
    "locale_charset",
    "is_utf8_locale",
    "set_native_locale",
    "clear_locale_variables",
]

_LOCALE_VARIABLES = (
    "LANG",
    "LANGUAGE",
    "LC_CTYPE",
    "LC_NUMERIC",
    "LC_TIME",
    "LC_COLLATE",
    "LC_MONETARY",
    "LC_MESSAGES",
    "LC_PAPER",
    "LC_NAME",
    "LC_ADDRESS",
    "LC_TELEPHONE",
    "LC_MEASUREMENT",
    "LC_IDENTIFICATION",
    "LC_ALL",
)


@dataclass(frozen=True)
class LocaleVar:
    """The environment variable that decides the character set."""

    name: str
    value: str

    def __str__(self) -> str:
        if not self.name:
            return "[no charset variables]"
        return f"{self.name}={self.value}"


def get_ctype() -> LocaleVar:
    """Return the variable that selects LC_CTYPE, following the usual precedence."""
    for name in ("LC_ALL", "LC_CTYPE", "LANG"):
        value = os.environ.get(name)
        if value is not None:
            return LocaleVar(name, value)
    return LocaleVar("", "")


def locale_charset() -> str:
    """Return the current locale's character set, with ASCII given a friendly name."""
    charset = locale.nl_langinfo(locale.CODESET)
    if charset == "ANSI_X3.4-1968":
        return "US-ASCII"
    return charset


def is_utf8_locale() -> bool:
    """Tell whether the current locale uses UTF-8."""
    return locale_charset() in ("UTF-8", "utf-8")


def set_native_locale() -> None:
    """Adopt the locale from the environment, reporting on stderr if it is missing."""
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        ctype = get_ctype()
        sys.stderr.write(f"The locale requested by {ctype} isn't available here.\n")
        if ctype.name:
            sys.stderr.write(f"Running `locale-gen {ctype.value}' may be necessary.\n\n")


def clear_locale_variables() -> None:
    """Remove every locale variable from the environment."""
    for name in _LOCALE_VARIABLES:
        os.environ.pop(name, None)