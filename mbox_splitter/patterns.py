"""Marker-line patterns and regex flag handling."""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import reduce


class FromLinePatterns:
    """Well-known mbox ``From_`` line patterns.

    Patterns must stop before the line terminator: a record starts one
    character after the end of its marker match.
    """

    # From john@example.org Fri Sep 09 14:04:52 2011
    DEFAULT = r"^From \S+@\S.*\d{4}$"
    # From MAILER-DAEMON Wed Oct 05 21:54:09 2011
    DEFAULT2 = r"^From \S+.*\d{4}$"


DEFAULT_FLAGS = re.MULTILINE


def _flag(name: str) -> int:
    """Return the ``re`` flag called ``name`` (``"MULTILINE"``, ``"I"``...)."""
    value = getattr(re.RegexFlag, name.strip().upper(), None)
    if value is None:
        raise ValueError(f"Unknown regex flag: {name}")
    return int(value)


def parse_flags(value: int | str | Iterable[str] | None) -> int:
    """Normalise ``value`` into an integer ``re`` flag mask."""
    if value is None:
        return DEFAULT_FLAGS
    if isinstance(value, bool):
        raise TypeError("regex flags must be an int or flag names")
    if isinstance(value, int):
        return value
    names = value.split("|") if isinstance(value, str) else list(value)
    return reduce(lambda acc, n: acc | _flag(n), (n for n in names if n.strip()), 0)


def compile_marker(pattern: str, flags: int = DEFAULT_FLAGS) -> re.Pattern[str]:
    """Compile ``pattern`` or raise ``ValueError`` describing the regex error."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise ValueError(f"Invalid marker pattern {pattern!r}: {exc}") from exc
