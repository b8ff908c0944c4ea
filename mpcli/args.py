"""Parsing of command-line argument values."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Iterable, TextIO

_SPACE = "[ \\t\\n\\v\\f\\r]*"
_INT = re.compile(_SPACE + r"([+-]?[0-9]+)")
_FLOAT = re.compile(
    _SPACE
    + r"([+-]?(?:0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
    + r"|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    + r"|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

_BOOLEANS = (("on", "off"), ("1", "0"), ("true", "false"), ("yes", "no"))


@dataclass(frozen=True)
class IntValueChange:
    """An integer that is either absolute or relative (signed)."""

    value: int
    is_relative: bool


def read_stdin_args(stream: TextIO | None = None) -> list[str]:
    """Read one argument per line from *stream* (standard input by default)."""
    source = sys.stdin if stream is None else stream
    return [line[:-1] if line.endswith("\n") else line for line in source]


def contains_absolute_path(args: Iterable[str]) -> bool:
    """True if any argument starts with a slash."""
    return any(arg.startswith("/") for arg in args)


def strip_trailing_slash(s: str) -> str:
    """Drop one trailing slash, except from URLs with a scheme."""
    if "://" in s:
        return s
    return s[:-1] if s.endswith("/") else s


def get_boolean(arg: str) -> bool:
    """Interpret on/off, 1/0, true/false or yes/no, ignoring case."""
    lowered = arg.lower()
    for on, off in _BOOLEANS:
        if lowered == on:
            return True
        if lowered == off:
            return False
    choices = "|".join(f"{on}|{off}" for on, off in _BOOLEANS)
    raise ValueError(f'"{arg}" is not a boolean value: <{choices}>')


def parse_int(s: str) -> int:
    """Parse a base-10 integer; the whole string must be consumed."""
    if s == "":
        return 0
    match = _INT.fullmatch(s)
    if match is None:
        raise ValueError(f'"{s}" is not an integer')
    return int(match.group(1))


def parse_float(s: str) -> float:
    """Parse a floating point number; the whole string must be consumed."""
    if s == "":
        return 0.0
    match = _FLOAT.fullmatch(s)
    if match is None:
        raise ValueError(f'"{s}" is not a floating point number')
    text = match.group(1)
    if "x" in text.lower() and not text.lower().lstrip("+-").startswith(("inf", "nan")):
        return float.fromhex(text)
    return float(text)


def parse_songnum(s: str | None) -> int:
    """Parse a song number such as ``3``, ``#3`` or ``3)``; it must be >= 1."""
    if s is None:
        raise ValueError("no song number given")
    text = s[1:] if s.startswith("#") else s
    match = _INT.match(text)
    if match is None:
        raise ValueError(f'"{s}" is not a song number')
    rest = text[match.end():]
    song = int(match.group(1))
    if (rest and rest[0] != ")") or song < 1:
        raise ValueError(f'"{s}" is not a song number')
    return song


def parse_int_value_change(s: str) -> IntValueChange:
    """Parse ``N``, ``+N`` or ``-N``; a sign makes the change relative."""
    if not s:
        raise ValueError("empty value")
    value = parse_int(s)
    return IntValueChange(value=value, is_relative=s[0] in "+-")