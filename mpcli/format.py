"""Template expansion for song and status format strings.

A format string mixes literal text with ``%name%`` variables.  Square
brackets group a section that is dropped unless one of its variables
produced a non-empty value.  ``|`` selects the first section that found
something and ``&`` requires both neighbouring sections to find something.
``#`` escapes the following character and backslash sequences such as
``\\n`` insert control characters.
"""

from __future__ import annotations

import string
from typing import Callable, Optional

Getter = Callable[[str], Optional[str]]

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_MAX_SPECIFIER = 32

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "t": "\t",
    "n": "\n",
    "v": "\v",
    "f": "\f",
    "r": "\r",
    "[": "[",
    "]": "]",
}


def _append(result: str | None, text: str) -> str:
    return text if result is None else result + text


def _skip_section(fmt: str, pos: int) -> int:
    """Return the position where the current section ends at '&', '|' or ']'."""
    depth = 0
    length = len(fmt)
    while pos < length:
        ch = fmt[pos]
        if ch == "[":
            depth += 1
        elif ch == "#" and pos + 1 < length:
            pos += 1
        elif depth > 0:
            if ch == "]":
                depth -= 1
        elif ch in "&|]":
            break
        pos += 1
    return pos


def _expand(fmt: str, pos: int, getter: Getter) -> tuple[str | None, int]:
    result: str | None = None
    found = False
    length = len(fmt)

    while pos < length:
        ch = fmt[pos]

        if ch == "|":
            pos += 1
            if not found:
                result = None
            else:
                pos = _skip_section(fmt, pos)

        elif ch == "&":
            pos += 1
            if not found:
                pos = _skip_section(fmt, pos)
            else:
                found = False

        elif ch == "[":
            group, pos = _expand(fmt, pos + 1, getter)
            if group is not None:
                result = _append(result, group)
                found = True

        elif ch == "]":
            return (result if found else None), pos + 1

        elif ch == "\\":
            following = fmt[pos + 1:pos + 2]
            if following and following in _ESCAPES:
                result = _append(result, _ESCAPES[following])
                pos += 2
            else:
                result = _append(result, "\\")
                pos += 1

        elif ch == "%":
            end = pos + 1
            while end < length and fmt[end] in _NAME_CHARS:
                end += 1

            if end >= length or fmt[end] != "%":
                result = _append(result, fmt[pos:end])
                pos = end
                continue

            if end - pos + 1 > _MAX_SPECIFIER:
                result = _append(result, fmt[pos:end + 1])
                pos = end + 1
                continue

            value = getter(fmt[pos + 1:end])
            if value is None:
                # unknown variable: copied verbatim
                value = fmt[pos:end + 1]
            elif value:
                found = True
            result = _append(result, value)
            pos = end + 1

        elif ch == "#" and pos + 1 < length:
            result = _append(result, fmt[pos + 1])
            pos += 2

        else:
            result = _append(result, ch)
            pos += 1

    return result, pos


def format_object(format: str, getter: Getter) -> str | None:
    """Expand *format*, looking variables up with *getter*.

    *getter* receives a variable name and returns its value, an empty
    string when the variable is known but has no value, or ``None`` when
    the name is not a variable at all.  Returns ``None`` if no section of
    the format produced output.
    """
    result, _ = _expand(format, 0, getter)
    return result