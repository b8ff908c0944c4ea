"""Command-line option parsing."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Mapping, Sequence

from .args import parse_int

UINT_MAX = 0xFFFFFFFF
_ULONG_MAX = 0xFFFFFFFFFFFFFFFF
_DIGITS = "0123456789"
_UNSIGNED = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)")

F_DEFAULT = (
    "[%name%: &[[%artist%|%performer%|%composer%|%albumartist%] - ]%title%]"
    "|%name%|[[%artist%|%performer%|%composer%|%albumartist%] - ]%title%|%file%"
)


class Verbosity(IntEnum):
    QUIET = 0
    DEFAULT = 1
    VERBOSE = 2


@dataclass(frozen=True)
class Range:
    """A half-open range of positions; ``end`` is exclusive."""

    start: int = 0
    end: int = UINT_MAX


@dataclass
class Options:
    """Settings taken from the command line and the environment."""

    host: str | None = None
    port_str: str | None = None
    port: int = 0
    password: str | None = None
    format: str | None = None
    range: Range = field(default_factory=Range)
    verbosity: Verbosity = Verbosity.DEFAULT
    wait: bool = False
    custom_format: bool = False


class OptionError(Exception):
    """The command line holds an invalid option or option value."""


@dataclass(frozen=True)
class _OptionDef:
    short: str | None
    long: str
    argument: str | None
    description: str
    action: str


_OPTION_TABLE = (
    _OptionDef("v", "verbose", None, "Give verbose output", "v"),
    _OptionDef("q", "quiet", None, "Suppress status message", "q"),
    _OptionDef(None, "no-status", None, "synonym for --quiet", "q"),
    _OptionDef("h", "host", "<host>", "Connect to server on <host>", "h"),
    _OptionDef("P", "password", "<password>",
               "Connect to server using password <password>", "P"),
    _OptionDef("p", "port", "<port>", "Connect to server port <port>", "p"),
    _OptionDef("f", "format", "<format>",
               "Print status with format <format>", "f"),
    _OptionDef("w", "wait", None,
               "Wait for operation to finish (e.g. database update)", "w"),
    _OptionDef("r", "range", "[<start>]:[<end>]",
               "Operate on a range (e.g. when loading a playlist)", "r"),
)


def _lookup_long(name: str) -> _OptionDef | None:
    return next((opt for opt in _OPTION_TABLE if opt.long.startswith(name)), None)


def _lookup_short(ch: str) -> _OptionDef | None:
    return next((opt for opt in _OPTION_TABLE if opt.short == ch), None)


def _strtoul(text: str) -> tuple[int, str, bool]:
    """Parse a leading unsigned number; returns value, rest and whether digits were found."""
    match = _UNSIGNED.match(text)
    if match is None:
        return 0, text, False
    value = min(int(match.group(2)), _ULONG_MAX)
    if match.group(1) == "-":
        value = -value
    return value & UINT_MAX, text[match.end():], True


def parse_range(s: str) -> Range:
    """Parse ``[<start>]:[<end>]``; a lone number selects one position."""
    start, rest, _ = _strtoul(s)
    if rest == "":
        return Range(start, (start + 1) & UINT_MAX)
    if not rest.startswith(":"):
        raise OptionError(f"Failed to parse range '{rest}'")
    end_text = rest[1:]
    end, tail, found = _strtoul(end_text)
    if tail != "":
        raise OptionError(f"Failed to parse range end '{end_text}'")
    if not found:
        end = UINT_MAX
    return Range(start, end)


def option_help() -> str:
    """The help text describing every option, one per line."""
    lines = []
    for opt in _OPTION_TABLE:
        remaining = 28
        if opt.short:
            prefix = f"  -{opt.short}, "
            remaining -= 4
        else:
            prefix = "  "
        if opt.argument:
            body = f"--{opt.long}=" + opt.argument.ljust(remaining - len(opt.long))
        else:
            body = f"--{opt.long.ljust(remaining)} "
        lines.append(prefix + body + opt.description)
    return "\n".join(lines) + "\n"


def _apply(options: Options, opt: _OptionDef, value: str | None) -> None:
    action = opt.action
    if action == "v":
        options.verbosity = Verbosity.VERBOSE
    elif action == "q":
        options.verbosity = Verbosity.QUIET
    elif action == "h":
        options.host = value
    elif action == "P":
        options.password = value
    elif action == "p":
        options.port_str = value
    elif action == "f":
        options.format = value
        options.custom_format = True
    elif action == "w":
        options.wait = True
    elif action == "r":
        options.range = parse_range(value or "")


def _missing(opt: _OptionDef) -> OptionError:
    return OptionError(f"missing value for {opt.long} option")


def parse_options(argv: Sequence[str],
                  environ: Mapping[str, str] | None = None) -> tuple[Options, list[str]]:
    """Parse options out of *argv*.

    Options may appear before the command and between the command and
    its first argument.  Returns the options and the remaining command
    line: the program name, the command and the command's arguments.
    """
    env = os.environ if environ is None else environ
    argv = list(argv)
    argc = len(argv)
    options = Options()
    pending: _OptionDef | None = None
    cmdind = 0
    optind = 0

    i = 1
    while i < argc:
        arg = argv[i]
        if arg[:1] == "-" and not (len(arg) > 1 and arg[1] in _DIGITS):
            if arg[1:2] == "-":
                if len(arg) == 2:
                    optind = i + 1
                    if cmdind == 0:
                        cmdind = optind
                    break
                if pending is not None:
                    raise _missing(pending)
                name, sep, value = arg[2:].partition("=")
                opt = _lookup_long(name)
                if opt is None:
                    raise OptionError(f"invalid option {arg}")
                if sep and opt.argument is None:
                    raise OptionError(f"invalid option {arg}={value}")
                if sep or opt.argument is None:
                    _apply(options, opt, value if sep else None)
                    pending = None
                else:
                    pending = opt
            else:
                if len(arg) == 1:
                    raise OptionError(f"invalid option {arg}")
                for ch in arg[1:]:
                    if pending is not None:
                        raise _missing(pending)
                    opt = _lookup_short(ch)
                    if opt is None:
                        raise OptionError(f"invalid option {arg}")
                    if opt.argument is None:
                        _apply(options, opt, None)
                    else:
                        pending = opt
        elif pending is not None:
            _apply(options, pending, arg)
            pending = None
        elif cmdind == 0:
            cmdind = i
        else:
            optind = i
            break
        i += 1

    if optind == 0:
        optind = i

    if pending is not None:
        raise _missing(pending)

    host = options.host
    if host is not None:
        at = host.find("@")
        # a leading '@' denotes an abstract socket, not an empty password
        if at > 0:
            options.password = host[:at]
            options.host = host[at + 1:]

    if options.port_str is not None:
        try:
            port = parse_int(options.port_str)
        except ValueError:
            port = -1
        if port < 0:
            raise OptionError(
                f'Port "{options.port_str}" is not a positive integer')
        options.port = port

    if options.format is None:
        env_format = env.get("MPC_FORMAT")
        if env_format is None:
            options.format = F_DEFAULT
        else:
            options.format = env_format
            options.custom_format = True

    head = argv[:1]
    if 0 < cmdind < argc:
        head.append(argv[cmdind])
    rest_start = optind + 1 if optind == cmdind else optind
    return options, head + argv[rest_start:]