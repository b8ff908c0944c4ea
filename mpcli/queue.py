"""Queue editing: adding, inserting, deleting, cropping and priorities."""

from __future__ import annotations

import re
import sys
from typing import Any, Iterable

from .args import contains_absolute_path, strip_trailing_slash
from .client import (
    CommandError,
    Connection,
    EntityType,
    ServerError,
    fetch_music_directory,
    print_entity_list,
    send_tag_types_for_format,
    to_relative_path,
)
from .options import F_DEFAULT, Verbosity
from .status_format import PlayerState

_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")
_ACTIVE = (PlayerState.PLAY, PlayerState.PAUSE)
_MAX_PRIO = 255


def _strtol(text: str) -> tuple[int, str] | None:
    """Parse a leading integer; returns the value and the unparsed rest."""
    match = _LEADING_INT.match(text)
    if match is None:
        return None
    return int(match.group()), text[match.end():]


def _whole_int(text: str) -> int | None:
    parsed = _strtol(text)
    if parsed is None or parsed[1] != "":
        return None
    return parsed[0]


def parse_delete_ranges(args: Iterable[str], queue_length: int,
                        current_pos: int | None = None) -> list[int]:
    """Turn 1-based song numbers and ``low-high`` ranges into 0-based positions.

    ``0`` alone stands for the current song when *current_pos* is given.
    Returns the positions to delete in ascending order.
    """
    positions: set[int] = set()
    for arg in args:
        parsed = _strtol(arg)
        if parsed is None:
            raise CommandError(f"error parsing song numbers from: {arg}")
        start, rest = parsed

        if start == 0 and len(arg) == 1 and current_pos is not None:
            start = current_pos + 1

        if rest.startswith("-"):
            end = _whole_int(rest[1:])
            if end is None:
                raise CommandError(f"error parsing range from: {arg}")
        elif rest == "":
            end = start
        else:
            raise CommandError(f"error parsing song numbers from: {arg}")

        if start <= 0 or end <= 0:
            if start == end:
                raise CommandError(f"song number must be positive: {start}")
            raise CommandError(
                f"song numbers must be positive: {start} to {end}")
        if end < start:
            raise CommandError(
                f"song range must be from low to high: {start} to {end}")
        if end > queue_length:
            raise CommandError(f"song number does not exist: {end}")

        positions.update(range(start - 1, end))
    return sorted(positions)


def parse_priority(s: str) -> int:
    """Parse a song priority between 0 and 255."""
    value = _whole_int(s)
    if value is None:
        raise CommandError(f"Failed to parse number: {s}")
    if value < 0 or value > _MAX_PRIO:
        raise CommandError(f"Priority must be between 0 and 255: {s}")
    return value


def cmd_clear(conn: Connection, args: list[str], options: Any = None) -> int:
    """Remove every song from the queue."""
    conn.execute("clear")
    return 1


def cmd_shuffle(conn: Connection, args: list[str], options: Any = None) -> int:
    """Shuffle the queue."""
    conn.execute("shuffle")
    return 1


def cmd_add(conn: Connection, args: list[str], options: Any = None) -> int:
    """Append songs or directories to the queue."""
    music_directory = None
    if contains_absolute_path(args):
        music_directory = fetch_music_directory(conn)

    verbose = getattr(options, "verbosity", Verbosity.DEFAULT) >= Verbosity.VERBOSE
    stripped = [strip_trailing_slash(arg) for arg in args]

    with conn.command_list():
        for arg in stripped:
            relative = to_relative_path(arg, music_directory)
            path = relative if relative is not None else arg
            if verbose:
                print(f"adding: {path}")
            conn.send("add", path)

    try:
        conn.finish()
    except ServerError as exc:
        # the error location tells which argument has failed
        if 0 <= exc.location < len(stripped):
            raise CommandError(
                f"error adding {stripped[exc.location]}: {exc.message}") from exc
        raise
    return 0


def cmd_crop(conn: Connection, args: list[str], options: Any = None) -> int:
    """Remove every song except the current one."""
    status = conn.status()
    last = status.queue_length - 1
    if last < 0:
        raise CommandError(
            "A playlist longer than 1 song in length is required to crop.")
    if status.state not in _ACTIVE:
        raise CommandError("You need to be playing to crop the playlist")

    with conn.command_list():
        for pos in range(last, -1, -1):
            if pos != status.song_pos:
                conn.send("delete", pos)
    conn.finish()
    return 0


def cmd_del(conn: Connection, args: list[str], options: Any = None) -> int:
    """Delete songs from the queue by 1-based number or range."""
    status = conn.status()
    current = status.song_pos if status.state in _ACTIVE else None
    positions = parse_delete_ranges(args, status.queue_length, current)

    with conn.command_list():
        for deleted, pos in enumerate(positions):
            conn.send("delete", pos - deleted)
    conn.finish()
    return 0


def cmd_playlist(conn: Connection, args: list[str], options: Any) -> int:
    """Print the queue, or a stored playlist."""
    song_format = getattr(options, "format", None) or F_DEFAULT
    with conn.command_list():
        # only ask for the tags the format actually uses
        send_tag_types_for_format(conn, song_format)
        if args:
            conn.send("listplaylistinfo", args[0])
        else:
            conn.send("playlistinfo")

    print_entity_list(conn, EntityType.SONG, True, song_format)
    conn.finish()
    return 0


def _song_prio(pairs: list[tuple[str, str]]) -> int:
    for name, value in pairs:
        if name == "Prio":
            try:
                return int(value)
            except ValueError:
                return 0
    return 0


def _queue_range(conn: Connection, start: int, end: int, next_id: int) -> None:
    if next_id >= 0:
        pairs = conn.execute("playlistid", next_id)
    else:
        pairs = conn.execute("currentsong")
    prio = _song_prio(pairs)
    if prio < _MAX_PRIO:
        prio += 1
    conn.execute("prio", prio, f"{start}:{end}")


def cmd_insert(conn: Connection, args: list[str], options: Any = None) -> int:
    """Add songs and place them right after the current one."""
    status = conn.status()
    start = status.queue_length
    cur_pos = status.song_pos
    next_id = status.next_song_id
    random_mode = status.random

    ret = cmd_add(conn, args, options)
    if ret != 0:
        return ret

    end = conn.status().queue_length

    if random_mode:
        _queue_range(conn, start, end, next_id)
        return 0

    if end == start:
        return 0

    conn.execute("move", f"{start}:{end}", cur_pos + 1)
    return 0


def cmd_prio(conn: Connection, args: list[str], options: Any = None) -> int:
    """Set the priority of songs at 1-based queue positions."""
    prio = parse_priority(args[0])

    positions = []
    for arg in args[1:]:
        position = _whole_int(arg)
        if position is None:
            raise CommandError(f"Failed to parse number: {arg}")
        if position < 1:
            raise CommandError(f"Invalid song position: {arg}")
        positions.append(position - 1)

    with conn.command_list():
        for position in positions:
            conn.send("prio", prio, position)
    conn.finish()
    return 0


__all__ = [
    "parse_delete_ranges",
    "parse_priority",
    "cmd_clear",
    "cmd_shuffle",
    "cmd_add",
    "cmd_crop",
    "cmd_del",
    "cmd_playlist",
    "cmd_insert",
    "cmd_prio",
]

if __name__ == "__main__":  # pragma: no cover
    sys.exit("this module is not a command")