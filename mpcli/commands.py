"""Database, stored-playlist, playback-mode and information commands."""

from __future__ import annotations

import sys
import time
from typing import Any, Callable

from .args import (
    contains_absolute_path,
    get_boolean,
    parse_float,
    parse_int,
    parse_int_value_change,
    strip_trailing_slash,
)
from .client import (
    CommandError,
    Connection,
    EntityType,
    fetch_music_directory,
    print_entity_list,
    print_filenames,
    send_tag_types_for_format,
    to_relative_path,
)
from .group import Groups
from .options import UINT_MAX, Verbosity
from .search import build_constraints
from .song_format import parse_tag, tag_names
from .status import print_status
from .status_format import SingleState, Status, format_status

_SECONDS_PER_DAY = 86400
_SECONDS_PER_HOUR = 3600
_SECONDS_PER_MINUTE = 60


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def format_dhms(seconds: int) -> str:
    """Render a duration as ``<days> days, H:MM:SS``."""
    days, rest = divmod(seconds, _SECONDS_PER_DAY)
    hours, rest = divmod(rest, _SECONDS_PER_HOUR)
    minutes, secs = divmod(rest, _SECONDS_PER_MINUTE)
    return f"{days} days, {hours}:{minutes:02d}:{secs:02d}"


def _positive_int(arg: str) -> int:
    try:
        value = parse_int(arg)
    except ValueError:
        value = 0
    if value <= 0:
        raise CommandError(f'"{arg}" is not a positive integer')
    return value


def _boolean(arg: str) -> bool:
    try:
        value = get_boolean(arg)
    except ValueError as exc:
        raise CommandError(str(exc)) from None
    if value not in (True, False):
        raise CommandError(f'"{arg}" is not a boolean value')
    return bool(value)


def cmd_move(conn: Connection, args: list[str], options: Any = None) -> int:
    """Move a song within the queue; positions are 1-based."""
    source = _positive_int(args[0])
    target = _positive_int(args[1])
    conn.execute("move", source - 1, target - 1)
    return 0


def cmd_listall(conn: Connection, args: list[str], options: Any) -> int:
    """List all songs below the given paths (the whole database by default)."""
    for path in args or [""]:
        path = strip_trailing_slash(path)
        if options.custom_format:
            # only ask for the tags the format actually uses
            with conn.command_list():
                send_tag_types_for_format(conn, options.format)
                conn.send("listallinfo", path)
            print_entity_list(conn, EntityType.SONG, True, options.format)
        else:
            conn.send("listall", path)
            print_filenames(conn)
        conn.finish()
    return 0


def _update_db(conn: Connection, args: list[str], options: Any, rescan: bool) -> int:
    music_directory = None
    if contains_absolute_path(args):
        music_directory = fetch_music_directory(conn)

    with conn.command_list():
        for path in args or [""]:
            path = strip_trailing_slash(path)
            relative = to_relative_path(path, music_directory)
            if relative is not None:
                path = relative
            conn.send("rescan" if rescan else "update", path)

    update_id = 0
    for name, value in conn.read_pairs():
        if name == "updating_db":
            next_id = _to_int(value)
            if next_id:
                update_id = next_id
    conn.finish()

    while getattr(options, "wait", False):
        conn.idle("update")
        current_id = conn.status().update_id
        if current_id == 0 or current_id > update_id:
            break

    return 1


def cmd_update(conn: Connection, args: list[str], options: Any = None) -> int:
    """Scan the music directory for changes."""
    return _update_db(conn, args, options, rescan=False)


def cmd_rescan(conn: Connection, args: list[str], options: Any = None) -> int:
    """Rescan the music directory, including unchanged files."""
    return _update_db(conn, args, options, rescan=True)


def _ls_entity(conn: Connection, args: list[str], options: Any,
               filter_type: EntityType) -> int:
    custom = bool(options.custom_format)
    with conn.command_list():
        send_tag_types_for_format(conn, options.format if custom else None)
    conn.finish()

    for path in args or [""]:
        conn.send("lsinfo", path)
        print_entity_list(conn, filter_type, custom, options.format)
        conn.finish()
    return 0


def cmd_ls(conn: Connection, args: list[str], options: Any) -> int:
    """List the contents of directories."""
    paths = [strip_trailing_slash(arg) for arg in args]
    return _ls_entity(conn, paths, options, EntityType.UNKNOWN)


def cmd_lsplaylists(conn: Connection, args: list[str], options: Any) -> int:
    """List the stored playlists."""
    return _ls_entity(conn, args, options, EntityType.PLAYLIST)


def cmd_load(conn: Connection, args: list[str], options: Any) -> int:
    """Load stored playlists into the queue, optionally only a range."""
    rng = options.range
    use_range = rng.start > 0 or rng.end < UINT_MAX
    range_arg = f"{rng.start}:" + ("" if rng.end >= UINT_MAX else str(rng.end))

    with conn.command_list():
        for name in args:
            print(f"loading: {name}")
            if use_range:
                conn.send("load", name, range_arg)
            else:
                conn.send("load", name)
    conn.finish()
    return 0


def cmd_list(conn: Connection, args: list[str], options: Any = None) -> int:
    """List the distinct values of a tag, optionally filtered and grouped."""
    name = args[0]
    tag = parse_tag(name)
    if tag is None:
        raise CommandError(
            f'Unknown tag "{name}"; supported tags are: ' + ", ".join(tag_names()))

    groups = Groups()
    rest = groups.collect(args[1:])
    constraints = build_constraints(rest) if rest else []

    conn.send("list", tag.wire_name, *constraints, *groups.send_args())

    if len(groups) > 0:
        for pair_name, value in conn.read_pairs():
            pair_tag = parse_tag(pair_name)
            if pair_tag is None:
                continue
            index = groups.find(pair_tag)
            if index < 0:
                index = len(groups)
            print(" " * (index * 4) + value)
    else:
        for pair_name, value in conn.read_pairs():
            if parse_tag(pair_name) is tag:
                print(value)

    conn.finish()
    return 0


def cmd_save(conn: Connection, args: list[str], options: Any = None) -> int:
    """Save the queue as a stored playlist."""
    conn.execute("save", args[0])
    return 0


def cmd_rm(conn: Connection, args: list[str], options: Any = None) -> int:
    """Delete a stored playlist."""
    conn.execute("rm", args[0])
    return 0


def cmd_volume(conn: Connection, args: list[str], options: Any = None) -> int:
    """Show the volume, or set it absolutely or relatively."""
    if len(args) != 1:
        volume = conn.status().volume
        print(f"volume:{volume:3d}%" if volume >= 0 else "volume: n/a")
        return 0

    try:
        change = parse_int_value_change(args[0])
    except ValueError:
        raise CommandError(f'"{args[0]}" is not an integer') from None

    value = change.value
    if change.is_relative:
        old_volume = conn.status().volume
        value = max(0, min(100, value + old_volume))
        if value == old_volume:
            return 1

    conn.execute("setvol", value)
    return 1


def _bool_cmd(conn: Connection, args: list[str], command: str,
              current: Callable[[Status], bool]) -> int:
    if len(args) == 1:
        mode = _boolean(args[0])
    else:
        mode = not current(conn.status())
    conn.execute(command, mode)
    return 1


def cmd_repeat(conn: Connection, args: list[str], options: Any = None) -> int:
    """Toggle repeat mode or set it."""
    return _bool_cmd(conn, args, "repeat", lambda status: status.repeat)


def cmd_random(conn: Connection, args: list[str], options: Any = None) -> int:
    """Toggle random mode or set it."""
    return _bool_cmd(conn, args, "random", lambda status: status.random)


def cmd_consume(conn: Connection, args: list[str], options: Any = None) -> int:
    """Toggle consume mode or set it."""
    return _bool_cmd(conn, args, "consume", lambda status: status.consume)


def cmd_single(conn: Connection, args: list[str], options: Any = None) -> int:
    """Toggle single mode or set it to on, once or off."""
    if len(args) == 1:
        if args[0].lower() == "once":
            mode = SingleState.ONESHOT
        else:
            mode = SingleState.ON if _boolean(args[0]) else SingleState.OFF
    else:
        current = conn.status().single
        if current in (SingleState.ONESHOT, SingleState.ON):
            mode = SingleState.OFF
        elif current is SingleState.OFF:
            mode = SingleState.ON
        else:
            return -1

    conn.execute("single", mode.value)
    return 1


def cmd_crossfade(conn: Connection, args: list[str], options: Any = None) -> int:
    """Show or set the crossfade duration in seconds."""
    if len(args) == 1:
        try:
            seconds = parse_int(args[0])
        except ValueError:
            seconds = -1
        if seconds < 0:
            raise CommandError(f'"{args[0]}" is not 0 or positive integer')
        conn.execute("crossfade", seconds)
    else:
        print(f"crossfade: {conn.status().crossfade}")
    return 0


def _float_setting(conn: Connection, args: list[str], command: str,
                   current: Callable[[Status], float]) -> int:
    if len(args) == 1:
        try:
            value = parse_float(args[0])
        except ValueError:
            raise CommandError(
                f'"{args[0]}" is not a floating point number') from None
        conn.execute(command, float(value))
    else:
        print(f"{command}: {current(conn.status()):f}")
    return 0


def cmd_mixrampdb(conn: Connection, args: list[str], options: Any = None) -> int:
    """Show or set the MixRamp threshold in dB."""
    return _float_setting(conn, args, "mixrampdb", lambda status: status.mixrampdb)


def cmd_mixrampdelay(conn: Connection, args: list[str], options: Any = None) -> int:
    """Show or set the MixRamp delay in seconds."""
    return _float_setting(conn, args, "mixrampdelay",
                          lambda status: status.mixrampdelay)


def cmd_version(conn: Connection, args: list[str], options: Any = None) -> int:
    """Print the protocol version of the server."""
    version = conn.server_version()
    if version is None:
        print("mpd version: unknown")
    else:
        print(f"mpd version: {version[0]}.{version[1]}.{version[2]}")
    return 0


def cmd_stats(conn: Connection, args: list[str], options: Any = None) -> int:
    """Print database and uptime statistics."""
    stats = dict(conn.execute("stats"))

    def number(key: str) -> int:
        return _to_int(stats.get(key, "0"))

    lines = [
        f"Artists: {number('artists'):6d}",
        f"Albums:  {number('albums'):6d}",
        f"Songs:   {number('songs'):6d}",
        "",
        f"Play Time:    {format_dhms(number('playtime'))}",
        f"Uptime:       {format_dhms(number('uptime'))}",
        f"DB Updated:   {time.ctime(number('db_update'))}",
        f"DB Play Time: {format_dhms(number('db_playtime'))}",
    ]
    sys.stdout.write("\n".join(lines) + "\n")
    return 0


def cmd_status(conn: Connection, args: list[str], options: Any) -> int:
    """Print the status summary, or the status rendered with a format."""
    if options.verbosity >= Verbosity.DEFAULT:
        if not args:
            print_status(conn, options)
        elif len(args) == 1:
            text = format_status(conn.status(), args[0])
            print(text if text is not None else "")
    return 0


def cmd_replaygain(conn: Connection, args: list[str], options: Any = None) -> int:
    """Show the replay gain mode, or set it."""
    if not args:
        for name, value in conn.execute("replay_gain_status"):
            print(f"{name}: {value}")
    else:
        conn.execute("replay_gain_mode", args[0])
    return 0