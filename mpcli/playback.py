"""Playback control: play, pause, skip, seek and the current song."""

from __future__ import annotations

import math
from typing import Any

from .args import parse_float, parse_int, parse_songnum
from .client import CommandError, Connection, ServerError, pretty_print_song
from .options import F_DEFAULT
from .search import build_constraints
from .song_format import Song
from .status_format import PlayerState, Status

_SIGNS = {"+": 1, "-": -1}
_ACTIVE = (PlayerState.PLAY, PlayerState.PAUSE)


def _song_format(options: Any) -> str:
    return getattr(options, "format", None) or F_DEFAULT


def _print_song(song: Song, options: Any) -> None:
    pretty_print_song(song, _song_format(options))
    print()


def _active_song(status: Status) -> int:
    """Id of the current song if playing or paused, otherwise -1."""
    return status.song_id if status.state in _ACTIVE else -1


def _wait_current(conn: Connection) -> None:
    old_song = _active_song(conn.status())
    while True:
        conn.idle("player")
        if _active_song(conn.status()) != old_song:
            return


def _seek_number(text: str, check_negative: bool, label: str) -> int:
    try:
        value = parse_int(text)
    except ValueError:
        raise CommandError(f'"{label}" is not a positive number') from None
    if check_negative and value < 0:
        raise CommandError(f'"{label}" is not a positive number')
    return value


def parse_seek_argument(arg: str, through: bool = False) -> tuple[int, int]:
    """Parse ``[+-][[HH:]MM:]SS`` into a direction and a number of seconds.

    The direction is 1 for ``+``, -1 for ``-`` and 0 for an absolute
    position; when *through* is set an unsigned value counts as forward.
    """
    rel = _SIGNS.get(arg[:1], 0)
    body = arg[1:] if rel else arg
    if through and rel == 0:
        rel = 1
    check_negative = rel == (1 if through else 0)

    if ":" not in body:
        return rel, _seek_number(body, check_negative, body)

    head, sec_str = body.rsplit(":", 1)
    hours = 0
    if ":" in head:
        hr_str, min_str = head.rsplit(":", 1)
        hours = _seek_number(hr_str, check_negative, sec_str)
    else:
        min_str = head

    seconds = _seek_number(sec_str, check_negative, sec_str)
    minutes = _seek_number(min_str, check_negative, min_str)

    if minutes and len(sec_str) != 2:
        raise CommandError(f'"{sec_str}" is not two digits')
    if hours and len(min_str) != 2:
        raise CommandError(f'"{min_str}" is not two digits')

    if minutes and seconds > 60:
        raise CommandError(f'"{sec_str}" is greater than 60')
    if hours and minutes > 60:
        raise CommandError(f'"{min_str}" is greater than 60')

    return rel, hours * 3600 + minutes * 60 + seconds


def _send_seekcur(conn: Connection, rel: int, seekchange: int) -> None:
    if rel < 0:
        seekchange = -seekchange
    conn.execute("seekcur", f"{seekchange:+d}" if rel else f"{seekchange:d}")


def cmd_current(conn: Connection, args: list[str], options: Any) -> int:
    """Print the song being played or paused."""
    if getattr(options, "wait", False):
        _wait_current(conn)

    with conn.command_list(ok=True):
        conn.send("status")
        conn.send("currentsong")

    status = Status.from_pairs(conn.read_pairs())
    if status.state in _ACTIVE:
        conn.next_response()
        songs = list(conn.read_songs())
        if songs:
            _print_song(songs[0], options)
    conn.finish()
    return 0


def cmd_queued(conn: Connection, args: list[str], options: Any) -> int:
    """Print the song that will be played next."""
    next_id = conn.status().next_song_id
    if next_id < 0:
        return 0
    try:
        conn.send("playlistid", next_id)
        songs = list(conn.read_songs())
        conn.finish()
    except ServerError:
        return 0
    if songs:
        _print_song(songs[0], options)
    return 0


def cmd_play(conn: Connection, args: list[str], options: Any = None) -> int:
    """Start playback, optionally at a 1-based queue position."""
    if args:
        try:
            song = parse_songnum(args[0])
        except ValueError:
            raise CommandError(f"error parsing song numbers from: {args[0]}") from None
        conn.execute("play", song - 1)
    else:
        conn.execute("play")
    return 1


def cmd_searchplay(conn: Connection, args: list[str], options: Any = None) -> int:
    """Play the first song in the queue that matches."""
    if len(args) == 1:
        constraints = ["any", args[0]]
    else:
        constraints = build_constraints(args)

    conn.send("playlistsearch", *constraints)
    songs = list(conn.read_songs())
    conn.finish()

    if not songs or songs[0].id < 0:
        raise CommandError("error: playlist contains no matching song")

    conn.execute("playid", songs[0].id)
    return 1


def cmd_next(conn: Connection, args: list[str], options: Any = None) -> int:
    """Play the next song."""
    conn.execute("next")
    return 1


def cmd_prev(conn: Connection, args: list[str], options: Any = None) -> int:
    """Play the previous song."""
    conn.execute("previous")
    return 1


def cmd_stop(conn: Connection, args: list[str], options: Any = None) -> int:
    """Stop playback."""
    conn.execute("stop")
    return 1


def cmd_clearerror(conn: Connection, args: list[str], options: Any = None) -> int:
    """Clear the player error."""
    conn.execute("clearerror")
    return 1


def cmd_pause(conn: Connection, args: list[str], options: Any = None) -> int:
    """Pause playback."""
    conn.execute("pause", True)
    return 1


def cmd_pause_if_playing(conn: Connection, args: list[str], options: Any = None) -> int:
    """Pause if playing; fail with status 127 otherwise."""
    if conn.status().state is not PlayerState.PLAY:
        return -127
    return cmd_pause(conn, [], options)


def cmd_toggle(conn: Connection, args: list[str], options: Any = None) -> int:
    """Pause if playing, play otherwise."""
    if conn.status().state is PlayerState.PLAY:
        cmd_pause(conn, [], options)
    else:
        cmd_play(conn, [], options)
    return 1


def cmd_cdprev(conn: Connection, args: list[str], options: Any = None) -> int:
    """Go to the previous song within the first 3 seconds, else restart it."""
    status = conn.status()
    if status.elapsed_time < 3:
        cmd_prev(conn, [], options)
    else:
        conn.execute("seekid", status.song_id, 0)
    return 1


def cmd_seek(conn: Connection, args: list[str], options: Any = None) -> int:
    """Seek within the current song by time or percentage."""
    arg = args[0]
    rel = _SIGNS.get(arg[:1], 0)
    body = arg[1:] if rel else arg

    if body.endswith("%"):
        body = body[:-1]
        status = conn.status()
        if status.state is PlayerState.STOP:
            raise CommandError("not currently playing")

        error = CommandError(f'"{body}" is not an number between 0 and 100')
        try:
            perc = parse_float(body)
        except ValueError:
            raise error from None
        if (not math.isfinite(perc)
                or (rel == 0 and (perc < 0 or perc > 100))
                or (rel and perc > 100)):
            raise error
        seekchange = int(perc * status.total_time / 100 + 0.5)
    else:
        rel, seekchange = parse_seek_argument(arg, through=False)

    _send_seekcur(conn, rel, seekchange)
    return 1


def cmd_seek_through(conn: Connection, args: list[str], options: Any = None) -> int:
    """Seek by an amount of time, crossing song boundaries in the queue."""
    rel, seekchange = parse_seek_argument(args[0], through=True)

    rounds = 0
    is_playing = is_paused = True
    initial_is_paused = False
    while (is_playing or is_paused) and rounds < 100:
        rounds += 1
        status = conn.status()
        track_duration = status.total_time
        track_elapsed = status.elapsed_time
        is_playing = status.state is PlayerState.PLAY
        is_paused = status.state is PlayerState.PAUSE
        songpos = status.song_pos
        if rounds == 1:
            initial_is_paused = is_paused

        if rel >= 0 and seekchange >= track_duration - track_elapsed:
            seekchange -= track_duration - track_elapsed
            conn.execute("next")
            status = conn.status()
            track_duration = status.total_time
            is_playing = status.state is PlayerState.PLAY
            if not is_playing:
                # reached the end of the queue
                return -127

        if rel < 0 and seekchange > track_elapsed:
            seekchange -= track_elapsed
            conn.execute("previous")
            status = conn.status()
            if status.song_pos == songpos:
                seekchange = 0
                break
            track_duration = status.total_time
            seekchange -= track_duration
            if seekchange < 0:
                rel = 1
                seekchange = -seekchange

        if rel >= 0 and seekchange < track_duration - track_elapsed:
            break
        if rel < 0 and seekchange <= track_elapsed:
            break

    if initial_is_paused:
        cmd_pause(conn, [], options)

    if seekchange == 0:
        return 1

    _send_seekcur(conn, rel, seekchange)
    return 1