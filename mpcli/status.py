"""The status summary printed after most commands."""

from __future__ import annotations

import sys

from .client import Connection
from .options import F_DEFAULT, Options
from .song_format import Song, format_song
from .status_format import PlayerState, SingleState, Status, elapsed_percent

_SINGLE_TEXT = {
    SingleState.ON: "on    ",
    SingleState.ONESHOT: "once  ",
    SingleState.OFF: "off   ",
}

_FLAG_TEXT = {True: "on    ", False: "off   "}


def status_text(status: Status, song: Song | None = None,
                song_format: str = F_DEFAULT) -> str:
    """Render the multi-line status summary."""
    parts: list[str] = []

    if status.state in (PlayerState.PLAY, PlayerState.PAUSE):
        if song is not None:
            parts.append((format_song(song, song_format) or "") + "\n")

        parts.append("[playing]" if status.state is PlayerState.PLAY else "[paused] ")
        elapsed = status.elapsed_time
        total = status.total_time
        parts.append(
            f" #{status.song_pos + 1}/{status.queue_length}"
            f" {elapsed // 60:3d}:{elapsed % 60:02d}"
            f"/{total // 60}:{total % 60:02d}"
            f" ({elapsed_percent(status)}%)\n"
        )

    if status.update_id > 0:
        parts.append(f"Updating DB (#{status.update_id}) ...\n")

    if status.volume >= 0:
        parts.append(f"volume:{status.volume:3d}%   ")
    else:
        parts.append("volume: n/a   ")

    parts.append("repeat: " + _FLAG_TEXT[bool(status.repeat)])
    parts.append("random: " + _FLAG_TEXT[bool(status.random)])
    parts.append("single: " + _SINGLE_TEXT.get(status.single, ""))
    parts.append("consume: " + ("on \n" if status.consume else "off\n"))

    if status.error is not None:
        parts.append(f"ERROR: {status.error}\n")

    return "".join(parts)


def print_status(conn: Connection, options: Options) -> None:
    """Query status and current song and print the summary."""
    with conn.command_list(ok=True):
        conn.send("status")
        conn.send("currentsong")

    status = Status.from_pairs(conn.read_pairs())
    song = None
    if status.state in (PlayerState.PLAY, PlayerState.PAUSE):
        conn.next_response()
        song = next(iter(list(conn.read_songs())), None)
    conn.finish()

    sys.stdout.write(status_text(status, song, options.format or F_DEFAULT))