"""Player status and formatting of the status with a format string."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .format import format_object


class PlayerState(Enum):
    UNKNOWN = "unknown"
    STOP = "stop"
    PLAY = "play"
    PAUSE = "pause"


class SingleState(Enum):
    OFF = "0"
    ON = "1"
    ONESHOT = "oneshot"
    UNKNOWN = "unknown"


_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")


def _atoi(value: str) -> int:
    match = _INT_PREFIX.match(value)
    return int(match.group()) if match else 0


def _atof(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


@dataclass
class Status:
    """The player status as reported by the server."""

    volume: int = -1
    repeat: bool = False
    random: bool = False
    single: SingleState = SingleState.OFF
    consume: bool = False
    queue_length: int = 0
    state: PlayerState = PlayerState.UNKNOWN
    song_pos: int = -1
    song_id: int = -1
    next_song_pos: int = -1
    next_song_id: int = -1
    elapsed_time: int = 0
    elapsed_ms: int = 0
    total_time: int = 0
    kbit_rate: int = 0
    crossfade: int = 0
    mixrampdb: float = 0.0
    mixrampdelay: float = 0.0
    update_id: int = 0
    error: str | None = None

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "Status":
        """Build a status from the pairs of a ``status`` response."""
        status = cls()
        for name, value in pairs:
            status._feed(name, value)
        return status

    def _feed(self, name: str, value: str) -> None:
        if name == "volume":
            self.volume = _atoi(value)
        elif name == "repeat":
            self.repeat = _atoi(value) != 0
        elif name == "random":
            self.random = _atoi(value) != 0
        elif name == "single":
            try:
                self.single = SingleState(value)
            except ValueError:
                self.single = SingleState.UNKNOWN
        elif name == "consume":
            self.consume = _atoi(value) != 0
        elif name == "playlistlength":
            self.queue_length = _atoi(value)
        elif name == "state":
            try:
                self.state = PlayerState(value)
            except ValueError:
                self.state = PlayerState.UNKNOWN
        elif name == "song":
            self.song_pos = _atoi(value)
        elif name == "songid":
            self.song_id = _atoi(value)
        elif name == "nextsong":
            self.next_song_pos = _atoi(value)
        elif name == "nextsongid":
            self.next_song_id = _atoi(value)
        elif name == "time":
            elapsed, _, total = value.partition(":")
            self.elapsed_time = _atoi(elapsed)
            self.total_time = _atoi(total)
        elif name == "elapsed":
            self.elapsed_ms = int(_atof(value) * 1000)
        elif name == "bitrate":
            self.kbit_rate = _atoi(value)
        elif name == "xfade":
            self.crossfade = _atoi(value)
        elif name == "mixrampdb":
            self.mixrampdb = _atof(value)
        elif name == "mixrampdelay":
            self.mixrampdelay = _atof(value)
        elif name == "updating_db":
            self.update_id = _atoi(value)
        elif name == "error":
            self.error = value


def elapsed_percent(status: Status) -> int:
    """Percentage of the current song already played, 0 to 100."""
    total = status.total_time
    if total <= 0:
        return 0
    elapsed = status.elapsed_time
    if elapsed >= total:
        return 100
    return elapsed * 100 // total


_ON_OFF = {True: "on", False: "off"}


def _minutes(seconds: int) -> str:
    return f"{seconds // 60}:{seconds % 60:02d}"


_SINGLE_NAMES = {
    SingleState.ON: "on",
    SingleState.ONESHOT: "once",
    SingleState.OFF: "off",
}


def _status_value(status: Status, name: str) -> str | None:
    if name == "totaltime":
        return _minutes(status.total_time)
    if name == "songpos":
        return str(status.song_pos + 1)
    if name == "length":
        return str(status.queue_length)
    if name == "currenttime":
        return _minutes(status.elapsed_time)
    if name == "percenttime":
        return f"{elapsed_percent(status):3d}%"
    if name == "state":
        return "playing" if status.state is PlayerState.PLAY else "paused"
    if name == "volume":
        return f"{status.volume:3d}%"
    if name == "repeat":
        return _ON_OFF[bool(status.repeat)]
    if name == "random":
        return _ON_OFF[bool(status.random)]
    if name == "single":
        return _SINGLE_NAMES.get(status.single, "")
    if name == "consume":
        return _ON_OFF[bool(status.consume)]
    return None


def format_status(status: Status, format: str) -> str | None:
    """Render *status* with *format*; ``None`` if nothing was produced."""
    return format_object(format, lambda name: _status_value(status, name))