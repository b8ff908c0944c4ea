"""Song metadata and formatting of songs with a format string."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Iterable

from .format import format_object


class Tag(IntEnum):
    """Tag types known to the music player daemon protocol."""

    ARTIST = 0
    ALBUM = 1
    ALBUM_ARTIST = 2
    TITLE = 3
    TRACK = 4
    NAME = 5
    GENRE = 6
    DATE = 7
    COMPOSER = 8
    PERFORMER = 9
    COMMENT = 10
    DISC = 11
    MUSICBRAINZ_ARTISTID = 12
    MUSICBRAINZ_ALBUMID = 13
    MUSICBRAINZ_ALBUMARTISTID = 14
    MUSICBRAINZ_TRACKID = 15
    MUSICBRAINZ_RELEASETRACKID = 16
    ORIGINAL_DATE = 17
    ARTIST_SORT = 18
    ALBUM_ARTIST_SORT = 19
    ALBUM_SORT = 20
    LABEL = 21
    MUSICBRAINZ_WORKID = 22
    GROUPING = 23
    WORK = 24
    CONDUCTOR = 25

    @property
    def wire_name(self) -> str:
        """The name used for this tag in the protocol."""
        return _WIRE_NAMES[self]


_WIRE_NAMES = {
    Tag.ARTIST: "Artist",
    Tag.ALBUM: "Album",
    Tag.ALBUM_ARTIST: "AlbumArtist",
    Tag.TITLE: "Title",
    Tag.TRACK: "Track",
    Tag.NAME: "Name",
    Tag.GENRE: "Genre",
    Tag.DATE: "Date",
    Tag.COMPOSER: "Composer",
    Tag.PERFORMER: "Performer",
    Tag.COMMENT: "Comment",
    Tag.DISC: "Disc",
    Tag.MUSICBRAINZ_ARTISTID: "MUSICBRAINZ_ARTISTID",
    Tag.MUSICBRAINZ_ALBUMID: "MUSICBRAINZ_ALBUMID",
    Tag.MUSICBRAINZ_ALBUMARTISTID: "MUSICBRAINZ_ALBUMARTISTID",
    Tag.MUSICBRAINZ_TRACKID: "MUSICBRAINZ_TRACKID",
    Tag.MUSICBRAINZ_RELEASETRACKID: "MUSICBRAINZ_RELEASETRACKID",
    Tag.ORIGINAL_DATE: "OriginalDate",
    Tag.ARTIST_SORT: "ArtistSort",
    Tag.ALBUM_ARTIST_SORT: "AlbumArtistSort",
    Tag.ALBUM_SORT: "AlbumSort",
    Tag.LABEL: "Label",
    Tag.MUSICBRAINZ_WORKID: "MUSICBRAINZ_WORKID",
    Tag.GROUPING: "Grouping",
    Tag.WORK: "Work",
    Tag.CONDUCTOR: "Conductor",
}

_TAGS_BY_LOWER_NAME = {name.lower(): tag for tag, name in _WIRE_NAMES.items()}


def parse_tag(name: str) -> Tag | None:
    """Look a tag up by name, ignoring case; ``None`` if unknown."""
    return _TAGS_BY_LOWER_NAME.get(name.lower())


def tag_names() -> list[str]:
    """All tag names in protocol order."""
    return [_WIRE_NAMES[tag] for tag in Tag]


_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")


def _atoi(value: str) -> int:
    match = _INT_PREFIX.match(value)
    return int(match.group()) if match else 0


def _parse_timestamp(value: str) -> int:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


@dataclass
class Song:
    """A song as described by the server."""

    uri: str
    tags: dict[Tag, list[str]] = field(default_factory=dict)
    time: int = 0
    duration_ms: int = 0
    pos: int = 0
    id: int = 0
    prio: int = 0
    last_modified: int = 0

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "Song":
        """Build a song from response pairs; the first must be ``file``."""
        iterator = iter(pairs)
        try:
            name, value = next(iterator)
        except StopIteration:
            raise ValueError("a song needs a 'file' pair") from None
        if name != "file":
            raise ValueError(f"a song must begin with 'file', not {name!r}")
        song = cls(uri=value)
        for name, value in iterator:
            song._feed(name, value)
        return song

    def _feed(self, name: str, value: str) -> None:
        if name == "file":
            raise ValueError("a 'file' pair begins a new song")
        tag = parse_tag(name)
        if tag is not None:
            self.tags.setdefault(tag, []).append(value)
        elif name == "Time":
            self.time = _atoi(value)
        elif name == "duration":
            try:
                self.duration_ms = int(float(value) * 1000 + 0.5)
            except ValueError:
                pass
        elif name == "Pos":
            self.pos = _atoi(value)
        elif name == "Id":
            self.id = _atoi(value)
        elif name == "Prio":
            self.prio = _atoi(value)
        elif name == "Last-Modified":
            self.last_modified = _parse_timestamp(value)

    @property
    def duration(self) -> int:
        """Duration in whole seconds, 0 if unknown."""
        if self.time > 0:
            return self.time
        return (self.duration_ms + 500) // 1000

    def get_tag(self, tag: Tag) -> str | None:
        """First value of *tag*, or ``None`` if the song lacks it."""
        values = self.tags.get(tag)
        return values[0] if values else None


def _format_mtime(song: Song, pattern: str) -> str | None:
    if song.last_modified == 0:
        return None
    return time.strftime(pattern, time.localtime(song.last_modified))


def _song_value(song: Song, name: str) -> str | None:
    if name == "file":
        value: str | None = song.uri
    elif name == "time":
        duration = song.duration
        value = f"{duration // 60}:{duration % 60:02d}" if duration > 0 else None
    elif name == "position":
        value = str(song.pos + 1)
    elif name == "id":
        value = str(song.id)
    elif name == "prio":
        value = str(song.prio)
    elif name == "mtime":
        value = _format_mtime(song, "%c")
    elif name == "mdate":
        value = _format_mtime(song, "%x")
    else:
        tag = parse_tag(name)
        if tag is None:
            return None
        value = song.get_tag(tag)

    return value if value is not None else ""


def format_song(song: Song, format: str) -> str | None:
    """Render *song* with *format*; ``None`` if nothing was produced."""
    return format_object(format, lambda name: _song_value(song, name))