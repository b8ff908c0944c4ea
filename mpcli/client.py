"""Connection to the music player daemon and shared output helpers."""

from __future__ import annotations

import os
import re
import socket
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, TextIO

from .format import format_object
from .song_format import Song, Tag, format_song, parse_tag
from .status_format import Status

STDIN_SYMBOL = "-"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600
DEFAULT_TIMEOUT = 30.0

_ACK = re.compile(r"ACK \[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)")


class MPDError(Exception):
    """A failure while talking to the server."""


class ServerError(MPDError):
    """The server answered a command with an error."""

    def __init__(self, message: str, code: int = 0, location: int = 0,
                 command: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.location = location
        self.command = command


class CommandError(Exception):
    """A command could not be carried out; *status* is the exit status."""

    def __init__(self, message: str = "", status: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


CommandHandler = Callable[["Connection", list, Any], int]


class EntityType(Enum):
    UNKNOWN = "unknown"
    DIRECTORY = "directory"
    SONG = "song"
    PLAYLIST = "playlist"


@dataclass
class Entity:
    """A directory, song or playlist from a listing."""

    type: EntityType
    path: str
    song: Song | None = None


_ENTITY_STARTS = {
    "file": EntityType.SONG,
    "directory": EntityType.DIRECTORY,
    "playlist": EntityType.PLAYLIST,
}


def quote_argument(arg: Any) -> str:
    """Render one command argument for the wire."""
    if isinstance(arg, bool):
        return "1" if arg else "0"
    if isinstance(arg, int):
        return str(arg)
    if isinstance(arg, float):
        return f"{arg:f}"
    text = str(arg)
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _parse_ack(line: str) -> ServerError:
    match = _ACK.match(line)
    if match is None:
        return ServerError(line)
    return ServerError(match.group(4), int(match.group(1)),
                       int(match.group(2)), match.group(3))


def _parse_version(text: str) -> tuple[int, int, int]:
    parts = []
    for piece in text.strip().split(".")[:3]:
        match = re.match(r"[0-9]+", piece)
        parts.append(int(match.group()) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


class Connection:
    """A client connection speaking the line-based daemon protocol."""

    def __init__(self, host: str | None = None, port: int | None = None,
                 timeout: float | None = None) -> None:
        self._sock: socket.socket | None = None
        self._reader = None
        self._command_list: list[str] | None = None
        self._receiving = False
        self._at_list_ok = False

        host = host or os.environ.get("MPD_HOST") or DEFAULT_HOST
        try:
            if not port:
                port = int(os.environ.get("MPD_PORT") or DEFAULT_PORT)
            if not timeout:
                env_timeout = os.environ.get("MPD_TIMEOUT")
                timeout = float(env_timeout) if env_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise MPDError(f"invalid connection setting: {exc}") from exc
        self._timeout = timeout

        try:
            self._sock = self._connect(host, port, timeout)
        except OSError as exc:
            raise MPDError(f"Failed to connect to {host}: {exc}") from exc
        self._reader = self._sock.makefile("rb")

        try:
            greeting = self._read_line()
            if not greeting.startswith("OK MPD "):
                raise MPDError(f"Malformed greeting: {greeting!r}")
        except MPDError:
            self.close()
            raise
        self._version = _parse_version(greeting[len("OK MPD "):])

    @staticmethod
    def _connect(host: str, port: int, timeout: float) -> socket.socket:
        if host.startswith(("/", "@")) and hasattr(socket, "AF_UNIX"):
            path = "\0" + host[1:] if host.startswith("@") else host
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            try:
                sock.connect(path)
            except OSError:
                sock.close()
                raise
            return sock
        return socket.create_connection((host, port), timeout=timeout)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection."""
        for closable in (self._reader, self._sock):
            if closable is not None:
                try:
                    closable.close()
                except OSError:
                    pass
        self._reader = None
        self._sock = None
        self._receiving = False

    def server_version(self) -> tuple[int, int, int]:
        """The protocol version announced by the server."""
        return self._version

    def _read_line(self) -> str:
        if self._reader is None:
            raise MPDError("Connection is closed")
        try:
            raw = self._reader.readline()
        except OSError as exc:
            raise MPDError(f"Failed to receive from the server: {exc}") from exc
        if not raw.endswith(b"\n"):
            raise MPDError("Connection closed by the server")
        return raw[:-1].decode("utf-8", errors="replace")

    def _write(self, text: str) -> None:
        if self._sock is None:
            raise MPDError("Connection is closed")
        try:
            self._sock.sendall(text.encode("utf-8"))
        except OSError as exc:
            raise MPDError(f"Failed to send to the server: {exc}") from exc

    def send(self, command: str, *args: Any) -> None:
        """Send a command, or queue it inside a command list."""
        line = " ".join([command, *(quote_argument(a) for a in args)]) + "\n"
        if self._command_list is not None:
            self._command_list.append(line)
            return
        if self._receiving:
            raise MPDError("The previous response has not been read")
        self._write(line)
        self._receiving = True
        self._at_list_ok = False

    @contextmanager
    def command_list(self, ok: bool = False) -> Iterator["Connection"]:
        """Queue the commands sent inside the block and send them as a list."""
        if self._command_list is not None:
            raise MPDError("Already inside a command list")
        if self._receiving:
            raise MPDError("The previous response has not been read")
        self._command_list = []
        try:
            yield self
        except BaseException:
            self._command_list = None
            raise
        lines = self._command_list
        self._command_list = None
        begin = "command_list_ok_begin\n" if ok else "command_list_begin\n"
        self._write(begin + "".join(lines) + "command_list_end\n")
        self._receiving = True
        self._at_list_ok = False

    def read_pairs(self) -> Iterator[tuple[str, str]]:
        """Yield name/value pairs up to the end of the current response."""
        while self._receiving and not self._at_list_ok:
            line = self._read_line()
            if line == "OK":
                self._receiving = False
                return
            if line == "list_OK":
                self._at_list_ok = True
                return
            if line.startswith("ACK"):
                self._receiving = False
                self._at_list_ok = False
                raise _parse_ack(line)
            name, sep, value = line.partition(": ")
            if not sep:
                raise MPDError(f"Malformed line from the server: {line!r}")
            yield name, value

    def finish(self) -> None:
        """Discard the rest of the response, raising on a server error."""
        while self._receiving:
            self._at_list_ok = False
            for _ in self.read_pairs():
                pass

    def next_response(self) -> None:
        """Move to the next sub-response of a command list."""
        if not self._at_list_ok:
            for _ in self.read_pairs():
                pass
            if not self._at_list_ok:
                raise MPDError("No list_OK found")
        self._at_list_ok = False

    def execute(self, command: str, *args: Any) -> list[tuple[str, str]]:
        """Send a command and return all pairs of its response."""
        self.send(command, *args)
        pairs = list(self.read_pairs())
        self.finish()
        return pairs

    def read_binary(self, size: int) -> bytes:
        """Read a binary chunk announced by a ``binary`` pair."""
        if self._reader is None:
            raise MPDError("Connection is closed")
        try:
            data = self._reader.read(size + 1)
        except OSError as exc:
            raise MPDError(f"Failed to receive from the server: {exc}") from exc
        if len(data) != size + 1 or data[-1:] != b"\n":
            raise MPDError("Malformed binary response")
        return data[:-1]

    def status(self) -> Status:
        """Query the player status."""
        return Status.from_pairs(self.execute("status"))

    def read_songs(self) -> Iterator[Song]:
        """Yield the songs of the current response."""
        current: list[tuple[str, str]] | None = None
        for name, value in self.read_pairs():
            if name == "file":
                if current is not None:
                    yield Song.from_pairs(current)
                current = [(name, value)]
            elif current is not None:
                current.append((name, value))
        if current is not None:
            yield Song.from_pairs(current)

    def read_entities(self) -> Iterator[Entity]:
        """Yield the directories, songs and playlists of the response."""
        current: list[tuple[str, str]] | None = None
        for name, value in self.read_pairs():
            if name in _ENTITY_STARTS:
                if current is not None:
                    yield _make_entity(current)
                current = [(name, value)]
            elif current is not None:
                current.append((name, value))
        if current is not None:
            yield _make_entity(current)

    def idle(self, *events: str) -> list[str]:
        """Wait for the given subsystems (all if none) to change."""
        self.send("idle", *events)
        if self._sock is not None:
            self._sock.settimeout(None)
        try:
            changed = [value for name, value in self.read_pairs()
                       if name == "changed"]
            self.finish()
        finally:
            if self._sock is not None:
                self._sock.settimeout(self._timeout)
        return changed

    def password(self, password: str) -> None:
        """Authenticate with *password*."""
        self.execute("password", password)


def _make_entity(pairs: list[tuple[str, str]]) -> Entity:
    name, path = pairs[0]
    kind = _ENTITY_STARTS[name]
    song = Song.from_pairs(pairs) if kind is EntityType.SONG else None
    return Entity(kind, path, song)


def fetch_music_directory(conn: Connection) -> str | None:
    """Ask the server for its music directory; ``None`` if not available."""
    directory = None
    try:
        conn.send("config")
        for name, value in conn.read_pairs():
            if name == "music_directory":
                directory = value
                break
        conn.finish()
    except ServerError:
        return None
    return directory


def to_relative_path(path: str, music_directory: str | None) -> str | None:
    """Convert an absolute path below *music_directory* to a relative one."""
    if music_directory is None or not path.startswith("/"):
        return None
    base_length = len(music_directory)
    if base_length >= len(path) or not path.startswith(music_directory):
        return None
    if path[base_length] == "/":
        return path[base_length + 1:]
    return None


def tag_types_for_format(format: str) -> list[Tag]:
    """The tags that *format* refers to, in protocol order."""
    found: set[Tag] = set()

    def collect(name: str) -> None:
        tag = parse_tag(name)
        if tag is not None:
            found.add(tag)
        return None

    format_object(format, collect)
    return sorted(found)


def send_tag_types_for_format(conn: Connection, format: str | None) -> None:
    """Restrict the tags the server sends to those used by *format*."""
    conn.send("tagtypes", "clear")
    if format is None:
        return
    tags = tag_types_for_format(format)
    if tags:
        conn.send("tagtypes", "enable", *(tag.wire_name for tag in tags))


def pretty_print_song(song: Song, format: str, out: TextIO | None = None) -> None:
    """Write *song* rendered with *format*, without a newline."""
    target = sys.stdout if out is None else out
    text = format_song(song, format)
    if text:
        target.write(text)


def print_entity_list(conn: Connection,
                      filter_type: EntityType = EntityType.UNKNOWN,
                      pretty: bool = False, format: str | None = None,
                      out: TextIO | None = None) -> None:
    """Print each entity of the response, one per line.

    Only entities of *filter_type* are printed unless it is UNKNOWN.
    Songs are rendered with *format* when *pretty* is set and a format
    is given, otherwise by URI.
    """
    target = sys.stdout if out is None else out
    for entity in conn.read_entities():
        if filter_type is not EntityType.UNKNOWN and entity.type is not filter_type:
            continue
        if entity.type is EntityType.SONG and pretty and format is not None:
            assert entity.song is not None
            pretty_print_song(entity.song, format, target)
            target.write("\n")
        else:
            target.write(entity.path + "\n")


def print_filenames(conn: Connection, out: TextIO | None = None) -> None:
    """Print the URI of every song in the response."""
    target = sys.stdout if out is None else out
    for song in conn.read_songs():
        target.write(song.uri + "\n")