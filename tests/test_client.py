import io
import shlex
import socket
import threading

import pytest

from mpcli.client import (
    CommandError,
    Connection,
    EntityType,
    MPDError,
    ServerError,
    fetch_music_directory,
    pretty_print_song,
    print_entity_list,
    print_filenames,
    quote_argument,
    send_tag_types_for_format,
    tag_types_for_format,
    to_relative_path,
)
from mpcli.song_format import Song, Tag
from mpcli.status_format import PlayerState, Status

GREETING = b"OK MPD 0.23.5\n"


class FakeServer:
    def __init__(self, responses, greeting=GREETING, close_after=False):
        self.responses = list(responses)
        self.greeting = greeting
        self.close_after = close_after
        self.received = []
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        try:
            peer, _ = self._listener.accept()
        except OSError:
            return
        try:
            with peer, peer.makefile("rb") as reader:
                peer.sendall(self.greeting)
                for response in self.responses:
                    if not self._read_request(reader):
                        return
                    peer.sendall(response)
                if not self.close_after:
                    for line in reader:
                        self.received.append(line.decode().rstrip("\n"))
        except OSError:
            pass

    def _read_request(self, reader):
        line = reader.readline()
        if not line:
            return False
        text = line.decode().rstrip("\n")
        self.received.append(text)
        if text.startswith("command_list"):
            while True:
                line = reader.readline()
                if not line:
                    return False
                text = line.decode().rstrip("\n")
                self.received.append(text)
                if text == "command_list_end":
                    break
        return True

    def join(self):
        self._thread.join(timeout=5)

    def close(self):
        self._listener.close()


@pytest.fixture
def serve():
    servers = []

    def start(*responses, greeting=GREETING, close_after=False):
        server = FakeServer(responses, greeting, close_after)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


def connect(server):
    return Connection("127.0.0.1", server.port, 5)


def test_server_version_from_greeting(serve):
    server = serve()
    with connect(server) as conn:
        assert conn.server_version() == (0, 23, 5)


def test_malformed_greeting(serve):
    server = serve(greeting=b"HELLO\n")
    with pytest.raises(MPDError):
        connect(server)


def test_connection_refused():
    listener = socket.socket()
    listener.bind(("127.0.0.1", 0))
    port = listener.getsockname()[1]
    listener.close()
    with pytest.raises(MPDError):
        Connection("127.0.0.1", port, 2)


@pytest.mark.parametrize("text", ["plain", 'with "quotes"', "back\\slash", "a b c", ""])
def test_quote_argument_round_trip(text):
    assert shlex.split(quote_argument(text)) == [text]


def test_quote_argument_numbers():
    assert quote_argument(5) == "5"
    assert quote_argument(-3) == "-3"


def test_execute_returns_pairs_and_quotes_arguments(serve):
    server = serve(b"file: a.ogg\nTitle: Some title\nOK\n")
    with connect(server) as conn:
        pairs = conn.execute("find", "title", 'x "y"')
    server.join()
    assert pairs == [("file", "a.ogg"), ("Title", "Some title")]
    assert shlex.split(server.received[0]) == ["find", "title", 'x "y"']


def test_server_error_then_connection_usable(serve):
    server = serve(b"ACK [50@0] {play} No such song\n", b"OK\n")
    with connect(server) as conn:
        with pytest.raises(ServerError) as info:
            conn.execute("play", 99)
        assert conn.execute("ping") == []
    error = info.value
    assert (error.code, error.location, error.command) == (50, 0, "play")
    assert str(error) == "No such song"


def test_send_while_receiving_is_rejected(serve):
    server = serve(b"OK\n")
    with connect(server) as conn:
        conn.send("status")
        with pytest.raises(MPDError):
            conn.send("stats")
        conn.finish()


def test_status(serve):
    server = serve(b"volume: 42\nrepeat: 1\nstate: pause\nOK\n")
    with connect(server) as conn:
        status = conn.status()
    assert status.volume == 42
    assert status.repeat is True
    assert status.state is PlayerState.PAUSE


def test_command_list_with_ok(serve):
    server = serve(b"volume: 50\nstate: play\nlist_OK\nfile: a.ogg\nTitle: A\nlist_OK\nOK\n")
    with connect(server) as conn:
        with conn.command_list(ok=True):
            conn.send("status")
            conn.send("currentsong")
        status = Status.from_pairs(conn.read_pairs())
        conn.next_response()
        songs = list(conn.read_songs())
        conn.finish()
    assert status.volume == 50
    assert status.state is PlayerState.PLAY
    assert [song.get_tag(Tag.TITLE) for song in songs] == ["A"]
    assert server.received == ["command_list_ok_begin", "status", "currentsong", "command_list_end"]


def test_finish_skips_all_list_ok_sections(serve):
    server = serve(b"a: 1\nlist_OK\nb: 2\nlist_OK\nOK\n", b"OK\n")
    with connect(server) as conn:
        with conn.command_list(ok=True):
            conn.send("one")
            conn.send("two")
        conn.finish()
        assert conn.execute("ping") == []


def test_next_response_without_list_ok(serve):
    server = serve(b"a: 1\nOK\n")
    with connect(server) as conn:
        conn.send("one")
        with pytest.raises(MPDError):
            conn.next_response()


def test_read_binary(serve):
    server = serve(b"size: 3\nbinary: 3\nabc\nOK\n")
    with connect(server) as conn:
        conn.send("albumart", "x.ogg", 0)
        pairs = conn.read_pairs()
        size = next(int(value) for name, value in pairs if name == "binary")
        data = conn.read_binary(size)
        conn.finish()
    assert data == b"abc"


def test_read_songs_splits_on_file(serve):
    server = serve(b"file: a.ogg\nArtist: X\nfile: b.ogg\nTitle: Y\nOK\n")
    with connect(server) as conn:
        conn.send("playlistinfo")
        songs = list(conn.read_songs())
    assert [song.uri for song in songs] == ["a.ogg", "b.ogg"]
    assert songs[0].get_tag(Tag.ARTIST) == "X"
    assert songs[1].get_tag(Tag.ARTIST) is None


def test_read_entities(serve):
    server = serve(b"directory: music\nfile: music/a.ogg\nTitle: A\nplaylist: mix\nOK\n")
    with connect(server) as conn:
        conn.send("lsinfo")
        entities = list(conn.read_entities())
    assert [(e.type, e.path) for e in entities] == [
        (EntityType.DIRECTORY, "music"),
        (EntityType.SONG, "music/a.ogg"),
        (EntityType.PLAYLIST, "mix"),
    ]
    assert entities[1].song.get_tag(Tag.TITLE) == "A"


def test_idle_returns_changed_subsystems(serve):
    server = serve(b"changed: player\nchanged: mixer\nOK\n")
    with connect(server) as conn:
        changed = conn.idle("player", "mixer")
    server.join()
    assert changed == ["player", "mixer"]
    assert shlex.split(server.received[0]) == ["idle", "player", "mixer"]


def test_password_error(serve):
    server = serve(b"ACK [3@0] {password} incorrect password\n")
    password = "password"
    with connect(server) as conn:
        with pytest.raises(ServerError) as info:
            conn.password(password)
    assert info.value.command == "password"


def test_fetch_music_directory(serve):
    server = serve(b"music_directory: /srv/music\nOK\n")
    with connect(server) as conn:
        assert fetch_music_directory(conn) == "/srv/music"


def test_fetch_music_directory_server_error(serve):
    server = serve(b"ACK [4@0] {config} Permission denied\n", b"OK\n")
    with connect(server) as conn:
        assert fetch_music_directory(conn) is None
        assert conn.execute("ping") == []


def test_to_relative_path():
    assert to_relative_path("/music/a/b.ogg", "/music") == "a/b.ogg"
    assert to_relative_path("/music", "/music") is None
    assert to_relative_path("/musicx/a.ogg", "/music") is None
    assert to_relative_path("relative/a.ogg", "/music") is None
    assert to_relative_path("/music/a.ogg", None) is None


def test_tag_types_for_format():
    assert tag_types_for_format("%title% - %artist% %file%") == [Tag.ARTIST, Tag.TITLE]
    assert tag_types_for_format("%file% %position%") == []


def test_tag_types_for_format_skips_and_section():
    assert tag_types_for_format("[%name%: &%artist%]") == [Tag.NAME]


def test_pretty_print_song():
    song = Song.from_pairs([("file", "a.ogg"), ("Title", "A")])
    out = io.StringIO()
    pretty_print_song(song, "%title%", out)
    pretty_print_song(song, "[%artist%]", out)
    assert out.getvalue() == "A"


def test_print_entity_list(serve):
    response = b"directory: music\nfile: music/a.ogg\nTitle: A\nplaylist: mix\nOK\n"
    server = serve(response, response)
    with connect(server) as conn:
        plain = io.StringIO()
        conn.send("lsinfo")
        print_entity_list(conn, EntityType.UNKNOWN, False, None, plain)
        conn.finish()
        pretty = io.StringIO()
        conn.send("lsinfo")
        print_entity_list(conn, EntityType.SONG, True, "%title%", pretty)
        conn.finish()
    assert plain.getvalue() == "music\nmusic/a.ogg\nmix\n"
    assert pretty.getvalue() == "A\n"


def test_print_filenames(serve):
    server = serve(b"file: a.ogg\nfile: b.ogg\nOK\n")
    with connect(server) as conn:
        out = io.StringIO()
        conn.send("listall")
        print_filenames(conn, out)
    assert out.getvalue() == "a.ogg\nb.ogg\n"


def test_command_error_carries_status():
    error = CommandError("not currently playing", status=127)
    assert error.status == 127
    assert str(error) == "not currently playing"
    assert CommandError().status == 1