import socket
import threading

import pytest

from mpcli.client import CommandError, Connection
from mpcli.options import Options
from mpcli.search import (
    build_constraints,
    cmd_find,
    cmd_findadd,
    cmd_search,
    cmd_searchadd,
    get_search_type,
)


class FakeServer:
    """Answers commands with scripted responses and records them."""

    def __init__(self, responses):
        self.responses = {
            name: (list(value) if isinstance(value, list) else [value])
            for name, value in responses.items()
        }
        self.commands = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def close(self):
        self._listener.close()

    def _respond(self, line):
        self.commands.append(line)
        queue = self.responses.get(line.split(" ", 1)[0], [""])
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def _serve(self):
        try:
            client, _ = self._listener.accept()
        except OSError:
            return
        with client, client.makefile("rwb") as stream:
            stream.write(b"OK MPD 0.23.0\n")
            stream.flush()
            pending = None
            ok = False
            for raw in stream:
                line = raw.decode().rstrip("\n")
                if line in ("command_list_begin", "command_list_ok_begin"):
                    pending = []
                    ok = line == "command_list_ok_begin"
                    continue
                if pending is not None and line != "command_list_end":
                    pending.append(line)
                    continue
                if line == "command_list_end":
                    reply = ""
                    for cmd in pending:
                        body = self._respond(cmd)
                        if body.startswith("ACK"):
                            reply += body
                            break
                        reply += body + ("list_OK\n" if ok else "")
                    else:
                        reply += "OK\n"
                    pending = None
                else:
                    body = self._respond(line)
                    reply = body if body.startswith("ACK") else body + "OK\n"
                stream.write(reply.encode())
                stream.flush()


@pytest.fixture
def connect():
    opened = []

    def factory(responses=None):
        server = FakeServer(responses or {})
        conn = Connection("127.0.0.1", server.port, 5)
        opened.append((server, conn))
        return server, conn

    yield factory
    for server, conn in opened:
        conn.close()
        server.close()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("any", "any"),
        ("ANY", "any"),
        ("filename", "file"),
        ("Base", "base"),
        ("artist", "Artist"),
        ("albumartist", "AlbumArtist"),
    ],
)
def test_get_search_type(name, expected):
    assert get_search_type(name) == expected


def test_get_search_type_unknown():
    with pytest.raises(ValueError) as info:
        get_search_type("bogus")
    assert '"bogus" is not a valid search type: <any|Artist' in str(info.value)


def test_build_constraints_pairs():
    assert build_constraints(["artist", "Foo", "title", "Bar"]) == [
        "Artist", "Foo", "Title", "Bar"]


def test_build_constraints_expression_passes_through():
    expression = "(artist == 'Foo')"
    assert build_constraints([expression]) == [expression]


def test_build_constraints_odd_count():
    with pytest.raises(CommandError) as info:
        build_constraints(["artist", "Foo", "title"])
    assert info.value.message == "arguments must be pairs of search types and queries"


def test_build_constraints_unknown_type():
    with pytest.raises(CommandError) as info:
        build_constraints(["nope", "Foo"])
    assert '"nope" is not a valid search type' in info.value.message


def test_cmd_search_prints_uris(connect, capsys):
    server, conn = connect({"search": "file: foo.ogg\nTitle: Bar\n"})
    assert cmd_search(conn, ["artist", "Foo"], Options(format="%title%")) == 0
    assert server.commands == ['tagtypes "clear"', 'search "Artist" "Foo"']
    assert capsys.readouterr().out == "foo.ogg\n"


def test_cmd_find_with_custom_format(connect, capsys):
    server, conn = connect({"find": "file: foo.ogg\nTitle: Bar\n"})
    options = Options(format="%title%", custom_format=True)
    assert cmd_find(conn, ["artist", "Foo"], options) == 0
    assert server.commands == [
        'tagtypes "clear"',
        'tagtypes "enable" "Title"',
        'find "Artist" "Foo"',
    ]
    assert capsys.readouterr().out == "Bar\n"


def test_cmd_findadd(connect):
    server, conn = connect()
    assert cmd_findadd(conn, ["filename", "foo.ogg"], Options()) == 0
    assert server.commands == ['findadd "file" "foo.ogg"']


def test_cmd_searchadd(connect):
    server, conn = connect()
    assert cmd_searchadd(conn, ["any", "Foo"], Options()) == 0
    assert server.commands == ['searchadd "any" "Foo"']


def test_cmd_search_invalid_sends_nothing(connect):
    server, conn = connect()
    with pytest.raises(CommandError):
        cmd_search(conn, ["artist"], Options())
    assert server.commands == []