import socket
import threading

import pytest

from mpcli.client import CommandError, Connection, ServerError
from mpcli.mount import cmd_mount, cmd_unmount

GREETING = b"OK MPD 0.23.5\n"


class FakeServer:
    """A scripted server answering each command from a table."""

    def __init__(self, responses):
        self.responses = responses
        self.received = []
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        peer, _ = self._listener.accept()
        with peer, peer.makefile("rb") as reader:
            peer.sendall(GREETING)
            for raw in reader:
                line = raw.decode("utf-8").rstrip("\n")
                self.received.append(line)
                out = list(self.responses.get(line.split(" ", 1)[0], []))
                if not (out and out[-1].startswith("ACK")):
                    out.append("OK")
                peer.sendall("".join(item + "\n" for item in out).encode("utf-8"))

    def close(self):
        self._listener.close()


@pytest.fixture
def connect():
    opened = []

    def start(responses=None):
        server = FakeServer(responses or {})
        conn = Connection("127.0.0.1", server.port, 5)
        opened.append((server, conn))
        return server, conn

    yield start
    for server, conn in opened:
        conn.close()
        server.close()


def test_list_mounts(connect, capsys):
    server, conn = connect({"listmounts": [
        "mount: ", "storage: /srv/music",
        "mount: usb",
        "mount: nas", "storage: nfs://host/share",
    ]})
    assert cmd_mount(conn, [], None) == 0
    assert server.received == ["listmounts"]
    assert capsys.readouterr().out.split("\n") == [
        "\t/srv/music",
        "usb\t[unknown]",
        "nas\tnfs://host/share",
        "",
    ]


def test_list_mounts_empty(connect, capsys):
    _, conn = connect()
    cmd_mount(conn, [], None)
    assert capsys.readouterr().out == ""


def test_mount_sends_uri_and_storage(connect):
    server, conn = connect()
    assert cmd_mount(conn, ["usb", "udisks://sdb1"], None) == 0
    assert server.received[-1] == 'mount "usb" "udisks://sdb1"'


def test_mount_with_one_argument_is_usage_error(connect):
    server, conn = connect()
    with pytest.raises(CommandError, match="Usage: mount URI STORAGE"):
        cmd_mount(conn, ["usb"], None)
    assert server.received == []


def test_mount_server_error_propagates(connect):
    _, conn = connect({"mount": ["ACK [50@0] {mount} boom"]})
    with pytest.raises(ServerError) as info:
        cmd_mount(conn, ["usb", "udisks://sdb1"], None)
    assert info.value.message == "boom"


def test_unmount(connect):
    server, conn = connect()
    assert cmd_unmount(conn, ["usb"], None) == 0
    assert server.received[-1] == 'unmount "usb"'