import shlex
import socket
import threading

import pytest

from mpcli.client import Connection, MPDError
from mpcli.idle import IDLE_EVENTS, cmd_idle, cmd_idleloop, parse_idle_events


class FakeServer:
    def __init__(self, responses, close_after=False):
        self.responses = list(responses)
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
                peer.sendall(b"OK MPD 0.23.5\n")
                for response in self.responses:
                    line = reader.readline()
                    if not line:
                        return
                    self.received.append(line.decode().rstrip("\n"))
                    peer.sendall(response)
                if not self.close_after:
                    for line in reader:
                        self.received.append(line.decode().rstrip("\n"))
        except OSError:
            pass

    def join(self):
        self._thread.join(timeout=5)

    def close(self):
        self._listener.close()


@pytest.fixture
def serve():
    servers = []

    def start(*responses, close_after=False):
        server = FakeServer(responses, close_after)
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.close()


def test_parse_idle_events_keeps_order_and_drops_repeats():
    assert parse_idle_events(["player", "mixer", "player"]) == ["player", "mixer"]
    assert parse_idle_events([]) == []


def test_parse_idle_events_rejects_unknown():
    with pytest.raises(ValueError) as info:
        parse_idle_events(["player", "bogus"])
    assert str(info.value) == "Unrecognized idle event: bogus"


def test_all_known_events_parse():
    assert parse_idle_events(IDLE_EVENTS) == list(IDLE_EVENTS)


def test_cmd_idle_prints_changes_in_event_order(serve, capsys):
    server = serve(b"changed: mixer\nchanged: player\nOK\n")
    with Connection("127.0.0.1", server.port, 5) as conn:
        ret = cmd_idle(conn, ["mixer", "player"], None)
    server.join()
    assert ret == 0
    assert capsys.readouterr().out == "player\nmixer\n"
    assert shlex.split(server.received[0]) == ["idle", "mixer", "player"]


def test_cmd_idle_without_events_waits_for_everything(serve, capsys):
    server = serve(b"changed: database\nOK\n")
    with Connection("127.0.0.1", server.port, 5) as conn:
        assert cmd_idle(conn, [], None) == 0
    server.join()
    assert server.received[0] == "idle"
    assert capsys.readouterr().out == "database\n"


def test_cmd_idle_bad_event(serve, capsys):
    server = serve()
    with Connection("127.0.0.1", server.port, 5) as conn:
        assert cmd_idle(conn, ["bogus"], None) == 1
    server.join()
    assert "Unrecognized idle event: bogus" in capsys.readouterr().err
    assert server.received == []


def test_cmd_idleloop_bad_event_returns(serve):
    server = serve()
    with Connection("127.0.0.1", server.port, 5) as conn:
        assert cmd_idleloop(conn, ["bogus"], None) == 1


def test_cmd_idleloop_repeats_until_connection_fails(serve, capsys):
    server = serve(b"changed: player\nOK\n", b"changed: mixer\nOK\n", close_after=True)
    with Connection("127.0.0.1", server.port, 5) as conn:
        with pytest.raises(MPDError):
            cmd_idleloop(conn, [], None)
    assert capsys.readouterr().out == "player\nmixer\n"