"""Client-to-client messages over channels."""

from __future__ import annotations

from typing import Any

from .client import Connection


def _print_messages(conn: Connection) -> None:
    conn.send("readmessages")
    for name, value in conn.read_pairs():
        if name == "message":
            print(value)
    conn.finish()


def cmd_channels(conn: Connection, args: list[str], options: Any = None) -> int:
    """List the channels other clients have subscribed to."""
    conn.send("channels")
    for name, value in conn.read_pairs():
        if name == "channel":
            print(value)
    conn.finish()
    return 0


def cmd_sendmessage(conn: Connection, args: list[str], options: Any = None) -> int:
    """Send a message to a channel."""
    conn.execute("sendmessage", args[0], args[1])
    return 0


def cmd_waitmessage(conn: Connection, args: list[str], options: Any = None) -> int:
    """Subscribe to a channel and print the first batch of messages."""
    conn.execute("subscribe", args[0])
    conn.idle("message")
    _print_messages(conn)
    return 0


def cmd_subscribe(conn: Connection, args: list[str], options: Any = None) -> int:
    """Subscribe to a channel and print messages until the connection fails."""
    conn.execute("subscribe", args[0])
    while True:
        conn.idle("message")
        _print_messages(conn)