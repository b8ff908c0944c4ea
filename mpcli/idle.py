"""Waiting for changes on the server."""

from __future__ import annotations

import sys
from typing import Any, Iterable

from .client import Connection

IDLE_EVENTS = (
    "database",
    "stored_playlist",
    "playlist",
    "player",
    "mixer",
    "output",
    "options",
    "update",
    "sticker",
    "subscription",
    "message",
    "partition",
    "neighbor",
    "mount",
)


def parse_idle_events(names: Iterable[str]) -> list[str]:
    """Validate idle event names, dropping repeats."""
    events: list[str] = []
    for name in names:
        if name not in IDLE_EVENTS:
            raise ValueError(f"Unrecognized idle event: {name}")
        if name not in events:
            events.append(name)
    return events


def cmd_idle(conn: Connection, args: list[str], options: Any = None) -> int:
    """Wait for one change and print the subsystems that changed."""
    try:
        events = parse_idle_events(args)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    changed = set(conn.idle(*events))
    for name in IDLE_EVENTS:
        if name in changed:
            print(name)
    return 0


def cmd_idleloop(conn: Connection, args: list[str], options: Any = None) -> int:
    """Keep waiting for changes until an error occurs."""
    while True:
        ret = cmd_idle(conn, args, options)
        sys.stdout.flush()
        if ret != 0:
            return ret