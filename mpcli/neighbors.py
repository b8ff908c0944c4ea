"""Listing of storage neighbours found by the server."""

from __future__ import annotations

from typing import Any

from .client import Connection


def cmd_listneighbors(conn: Connection, args: list[str], options: Any = None) -> int:
    """Print the URI of every neighbour."""
    conn.send("listneighbors")
    for name, value in conn.read_pairs():
        if name == "neighbor":
            print(value)
    conn.finish()
    return 0