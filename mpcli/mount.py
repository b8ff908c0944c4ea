"""Listing, adding and removing storage mounts."""

from __future__ import annotations

from typing import Any

from .client import CommandError, Connection


def _list_mounts(conn: Connection) -> int:
    conn.send("listmounts")
    mounts: list[list[str | None]] = []
    for name, value in conn.read_pairs():
        if name == "mount":
            mounts.append([value, None])
        elif name == "storage" and mounts:
            mounts[-1][1] = value
    conn.finish()

    for uri, storage in mounts:
        print(f"{uri}\t{storage if storage is not None else '[unknown]'}")
    return 0


def cmd_mount(conn: Connection, args: list[str], options: Any = None) -> int:
    """List the mounts, or mount a storage URI at a path."""
    if not args:
        return _list_mounts(conn)
    if len(args) != 2:
        raise CommandError("Usage: mount URI STORAGE")
    conn.execute("mount", args[0], args[1])
    return 0


def cmd_unmount(conn: Connection, args: list[str], options: Any = None) -> int:
    """Remove a mount."""
    conn.execute("unmount", args[0])
    return 0