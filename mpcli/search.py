"""Database searches by tag, file name, base directory or filter expression."""

from __future__ import annotations

from typing import Any

from .client import (
    CommandError,
    Connection,
    EntityType,
    print_entity_list,
    send_tag_types_for_format,
)
from .song_format import parse_tag, tag_names

SEARCH_ANY = "any"
SEARCH_URI = "file"
SEARCH_BASE = "base"

_SPECIAL_TYPES = {
    "any": SEARCH_ANY,
    "filename": SEARCH_URI,
    "base": SEARCH_BASE,
}


def get_search_type(name: str) -> str:
    """Map a user-supplied search type to its protocol name.

    ``any``, ``filename`` and ``base`` are special; everything else must be
    a tag name.  Case is ignored.  Raises ``ValueError`` for unknown types.
    """
    special = _SPECIAL_TYPES.get(name.lower())
    if special is not None:
        return special

    tag = parse_tag(name)
    if tag is not None:
        return tag.wire_name

    choices = "|".join(["any", *tag_names()])
    raise ValueError(f'"{name}" is not a valid search type: <{choices}>')


def build_constraints(args: list[str]) -> list[str]:
    """Turn ``<type> <query>`` pairs into search command arguments.

    A single argument starting with ``(`` is a filter expression and is
    passed through unchanged.
    """
    if len(args) == 1 and args[0].startswith("("):
        return [args[0]]

    if len(args) % 2 != 0:
        raise CommandError("arguments must be pairs of search types and queries")

    constraints: list[str] = []
    for kind, query in zip(args[::2], args[1::2]):
        try:
            constraints += [get_search_type(kind), query]
        except ValueError as exc:
            raise CommandError(str(exc)) from exc
    return constraints


def _do_search(conn: Connection, args: list[str], options: Any, exact: bool) -> int:
    constraints = build_constraints(args)
    custom = bool(options.custom_format)
    with conn.command_list():
        # only ask for the tags the format actually uses
        send_tag_types_for_format(conn, options.format if custom else None)
        conn.send("find" if exact else "search", *constraints)

    print_entity_list(conn, EntityType.SONG, custom, options.format)
    conn.finish()
    return 0


def _do_searchadd(conn: Connection, args: list[str], exact: bool) -> int:
    constraints = build_constraints(args)
    conn.execute("findadd" if exact else "searchadd", *constraints)
    return 0


def cmd_search(conn: Connection, args: list[str], options: Any) -> int:
    """Search the database (substring, case-insensitive) and print songs."""
    return _do_search(conn, args, options, exact=False)


def cmd_searchadd(conn: Connection, args: list[str], options: Any = None) -> int:
    """Search the database and add the matches to the queue."""
    return _do_searchadd(conn, args, exact=False)


def cmd_find(conn: Connection, args: list[str], options: Any) -> int:
    """Find songs by exact match and print them."""
    return _do_search(conn, args, options, exact=True)


def cmd_findadd(conn: Connection, args: list[str], options: Any = None) -> int:
    """Find songs by exact match and add them to the queue."""
    return _do_searchadd(conn, args, exact=True)