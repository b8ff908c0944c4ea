"""Collection of trailing ``group <tag>`` arguments."""

from __future__ import annotations

from dataclasses import dataclass, field

from .client import CommandError
from .song_format import Tag, parse_tag

MAX_GROUPS = 4


@dataclass
class Groups:
    """Tags to group a tag listing by, in the order they were collected."""

    tags: list[Tag] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tags)

    def collect(self, args: list[str]) -> list[str]:
        """Take ``group <tag>`` pairs off the end of *args*; return the rest."""
        remaining = list(args)
        while len(remaining) >= 2 and remaining[-2] == "group":
            if len(self.tags) >= MAX_GROUPS:
                raise CommandError('Too many "group" parameters')
            name = remaining[-1]
            tag = parse_tag(name)
            if tag is None:
                raise CommandError(f"Unknown tag: {name}")
            if self.find(tag) >= 0:
                raise CommandError(f"Duplicate group tag: {name}")
            self.tags.append(tag)
            del remaining[-2:]
        return remaining

    def find(self, tag: Tag) -> int:
        """Index of *tag* among the groups, -1 if absent."""
        try:
            return self.tags.index(tag)
        except ValueError:
            return -1

    def send_args(self) -> list[str]:
        """Arguments to append to a ``list`` command, in command-line order."""
        args: list[str] = []
        for tag in reversed(self.tags):
            args += ["group", tag.wire_name]
        return args