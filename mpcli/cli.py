"""Command table and entry point of the command-line client."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence, TextIO

from . import commands, idle, message, mount, neighbors, playback, queue, search
from .args import read_stdin_args
from .client import STDIN_SYMBOL, CommandError, CommandHandler, Connection, MPDError
from .options import OptionError, Options, Verbosity, option_help, parse_options
from .status import print_status

PROGNAME = "mpcli"
VERSION = "0.34"


class StdinMode(IntEnum):
    """How a command may take its arguments from standard input."""

    NONE = 0
    IMPLICIT = 1  # read when no arguments are given, or "-" alone
    EXPLICIT = 2  # read only when "-" is given


@dataclass(frozen=True)
class Command:
    """One entry of the command table; ``max_args`` of None is unlimited."""

    name: str
    min_args: int
    max_args: int | None
    stdin: StdinMode
    handler: CommandHandler
    usage: str
    help: str | None = None


_N = StdinMode.NONE
_I = StdinMode.IMPLICIT
_E = StdinMode.EXPLICIT

COMMANDS: tuple[Command, ...] = (
    Command("add", 0, None, _I, queue.cmd_add, "<uri>", "Add a song to the queue"),
    Command("crop", 0, 0, _N, queue.cmd_crop, "",
            "Remove all but the currently playing song"),
    Command("current", 0, 0, _N, playback.cmd_current, "",
            "Show the currently playing song"),
    Command("del", 0, None, _I, queue.cmd_del, "<position>",
            "Remove a song from the queue"),
    Command("play", 0, 1, _E, playback.cmd_play, "[<position>]",
            "Start playing at <position>"),
    Command("next", 0, 0, _N, playback.cmd_next, "",
            "Play the next song in the queue"),
    Command("prev", 0, 0, _N, playback.cmd_prev, "",
            "Play the previous song in the queue"),
    Command("pause", 0, 0, _N, playback.cmd_pause, "",
            "Pauses the currently playing song"),
    Command("pause-if-playing", 0, 0, _N, playback.cmd_pause_if_playing, "",
            "Pauses the currently playing song; exits with failure if not playing"),
    Command("toggle", 0, 0, _N, playback.cmd_toggle, "",
            "Toggles Play/Pause, plays if stopped"),
    Command("cdprev", 0, 0, _N, playback.cmd_cdprev, "",
            "Compact disk player-like previous command"),
    Command("stop", 0, 0, _N, playback.cmd_stop, "", "Stop playback"),
    Command("seek", 1, 1, _N, playback.cmd_seek, "[+-][HH:MM:SS]|<0-100>%",
            "Seeks to the specified position"),
    Command("seekthrough", 1, 1, _N, playback.cmd_seek_through, "[+-][HH:MM:SS]",
            "Seeks by an amount of time within the song and playlist"),
    Command("clear", 0, 0, _N, queue.cmd_clear, "", "Clear the queue"),
    Command("queued", 0, 0, _N, playback.cmd_queued, "",
            "Show the next queued song"),
    Command("shuffle", 0, 0, _N, queue.cmd_shuffle, "", "Shuffle the queue"),
    Command("move", 2, 2, _N, commands.cmd_move, "<from> <to>",
            "Move song in queue"),
    Command("mv", 2, 2, _N, commands.cmd_move, "<from> <to>"),
    Command("playlist", 0, 1, _N, queue.cmd_playlist, "[<playlist>]",
            "Print <playlist>"),
    Command("listall", 0, None, _E, commands.cmd_listall, "[<file>]",
            "List all songs in the music dir"),
    Command("ls", 0, None, _E, commands.cmd_ls, "[<directory>]",
            "List the contents of <directory>"),
    Command("lsplaylists", 0, None, _E, commands.cmd_lsplaylists, "",
            "List currently available playlists"),
    Command("load", 0, None, _I, commands.cmd_load, "<file>",
            "Load <file> into the queue"),
    Command("insert", 0, None, _I, queue.cmd_insert, "<uri>",
            "Insert a song to the queue after the current track"),
    Command("prio", 2, None, _E, queue.cmd_prio, "<prio> <position/range> ...",
            "Change song priorities in the queue"),
    Command("save", 1, 1, _N, commands.cmd_save, "<file>", "Save a queue as <file>"),
    Command("rm", 1, 1, _N, commands.cmd_rm, "<file>", "Remove a playlist"),
    Command("volume", 0, 1, _N, commands.cmd_volume, "[+-]<num>",
            "Set volume to <num> or adjusts by [+-]<num>"),
    Command("repeat", 0, 1, _N, commands.cmd_repeat, "<on|off>",
            "Toggle repeat mode, or specify state"),
    Command("random", 0, 1, _N, commands.cmd_random, "<on|off>",
            "Toggle random mode, or specify state"),
    Command("single", 0, 1, _N, commands.cmd_single, "<on|once|off>",
            "Toggle single mode, or specify state"),
    Command("consume", 0, 1, _N, commands.cmd_consume, "<on|off>",
            "Toggle consume mode, or specify state"),
    Command("search", 1, None, _N, search.cmd_search, "<type> <query>",
            "Search for a song"),
    Command("searchadd", 1, None, _N, search.cmd_searchadd, "<type> <query>",
            "Search songs and add them to the queue"),
    Command("find", 1, None, _N, search.cmd_find, "<type> <query>",
            "Find a song (exact match)"),
    Command("findadd", 1, None, _N, search.cmd_findadd, "<type> <query>",
            "Find songs and add them to the queue"),
    Command("searchplay", 1, None, _N, playback.cmd_searchplay, "<pattern>",
            "Find and play a song in the queue"),
    Command("list", 1, None, _N, commands.cmd_list, "<type> [<type> <query>]",
            "Show all tags of <type>"),
    Command("crossfade", 0, 1, _N, commands.cmd_crossfade, "[<seconds>]",
            "Set and display crossfade settings"),
    Command("clearerror", 0, 0, _N, playback.cmd_clearerror, "",
            "Clear the current error"),
    Command("mixrampdb", 0, 1, _N, commands.cmd_mixrampdb, "[<dB>]",
            "Set and display mixrampdb settings"),
    Command("mixrampdelay", 0, 1, _N, commands.cmd_mixrampdelay, "[<seconds>]",
            "Set and display mixrampdelay settings"),
    Command("update", 0, None, _E, commands.cmd_update, "[<path>]",
            "Scan music directory for updates"),
    Command("rescan", 0, None, _E, commands.cmd_rescan, "[<path>]",
            "Rescan music directory (including unchanged files)"),
    Command("stats", 0, None, _N, commands.cmd_stats, "",
            "Display statistics about MPD"),
    Command("version", 0, 0, _N, commands.cmd_version, "", "Report version of MPD"),
    Command("status", 0, None, _N, commands.cmd_status, ""),
    Command("idle", 0, None, _N, idle.cmd_idle, "[events]",
            "Idle until an event occurs"),
    Command("idleloop", 0, None, _N, idle.cmd_idleloop, "[events]",
            "Continuously idle until an event occurs"),
    Command("replaygain", 0, None, _N, commands.cmd_replaygain, "[off|track|album]",
            "Set or display the replay gain mode"),
    Command("channels", 0, 0, _N, message.cmd_channels, "",
            "List the channels that other clients have subscribed to."),
    Command("sendmessage", 2, 2, _N, message.cmd_sendmessage, "<channel> <message>",
            "Send a message to the specified channel."),
    Command("waitmessage", 1, 1, _N, message.cmd_waitmessage, "<channel>",
            "Wait for at least one message on the specified channel."),
    Command("subscribe", 1, 1, _N, message.cmd_subscribe, "<channel>",
            "Subscribe to the specified channel and continuously receive messages."),
    Command("listneighbors", 0, 2, _N, neighbors.cmd_listneighbors, "",
            "List neighbors."),
    Command("mount", 0, 2, _N, mount.cmd_mount, "[<mount-path> <storage-uri>]",
            "List mounts or add a new mount."),
    Command("unmount", 1, 1, _N, mount.cmd_unmount, "<mount-path>",
            "Remove a mount."),
)


def find_command(name: str) -> Command | None:
    """Look a command up by its name or by an unambiguous prefix."""
    matches = [cmd for cmd in COMMANDS if cmd.name.startswith(name)]
    for cmd in matches:
        if cmd.name == name:
            return cmd
    return matches[0] if len(matches) == 1 else None


def _usage(progname: str) -> str:
    return (f"Usage: {progname} [options] <command> [<arguments>]\n"
            f"{progname} version: {VERSION}\n")


def help_text(progname: str = PROGNAME) -> str:
    """The full help: usage, options and the documented commands."""
    shown = [cmd for cmd in COMMANDS if cmd.help]
    width = max((len(cmd.name) + len(cmd.usage) for cmd in shown), default=0)

    lines = [_usage(progname), "\n", "Options:\n", option_help(), "\n",
             "Commands:\n", f"  {progname} {' '.rjust(width)}  Display status\n"]
    for cmd in shown:
        spaces = width - (len(cmd.name) + len(cmd.usage))
        if spaces:
            spaces += 1
        lines.append(f"  {progname} {cmd.name} {cmd.usage}"
                     f"{' '.rjust(spaces)}{cmd.help}\n")
    lines.append(f"\nSee the manual page of {progname} for more information "
                 "about its commands and options\n")
    return "".join(lines)


def _print_help(progname: str, name: str) -> int:
    if name != "help":
        sys.stderr.write(f'unknown command "{name}"\n')
        sys.stderr.write(_usage(progname))
        sys.stderr.write(f"Use '{progname} help' for more help.\n")
        return 1
    sys.stdout.write(help_text(progname))
    return 0


def check_args(command: Command, args: Sequence[str],
               stdin: TextIO | None = None) -> list[str]:
    """Return the command's arguments, read from *stdin* where allowed.

    Raises ``CommandError`` when the number of arguments is out of range.
    """
    only_dash = len(args) == 1 and args[0] == STDIN_SYMBOL
    if ((command.stdin is StdinMode.IMPLICIT and (not args or only_dash))
            or (command.stdin is StdinMode.EXPLICIT and only_dash)):
        result = list(read_stdin_args(sys.stdin if stdin is None else stdin))
    else:
        result = list(args)

    if (len(result) < command.min_args
            or (command.max_args is not None and len(result) > command.max_args)):
        raise CommandError(f"usage: {PROGNAME} {command.name} {command.usage}")
    return result


def _run(command: Command, args: list[str], options: Options) -> int:
    try:
        with Connection(options.host, options.port or None, None) as conn:
            if options.password:
                conn.password(options.password)
            if conn.server_version() < (0, 21, 0):
                sys.stderr.write("warning: MPD 0.21 required\n")

            try:
                ret = command.handler(conn, args, options)
            except CommandError as exc:
                if exc.message:
                    sys.stderr.write(exc.message.rstrip("\n") + "\n")
                return exc.status

            if ret > 0 and options.verbosity > Verbosity.QUIET:
                print_status(conn, options)
    except MPDError as exc:
        sys.stderr.write(f"MPD error: {exc}\n")
        return 1
    return 0 if ret >= 0 else -ret


def main(argv: Sequence[str] | None = None) -> int:
    """Parse the command line, run the command and return the exit status."""
    argv = list(sys.argv if argv is None else argv)
    if not argv:
        argv = [PROGNAME]

    try:
        options, rest = parse_options(argv)
    except OptionError as exc:
        sys.stderr.write(f"{PROGNAME}: {exc}\n")
        return 1

    name = rest[1] if len(rest) >= 2 else "status"
    command = find_command(name)
    if command is None:
        return _print_help(PROGNAME, name)

    try:
        args = check_args(command, rest[2:])
    except CommandError as exc:
        sys.stderr.write(exc.message + "\n")
        return 1

    return _run(command, args, options)


if __name__ == "__main__":
    sys.exit(main())