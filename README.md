# mpcli

`mpcli` is a small command line client for the Music Player Daemon (MPD).
It connects to a running server, sends one command and prints the
result, which makes it handy both at the shell prompt and in scripts.
It needs nothing beyond the Python standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Usage

```
mpcli [options] <command> [<arguments>]
```

Run with no command and it shows the current status:

```
mpcli
```

Some common commands:

```
mpcli play 3            # start playing at queue position 3
mpcli toggle            # play/pause
mpcli next
mpcli seek +0:30        # jump forward thirty seconds
mpcli seek 50%          # jump to the middle of the song
mpcli volume -5         # lower the volume by five
mpcli add some/dir      # append a directory to the queue
mpcli del 2-4           # remove positions 2 to 4 from the queue
mpcli search artist Foo
mpcli list album group artist
mpcli random on
mpcli single once
mpcli idle player       # wait until the player changes
mpcli help              # full list of commands and options
```

Commands can be abbreviated to any unique prefix, e.g. `mpcli curr`
for `current`.

Commands such as `add`, `del`, `load` and `insert` read their arguments
from standard input, one per line, when none are given on the command
line or when the only argument is `-`. `play`, `listall`, `ls`,
`lsplaylists`, `update`, `rescan` and `prio` read standard input only
when `-` is given:

```
mpcli listall | grep live | mpcli add
```

After a command that changes playback (such as `play`, `next`, `volume`
or `random`) the status summary is printed, unless `--quiet` is given.
`pause-if-playing` exits with status 127 when nothing is playing.

## Options

| Option | Meaning |
| --- | --- |
| `-v`, `--verbose` | verbose output |
| `-q`, `--quiet`, `--no-status` | do not print the status after a command |
| `-h`, `--host=<host>` | server host; `password@host` is also accepted |
| `-P`, `--password=<password>` | password for the server |
| `-p`, `--port=<port>` | server port |
| `-f`, `--format=<format>` | song format used for printing |
| `-w`, `--wait` | wait for an operation (e.g. a database update) to finish |
| `-r`, `--range=[<start>]:[<end>]` | operate on a range, e.g. when loading a playlist |

Note that `-h` selects the host; help is shown by the `help` command.

If no `--format` is given, the `MPC_FORMAT` environment variable is used
when set. Without `--host` and `--port`, the `MPD_HOST` and `MPD_PORT`
environment variables are used, falling back to `localhost` and port
6600; `MPD_TIMEOUT` sets the connection timeout in seconds (30 by
default). A host beginning with `/` is a local socket path and one
beginning with `@` an abstract socket.

## Format strings

Song formats use `%tag%` placeholders such as `%artist%`, `%title%`,
`%album%`, `%file%`, `%time%`, `%position%`, `%id%`, `%prio%`,
`%mtime%` and `%mdate%`. Square brackets group text that is printed only
if a placeholder inside it produced a value; `|` picks the first
alternative that produced something and `&` joins sections that must
all produce something. `#` escapes the next character, and the usual
backslash escapes (`\n`, `\t`, ...) are understood. An unknown
placeholder is printed as written.

```
mpcli -f '[%artist% - ]%title%|%file%' playlist
```

The `status` command accepts a format too, with `%state%`, `%songpos%`,
`%length%`, `%currenttime%`, `%totaltime%`, `%percenttime%`, `%volume%`,
`%repeat%`, `%random%`, `%single%` and `%consume%`:

```
mpcli status '%state% %currenttime%/%totaltime%'
```

## Using it as a library

The modules can be used on their own. `mpcli.client.Connection` speaks
the protocol (`execute`, `send`, `read_pairs`, `command_list`, `idle`,
`status`); `mpcli.song_format.format_song` and
`mpcli.status_format.format_status` render `Song` and `Status` objects
with a format string; `mpcli.format.format_object` expands a format
with any lookup function.

## What it does not do

`mpcli` has no commands for audio outputs (listing, enabling, disabling
or setting attributes), for stickers, for downloading album art or
embedded pictures, or for shell tab completion. Character sets are not
converted: everything is read and written as UTF-8.