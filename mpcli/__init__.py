"""Command line client and protocol helpers for the Music Player Daemon."""

__version__ = "0.34.0"