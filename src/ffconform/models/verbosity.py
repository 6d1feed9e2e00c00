"""Verbosity levels for command and tool output."""

from enum import IntEnum


class Verbosity(IntEnum):
    """Logging verbosity levels.

    ``COMMANDS`` shows each ffmpeg/ffprobe command line; ``OUTPUT`` also
    streams the tools' own diagnostics.
    """

    QUIET = 0
    COMMANDS = 1
    OUTPUT = 2


__all__ = ["Verbosity"]
