"""Common FFmpeg command arguments."""

from ffconform.tools.cli import PROGRESS_ARGS

INPUT_FLAG: tuple[str, ...] = ("-i",)  #: Introduce an input file path.
OVERWRITE_OUTPUT: tuple[str, ...] = ("-y",)  #: Overwrite existing files.
HIDE_BANNER: tuple[str, ...] = ("-hide_banner",)  #: Suppress the version banner.
EXIT_ON_ERROR: tuple[str, ...] = ("-xerror",)  #: Abort on the first decoding or muxing error.
COPY_UNKNOWN: tuple[str, ...] = ("-copy_unknown",)  #: Keep streams of unknown type when copying.
IGNORE_UNKNOWN: tuple[str, ...] = ("-ignore_unknown",)  #: Skip streams of unknown type.
PROGRESS: tuple[str, ...] = PROGRESS_ARGS  #: Machine-readable progress on stdout.
NULL_OUTPUT: tuple[str, ...] = ("-f", "null", "-")  #: Decode without writing anything.
MP4_MUXER: tuple[str, ...] = ("-f", "mp4")  #: Force the MP4 muxer.
