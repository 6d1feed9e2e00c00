"""FFmpeg command construction from encoding plans."""

from .command_builder import build_extract, build_main, build_mix, build_validation

__all__ = ["build_extract", "build_main", "build_mix", "build_validation"]
