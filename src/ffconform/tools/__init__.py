"""FFmpeg-related helper utilities."""

from . import probe
from .capabilities import available_encoders, best_aac_encoder
from .cli import (
    format_ffmpeg_cmd,
    run_ffmpeg_with_progress,
    run_ffprobe,
)
from .helpers import parse_timespan_to_seconds

__all__ = [
    "available_encoders",
    "best_aac_encoder",
    "format_ffmpeg_cmd",
    "parse_timespan_to_seconds",
    "probe",
    "run_ffmpeg_with_progress",
    "run_ffprobe",
]
