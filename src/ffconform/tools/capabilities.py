"""FFmpeg capability detection helpers."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import TYPE_CHECKING

from ffconform.errors import EncoderUnavailable
from ffconform.models.catalog import MP4_SUBTITLE_CODEC
from ffconform.models.types import Encoder

from .cli import cache_key, run_ffmpeg_with_progress

if TYPE_CHECKING:
    from pathlib import Path

    from ffconform.models.context import RuntimeContext

_SILENT = ["-hide_banner", "-loglevel", "error"]
_VIDEO_SAMPLE = ["-f", "lavfi", "-i", "color=c=black:s=200x200:d=0.1", "-frames:v", "1", "-an"]
_AUDIO_SAMPLE = ["-f", "lavfi", "-i", "anullsrc=r=48000:cl=stereo", "-t", "0.1", "-vn"]
_NULL_OUTPUT = ["-f", "null", "-"]
_MP4_NULL_OUTPUT = ["-y", "-f", "mp4", os.devnull]
_SUBTITLE_SAMPLE_S = "1"

logger = logging.getLogger(__name__)


def _ffmpeg_supports(ctx: RuntimeContext, args: list[str]) -> bool:
    """Run ``ffmpeg`` and cache whether the command succeeds.

    Raises:
        Cancelled: If the run is cancelled; nothing is cached.

    """
    key = cache_key(["ffmpeg", *args])
    cached = ctx.cache.get(key)
    if isinstance(cached, bool):
        return cached
    try:
        run_ffmpeg_with_progress(args, cancel_event=ctx.cancel_event)
    except (FileNotFoundError, subprocess.CalledProcessError):
        ctx.cache[key] = False
        return False
    ctx.cache[key] = True
    return True


def _check_encoder(ctx: RuntimeContext, encoder: Encoder) -> bool:
    """Return True if ``encoder`` can encode a tiny sample."""
    if encoder.is_video:
        args = [*_SILENT, *_VIDEO_SAMPLE, "-c:v", encoder.ffmpeg_name, *_NULL_OUTPUT]
    else:
        args = [*_SILENT, *_AUDIO_SAMPLE, "-c:a", encoder.ffmpeg_name, *_NULL_OUTPUT]
    return _ffmpeg_supports(ctx, args)


def available_encoders(ctx: RuntimeContext) -> set[Encoder]:
    """Return the set of encoders that are usable on this system."""
    found = {e for e in Encoder if _check_encoder(ctx, e)}
    logger.debug("Available encoders: %s", sorted(e.ffmpeg_name for e in found))
    return found


def best_aac_encoder(available: set[Encoder]) -> Encoder:
    """Select the AAC encoder to use, preferring ``libfdk_aac``.

    Raises:
        EncoderUnavailable: If neither AAC encoder is available.

    """
    for enc in (Encoder.FDK_AAC, Encoder.AAC):
        if enc in available:
            return enc
    raise EncoderUnavailable("No AAC encoder is available in this ffmpeg installation.")


def require_encoder(encoder: Encoder, available: set[Encoder]) -> Encoder:
    """Return ``encoder`` if it is available.

    Raises:
        EncoderUnavailable: If ``encoder`` is missing from ``available``.

    """
    if encoder not in available:
        raise EncoderUnavailable(f"The '{encoder.ffmpeg_name}' encoder is not available in this ffmpeg installation.")
    return encoder


def stream_copies_to_mp4(ctx: RuntimeContext, source: Path, index: int) -> bool:
    """Return True if stream ``index`` of ``source`` can be copied into MP4."""
    args = [
        "-i",
        str(source),
        "-map",
        f"0:{index}",
        "-c",
        "copy",
        "-copy_unknown",
        "-xerror",
        *_SILENT,
        *_MP4_NULL_OUTPUT,
    ]
    return _ffmpeg_supports(ctx, args)


def subtitle_converts_to_mov_text(ctx: RuntimeContext, source: Path, index: int) -> bool:
    """Return True if subtitle stream ``index`` of ``source`` can be written as ``mov_text``."""
    args = [
        "-i",
        str(source),
        "-map",
        f"0:{index}",
        "-c",
        MP4_SUBTITLE_CODEC,
        "-t",
        _SUBTITLE_SAMPLE_S,
        "-copy_unknown",
        "-xerror",
        *_SILENT,
        *_MP4_NULL_OUTPUT,
    ]
    return _ffmpeg_supports(ctx, args)


__all__ = [
    "available_encoders",
    "best_aac_encoder",
    "require_encoder",
    "stream_copies_to_mp4",
    "subtitle_converts_to_mov_text",
]
