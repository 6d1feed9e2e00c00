"""Pick-smallest arbitration between re-encoded and original streams.

Each candidate stream is extracted alone from the re-encoded output and from
the source; whichever copy is smaller ends up in the result.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ffconform.errors import CANCELLED, CONVERSION_FAILED, Cancelled, EncodeFailure
from ffconform.models.catalog import (
    ALL_SOURCE_AUDIO_CODECS,
    ALL_SOURCE_VIDEO_CODECS,
    match_audio_codec,
    match_video_codec_by_name,
)
from ffconform.models.types import StreamKind
from ffconform.models.verbosity import Verbosity
from ffconform.tools.cli import format_ffmpeg_cmd, run_ffmpeg_with_progress
from ffconform.tools.helpers import format_action_label, maybe_log_command

from .builder import build_extract

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from ffconform.models.context import RuntimeContext
    from ffconform.models.ffprobe import StreamDescriptor
    from ffconform.models.plan import EncodingPlan, StreamDecision

ENCODED_EXTENSION = ".mp4"  #: Extension for streams extracted from the re-encoded output.
FALLBACK_EXTENSION = ".mkv"  #: Extension for source streams with no known writable extension.
EXTRACT_WORKERS = 2  #: One extraction per side.

logger = logging.getLogger(__name__)


class Selection(str, Enum):
    """Which file holds the final result after arbitration."""

    SOURCE = "source"
    ENCODED = "encoded"
    MIX = "mix"


@dataclass(frozen=True)
class SizeComparison:
    """Extracted sizes of one candidate stream."""

    decision: StreamDecision
    position: int
    source_size: int | None
    encoded_size: int | None

    @property
    def keep_source(self) -> bool:
        """Whether the original stream wins; ties keep the original."""
        if self.source_size is None or self.encoded_size is None:
            return False
        return self.source_size <= self.encoded_size


def source_extension(stream: StreamDescriptor) -> str:
    """Return an extension that can hold ``stream`` copied on its own."""
    if stream.kind is StreamKind.VIDEO:
        video = match_video_codec_by_name(ALL_SOURCE_VIDEO_CODECS, stream.codec_name)
        if video is not None:
            return video.info.writable_extension
    elif stream.kind is StreamKind.AUDIO:
        audio = match_audio_codec(ALL_SOURCE_AUDIO_CODECS, stream.codec_name, stream.profile)
        if audio is not None:
            return audio.info.writable_extension
    return FALLBACK_EXTENSION


def _extract(ctx: RuntimeContext, args: tuple[str, ...], output: Path) -> int:
    """Run one cancellable extraction and return the size of ``output``."""
    maybe_log_command(
        verbosity=ctx.verbosity,
        status_callback=ctx.status_callback,
        banner=f"{format_action_label()}: {format_ffmpeg_cmd(args)}",
    )
    run_ffmpeg_with_progress(
        args,
        cancel_event=ctx.cancel_event,
        verbose=ctx.verbosity >= Verbosity.OUTPUT,
        status_callback=ctx.status_callback,
    )
    return output.stat().st_size


def compare_sizes(
    ctx: RuntimeContext,
    plan: EncodingPlan,
    encoded: Path,
    temp_dir: Path,
    *,
    on_progress: Callable[[float], None] | None = None,
    commands: list[tuple[str, ...]] | None = None,
) -> tuple[SizeComparison, ...]:
    """Extract and compare every pick-smallest candidate of ``plan``.

    Both extractions of a candidate run concurrently and are joined before
    deciding; the first error is raised once both have finished.

    Raises:
        Cancelled: If the run is cancelled before or during an extraction.
        EncodeFailure: If an extraction fails.

    """
    mapped = plan.mapped
    candidates = [(pos, d) for pos, d in enumerate(mapped) if d.size_candidate]
    total = len(candidates) + 2
    results: list[SizeComparison] = []
    with ThreadPoolExecutor(max_workers=EXTRACT_WORKERS) as pool:
        for i, (position, decision) in enumerate(candidates):
            if ctx.cancelled:
                raise Cancelled(CANCELLED)
            enc_out = temp_dir / f"candidate-{position}-encoded{ENCODED_EXTENSION}"
            src_out = temp_dir / f"candidate-{position}-source{source_extension(decision.stream)}"
            enc_args = build_extract(encoded, position, enc_out)
            src_args = build_extract(plan.source, decision.stream.index, src_out)
            if commands is not None:
                commands.extend((enc_args, src_args))
            futures = [
                pool.submit(_extract, ctx, enc_args, enc_out),
                pool.submit(_extract, ctx, src_args, src_out),
            ]
            errors = [f.exception() for f in futures]
            try:
                first = next((e for e in errors if e is not None), None)
                if isinstance(first, subprocess.CalledProcessError):
                    raise EncodeFailure(CONVERSION_FAILED, output=first.output) from first
                if isinstance(first, OSError):
                    raise EncodeFailure(f"{CONVERSION_FAILED}: {first}") from first
                if first is not None:
                    raise first
                encoded_size, source_size = (f.result() for f in futures)
            finally:
                enc_out.unlink(missing_ok=True)
                src_out.unlink(missing_ok=True)
            comparison = SizeComparison(decision, position, source_size, encoded_size)
            logger.debug(
                "Stream %s: source %s bytes, re-encoded %s bytes -> %s",
                decision.stream.index,
                source_size,
                encoded_size,
                "source" if comparison.keep_source else "re-encoded",
            )
            results.append(comparison)
            if on_progress is not None:
                on_progress((i + 1) / total)
    return tuple(results)


def select(plan: EncodingPlan, comparisons: tuple[SizeComparison, ...]) -> Selection:
    """Return which file becomes the result.

    The source wins outright only when every candidate keeps its original
    and nothing else requires a rewrite.
    """
    kept = [c.keep_source for c in comparisons]
    if kept and all(kept) and not plan.remux_guaranteed:
        return Selection.SOURCE
    if not any(kept):
        return Selection.ENCODED
    return Selection.MIX


def source_positions(comparisons: tuple[SizeComparison, ...]) -> dict[int, bool]:
    """Map output positions to whether the mix pass takes the source stream."""
    return {c.position: c.keep_source for c in comparisons}


def resolved_plan(plan: EncodingPlan, comparisons: tuple[SizeComparison, ...]) -> EncodingPlan:
    """Return ``plan`` with every stream that kept its original switched to a copy."""
    kept = {c.decision.stream.index for c in comparisons if c.keep_source}
    return plan.with_decisions(
        tuple(d.as_copy() if d.stream.index in kept else d for d in plan.decisions),
    )


__all__ = [
    "Selection",
    "SizeComparison",
    "compare_sizes",
    "resolved_plan",
    "select",
    "source_positions",
    "source_extension",
]
