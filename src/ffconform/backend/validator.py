"""Source validation.

Checks run in a fixed order and the first violation aborts the request with
a :class:`~ffconform.errors.ProcessingError` subclass whose message is
stable enough for callers to match on.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from typing import TYPE_CHECKING

from ffconform.errors import (
    AudioRemovalInfeasible,
    NoMediaStreamsFailure,
    SourceValidationFailure,
    UnsupportedExtension,
    UnsupportedSourceCodec,
    UnsupportedSourceFormat,
)
from ffconform.models.catalog import identify_container, match_audio_codec, match_video_codec
from ffconform.models.types import StreamKind
from ffconform.models.verbosity import Verbosity
from ffconform.tools import probe
from ffconform.tools.cli import format_ffmpeg_cmd, run_ffmpeg_with_progress
from ffconform.tools.helpers import format_action_label, maybe_log_command

from .builder import build_validation

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from ffconform.models.catalog import ContainerFormat
    from ffconform.models.context import RuntimeContext
    from ffconform.models.ffprobe import SourceInventory, StreamDescriptor
    from ffconform.models.options import AudioValidationOptions, ProcessingPolicy, VideoValidationOptions

UNSUPPORTED_EXTENSION = "The source file extension '{ext}' is not supported by this processor."
UNSUPPORTED_FORMAT = "The source video format '{name}' is not supported by this processor."
INCONSISTENT_FORMAT = "The video format is inconsistent with its file extension in a potentially malicious way."
UNSUPPORTED_CODEC = "One or more streams use a codec that is not supported by this processor."
NO_MEDIA = "The source video contains no audio or video streams."
NO_VIDEO_FOR_REMOVAL = "The source video contains no video streams."
VALIDATION_ERROR = "An error occurred while validating the source video streams."

logger = logging.getLogger(__name__)


def check_extension(source: Path, policy: ProcessingPolicy) -> None:
    """Reject ``source`` unless its extension belongs to an allowed source format.

    Raises:
        UnsupportedExtension: If the extension is not allowed.

    """
    ext = source.suffix.lower()
    allowed = {e for fmt in policy.container.source_formats for e in fmt.info.extensions}
    if ext not in allowed:
        raise UnsupportedExtension(UNSUPPORTED_EXTENSION.format(ext=ext or source.name))


def _reprobe_format(ctx: RuntimeContext, source: Path, fmt: ContainerFormat, temp_dir: Path) -> str | None:
    """Return the format name of ``source`` probed under ``fmt``'s canonical extension."""
    alias = temp_dir / f"extension-check{fmt.extension}"
    try:
        os.link(source, alias)
    except OSError:
        shutil.copyfile(source, alias)
    try:
        return probe.probe_source(ctx, alias).format_name
    finally:
        alias.unlink(missing_ok=True)


def identify_format(
    ctx: RuntimeContext,
    source: Path,
    inventory: SourceInventory,
    policy: ProcessingPolicy,
    temp_dir: Path,
) -> ContainerFormat:
    """Return the source container format.

    When the file extension does not belong to the detected format, the file
    is probed again under the format's canonical extension and must report
    the same format name.

    Raises:
        UnsupportedSourceFormat: If the format is not allowed or the re-probe
            disagrees.

    """
    fmt = identify_container(policy.container.source_formats, inventory.format_name, source.suffix)
    if fmt is None:
        raise UnsupportedSourceFormat(UNSUPPORTED_FORMAT.format(name=inventory.format_name or "unknown"))
    if source.suffix.lower() not in fmt.info.extensions:
        logger.debug("Extension %s does not match detected format %s; re-probing", source.suffix, fmt.value)
        if _reprobe_format(ctx, source, fmt, temp_dir) != inventory.format_name:
            raise UnsupportedSourceFormat(INCONSISTENT_FORMAT)
    return fmt


def _check_length(
    label: str,
    duration: float | None,
    max_length: float | None,
    min_length: float | None,
) -> None:
    if max_length is None and min_length is None:
        return
    if duration is None:
        raise SourceValidationFailure(f"{label} has unknown duration, cannot validate.")
    if max_length is not None and duration > max_length:
        raise SourceValidationFailure(f"{label} is longer than the maximum allowed duration.")
    if min_length is not None and duration < min_length:
        raise SourceValidationFailure(f"{label} is shorter than the minimum required duration.")


def _check_dimensions(label: str, stream: StreamDescriptor, limits: VideoValidationOptions) -> None:
    width, height = stream.width, stream.height
    if width is None and (limits.max_width is not None or limits.min_width is not None):
        raise SourceValidationFailure(f"{label} has unknown width, cannot validate.")
    if height is None and (limits.max_height is not None or limits.min_height is not None):
        raise SourceValidationFailure(f"{label} has unknown height, cannot validate.")
    if not stream.has_dimensions and (limits.max_pixels is not None or limits.min_pixels is not None):
        raise SourceValidationFailure(f"{label} has unknown dimensions, cannot validate.")
    pixels = (width or 0) * (height or 0)
    if limits.max_width is not None and width is not None and width > limits.max_width:
        raise SourceValidationFailure(f"{label} width exceeds the maximum allowed width.")
    if limits.max_height is not None and height is not None and height > limits.max_height:
        raise SourceValidationFailure(f"{label} height exceeds the maximum allowed height.")
    if limits.max_pixels is not None and pixels > limits.max_pixels:
        raise SourceValidationFailure(f"{label} exceeds the maximum allowed pixel count.")
    if limits.min_width is not None and width is not None and width < limits.min_width:
        raise SourceValidationFailure(f"{label} width is less than the minimum required width.")
    if limits.min_height is not None and height is not None and height < limits.min_height:
        raise SourceValidationFailure(f"{label} height is less than the minimum required height.")
    if limits.min_pixels is not None and pixels < limits.min_pixels:
        raise SourceValidationFailure(f"{label} is less than the minimum required pixel count.")
    if not stream.has_dimensions:
        raise SourceValidationFailure(f"{label} has unknown dimensions, cannot determine resizing.")


def _check_count(noun: str, count: int, max_streams: int | None, min_streams: int | None) -> None:
    if max_streams is not None and count > max_streams:
        raise SourceValidationFailure(f"The number of {noun} streams exceeds the maximum allowed.")
    if min_streams is not None and count < min_streams:
        raise SourceValidationFailure(f"The number of {noun} streams is less than the minimum required.")


def check_streams(inventory: SourceInventory, policy: ProcessingPolicy) -> None:
    """Validate stream limits, stream counts and codecs.

    Streams whose codec is not an allowed source codec skip the per-stream
    limits and are reported together after the count checks.

    Raises:
        SourceValidationFailure: If a duration, dimension or count limit fails.
        AudioRemovalInfeasible: If audio removal is requested without video.
        NoMediaStreamsFailure: If there is no audio or video at all.
        UnsupportedSourceCodec: If any stream uses a disallowed codec.

    """
    video_limits = policy.video_validation
    audio_limits = policy.audio_validation
    remove_audio = policy.audio.remove
    unsupported = False
    video_idx = audio_idx = 0
    for stream in inventory.streams:
        if stream.kind is StreamKind.VIDEO:
            label = f"Video stream {video_idx}"
            video_idx += 1
            if match_video_codec(policy.video.source_codecs, stream.codec_name, stream.codec_tag) is None:
                unsupported = True
                continue
            _check_length(label, inventory.stream_duration(stream), video_limits.max_length, video_limits.min_length)
            _check_dimensions(label, stream, video_limits)
        elif stream.kind is StreamKind.AUDIO and not remove_audio:
            label = f"Audio stream {audio_idx}"
            audio_idx += 1
            if match_audio_codec(policy.audio.source_codecs, stream.codec_name, stream.profile) is None:
                unsupported = True
                continue
            _check_length(label, inventory.stream_duration(stream), audio_limits.max_length, audio_limits.min_length)

    video_count = len(inventory.video_streams)
    audio_count = len(inventory.audio_streams)
    _check_count("video", video_count, video_limits.max_streams, video_limits.min_streams)
    if not remove_audio:
        _check_count("audio", audio_count, audio_limits.max_streams, audio_limits.min_streams)
    if remove_audio and video_count == 0:
        raise AudioRemovalInfeasible(NO_VIDEO_FOR_REMOVAL)
    if video_count == 0 and audio_count == 0:
        raise NoMediaStreamsFailure(NO_MEDIA)
    if unsupported:
        raise UnsupportedSourceCodec(UNSUPPORTED_CODEC)


def _measured_limit(
    inventory: SourceInventory,
    policy: ProcessingPolicy,
) -> float | None:
    """Return the smallest applicable maximum length, used to stop decoding early."""
    limits: list[float] = []
    if inventory.video_streams and policy.video_validation.max_length is not None:
        limits.append(policy.video_validation.max_length)
    if inventory.audio_streams and not policy.audio.remove and policy.audio_validation.max_length is not None:
        limits.append(policy.audio_validation.max_length)
    return min(limits, default=None)


def _check_measured(
    noun: str,
    measured: float,
    limits: VideoValidationOptions | AudioValidationOptions,
) -> None:
    if limits.max_length is not None and measured > limits.max_length:
        raise SourceValidationFailure(f"Measured {noun} stream duration exceeds the maximum allowed length.")
    if limits.min_length is not None and 0 < measured < limits.min_length:
        raise SourceValidationFailure(f"Measured {noun} stream duration is less than the minimum required length.")


def measure_duration(
    ctx: RuntimeContext,
    source: Path,
    inventory: SourceInventory,
    policy: ProcessingPolicy,
    *,
    on_progress: Callable[[float], None] | None = None,
    commands: list[tuple[str, ...]] | None = None,
) -> float:
    """Decode every stream of ``source`` and return the measured duration.

    Decoding stops as soon as the measured time passes the applicable
    maximum length. ``on_progress`` receives fractions of the expected
    duration.

    Raises:
        SourceValidationFailure: If decoding fails or a measured length limit
            is violated.
        Cancelled: If the request is cancelled.

    """
    args = build_validation(source)
    if commands is not None:
        commands.append(args)
    maybe_log_command(
        verbosity=ctx.verbosity,
        status_callback=ctx.status_callback,
        banner=f"{format_action_label()}: {format_ffmpeg_cmd(args)}",
    )
    limit = _measured_limit(inventory, policy)
    expected = inventory.longest_duration
    measured = 0.0

    def on_time(seconds: float) -> bool:
        nonlocal measured
        measured = max(measured, seconds)
        if on_progress is not None and expected:
            on_progress(seconds / expected)
        return limit is None or measured <= limit

    try:
        run_ffmpeg_with_progress(
            args,
            on_time=on_time,
            cancel_event=ctx.cancel_event,
            verbose=ctx.verbosity >= Verbosity.OUTPUT,
            status_callback=ctx.status_callback,
        )
    except subprocess.CalledProcessError as exc:
        logger.warning("Validation pass failed (%s) for %s", exc.returncode, source)
        raise SourceValidationFailure(VALIDATION_ERROR, output=exc.output) from exc

    logger.debug("Measured duration of %s: %.3fs", source, measured)
    if inventory.video_streams:
        _check_measured("video", measured, policy.video_validation)
    if inventory.audio_streams and not policy.audio.remove:
        _check_measured("audio", measured, policy.audio_validation)
    return measured


__all__ = [
    "INCONSISTENT_FORMAT",
    "NO_MEDIA",
    "NO_VIDEO_FOR_REMOVAL",
    "UNSUPPORTED_CODEC",
    "UNSUPPORTED_FORMAT",
    "VALIDATION_ERROR",
    "check_extension",
    "check_streams",
    "identify_format",
    "measure_duration",
]
