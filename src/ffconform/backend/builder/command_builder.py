"""Build FFmpeg command arguments from an encoding plan."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ffconform.models.types import StreamAction, StreamKind

from . import audio, mux, video
from .command_args import (
    COPY_UNKNOWN,
    EXIT_ON_ERROR,
    HIDE_BANNER,
    IGNORE_UNKNOWN,
    INPUT_FLAG,
    MP4_MUXER,
    NULL_OUTPUT,
    OVERWRITE_OUTPUT,
    PROGRESS,
)
from .stream_args import codec_flag, map_stream

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from ffconform.models.plan import EncodingPlan, StreamDecision

COPY_ALL: tuple[str, ...] = ("-c", "copy")  #: Copy every stream unless overridden.
DROP_ALL_METADATA: tuple[str, ...] = ("-map_metadata", "-1", "-map_chapters", "-1")  #: Extraction strips all metadata.
OUTPUT_FLAGS: tuple[str, ...] = COPY_UNKNOWN + EXIT_ON_ERROR + HIDE_BANNER + OVERWRITE_OUTPUT  #: Trailing output flags.


def _stream_args(decision: StreamDecision) -> tuple[str, ...]:
    """Return the codec args overriding the default copy for one stream."""
    index = decision.output_index
    if index is None:
        return ()
    if decision.video is not None:
        return video.encode(decision.video, index)
    if decision.audio is not None:
        return audio.encode(decision.audio, index)
    if decision.subtitle_codec is not None:
        return (*codec_flag(StreamKind.SUBTITLE.specifier, index), decision.subtitle_codec)
    if decision.retag is not None and decision.action is StreamAction.REMUX:
        return video.retag(decision.retag, index)
    return ()


def build_main(plan: EncodingPlan, output: Path) -> tuple[str, ...]:
    """Return the main pass writing ``plan`` to ``output``."""
    args = (*INPUT_FLAG, str(plan.source), *PROGRESS, *mux.global_metadata(plan))
    for decision in plan.mapped:
        args = args + map_stream(decision.stream.index)
    args = args + mux.chapters(plan) + COPY_ALL
    for position, decision in enumerate(plan.mapped):
        args = args + _stream_args(decision) + mux.stream_metadata(decision, position)
    return (*args, *mux.movflags(plan), *MP4_MUXER, *OUTPUT_FLAGS, str(output))


def build_validation(source: Path) -> tuple[str, ...]:
    """Return a decode-only pass over every stream of ``source``."""
    return (
        *INPUT_FLAG,
        str(source),
        *PROGRESS,
        *IGNORE_UNKNOWN,
        *EXIT_ON_ERROR,
        *HIDE_BANNER,
        *NULL_OUTPUT,
    )


def build_extract(source: Path, index: int, output: Path) -> tuple[str, ...]:
    """Return args copying stream ``index`` of ``source`` alone into ``output``."""
    return (
        *INPUT_FLAG,
        str(source),
        *map_stream(index),
        *COPY_ALL,
        *DROP_ALL_METADATA,
        *OUTPUT_FLAGS,
        str(output),
    )


def build_mix(plan: EncodingPlan, encoded: Path, output: Path, use_source: Mapping[int, bool]) -> tuple[str, ...]:
    """Return a pass combining streams of the source (input 0) and ``encoded`` (input 1).

    ``use_source`` maps output positions to whether the source stream is
    taken; every other stream comes from ``encoded``, which already carries
    the plan's metadata decisions.
    """
    args = (*INPUT_FLAG, str(plan.source), *INPUT_FLAG, str(encoded), *PROGRESS, *mux.global_metadata(plan, input_index=1))
    for position, decision in enumerate(plan.mapped):
        if use_source.get(position, False):
            args = args + map_stream(decision.stream.index)
        else:
            args = args + map_stream(position, input_index=1)
    args = args + mux.chapters(plan, input_index=1) + COPY_ALL
    for position, decision in enumerate(plan.mapped):
        if use_source.get(position, False):
            if decision.retag is not None and decision.output_index is not None:
                args = args + video.retag(decision.retag, decision.output_index)
            args = args + mux.stream_metadata(decision, position)
        else:
            args = args + mux.stream_metadata(decision, position, input_index=1, input_stream=position)
    return (*args, *mux.movflags(plan), *MP4_MUXER, *OUTPUT_FLAGS, str(output))


__all__ = ["COPY_ALL", "build_extract", "build_main", "build_mix", "build_validation"]
