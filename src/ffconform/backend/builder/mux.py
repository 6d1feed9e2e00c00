"""Container and metadata flags."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ffconform.models.plan import EncodingPlan, StreamDecision

FASTSTART: tuple[str, ...] = ("-movflags", "+faststart+use_metadata_tags")  #: Index first, keep custom tags.
METADATA_TAGS: tuple[str, ...] = ("-movflags", "+use_metadata_tags")  #: Keep custom tags.
DROP: str = "-1"  #: Map value that discards metadata or chapters.


def global_metadata(plan: EncodingPlan, *, input_index: int = 0) -> tuple[str, ...]:
    """Return args mapping or dropping container metadata."""
    value = DROP if plan.strip_global_metadata else f"{input_index}:g"
    return ("-map_metadata:g", value)


def chapters(plan: EncodingPlan, *, input_index: int = 0) -> tuple[str, ...]:
    """Return args mapping or dropping chapters."""
    return ("-map_chapters", DROP if plan.strip_chapters else str(input_index))


def stream_metadata(
    decision: StreamDecision,
    position: int,
    *,
    input_index: int = 0,
    input_stream: int | None = None,
) -> tuple[str, ...]:
    """Return per-stream metadata args for output stream ``position``.

    The language tag is written explicitly whenever it is valid, so it
    survives even when the rest of the stream metadata is stripped.
    """
    source = decision.stream.index if input_stream is None else input_stream
    value = f"{input_index}:s:{source}" if decision.map_metadata else DROP
    args: tuple[str, ...] = (f"-map_metadata:s:{position}", value)
    if decision.language:
        args = (*args, f"-metadata:s:{position}", f"language={decision.language}")
    return args


def movflags(plan: EncodingPlan) -> tuple[str, ...]:
    """Return ``-movflags`` for the output container."""
    return FASTSTART if plan.faststart else METADATA_TAGS
