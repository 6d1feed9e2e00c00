"""Encoding plan models.

An :class:`EncodingPlan` snapshots every decision made for a source before
ffmpeg runs, so later stages (command building, pick-smallest arbitration)
never consult the policy again.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from .types import StreamAction, StreamKind

if TYPE_CHECKING:
    from pathlib import Path

    from .catalog import ContainerFormat
    from .ffprobe import Rational, StreamDescriptor
    from .types import Encoder


@dataclass(frozen=True)
class VideoEncodeParams:
    """Derived encoder settings for one re-encoded video stream."""

    encoder: Encoder
    pixel_format: str
    profile: str
    crf: int
    preset: str
    width: int | None = None
    height: int | None = None
    fps: Rational | None = None
    tonemap: bool = False
    deinterlace: bool = False
    square_pixels: bool = False
    tag: str | None = None

    @property
    def scales(self) -> bool:
        """Whether the stream is resized."""
        return self.width is not None and self.height is not None


@dataclass(frozen=True)
class AudioEncodeParams:
    """Derived encoder settings for one re-encoded audio stream."""

    encoder: Encoder
    channels: int | None = None
    sample_rate: int | None = None
    bitrate: int | None = None
    vbr: int | None = None
    cutoff: int | None = None


@dataclass(frozen=True)
class StreamDecision:
    """What happens to one source stream in the output.

    ``output_index`` counts streams of the same kind in the output and is
    ``None`` for omitted streams. ``size_candidate`` marks re-encodes that
    are optional and are kept only if the result is smaller.
    """

    stream: StreamDescriptor
    action: StreamAction
    output_index: int | None = None
    map_metadata: bool = True
    language: str | None = None
    retag: str | None = None
    video: VideoEncodeParams | None = None
    audio: AudioEncodeParams | None = None
    subtitle_codec: str | None = None
    size_candidate: bool = False
    reason: str = ""

    @property
    def kind(self) -> StreamKind:
        """Kind of the source stream."""
        return self.stream.kind

    @property
    def is_mapped(self) -> bool:
        """Whether the stream appears in the output."""
        return self.action is not StreamAction.OMIT

    @property
    def output_kind(self) -> StreamKind:
        """Output kind; thumbnails are written as video streams."""
        return StreamKind.VIDEO if self.kind is StreamKind.THUMBNAIL else self.kind

    def as_copy(self) -> StreamDecision:
        """Return this decision switched to a stream copy, keeping any retag."""
        action = StreamAction.REMUX if self.retag is not None else StreamAction.COPY
        return replace(self, action=action, video=None, audio=None, size_candidate=False)


@dataclass(frozen=True)
class EncodingPlan:
    """Complete, immutable description of how a source will be rewritten."""

    source: Path
    source_format: ContainerFormat
    output_format: ContainerFormat
    decisions: tuple[StreamDecision, ...]
    rewrite: bool
    strip_global_metadata: bool = False
    strip_chapters: bool = False
    faststart: bool = False
    remux_guaranteed: bool = False
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @property
    def returns_source(self) -> bool:
        """Whether the source file satisfies the policy unchanged."""
        return not self.rewrite

    @property
    def mapped(self) -> tuple[StreamDecision, ...]:
        """Decisions for streams present in the output, in source order."""
        return tuple(d for d in self.decisions if d.is_mapped)

    @property
    def size_candidates(self) -> tuple[StreamDecision, ...]:
        """Re-encoded streams whose result is compared against the source."""
        return tuple(d for d in self.decisions if d.size_candidate)

    @property
    def reencodes(self) -> bool:
        """Whether any stream is re-encoded."""
        return any(d.action is StreamAction.REENCODE for d in self.decisions)

    def with_decisions(self, decisions: tuple[StreamDecision, ...]) -> EncodingPlan:
        """Return a copy of the plan with ``decisions`` substituted."""
        return replace(self, decisions=decisions)


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of a processing request."""

    output: Path
    changed: bool
    plan: EncodingPlan | None = None
    commands: tuple[tuple[str, ...], ...] = ()


__all__ = [
    "AudioEncodeParams",
    "EncodingPlan",
    "ProcessingResult",
    "StreamDecision",
    "VideoEncodeParams",
]
