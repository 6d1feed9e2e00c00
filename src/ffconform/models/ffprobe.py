"""Dataclasses for ffprobe outputs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from fractions import Fraction

from .catalog import PixelFormatInfo, pixel_format_info
from .types import StreamKind

_PROGRESSIVE_FIELD_ORDERS = frozenset({"progressive", None})


@dataclass(frozen=True)
class Rational:
    """Exact ratio such as a frame rate or sample aspect ratio."""

    num: int
    den: int

    @classmethod
    def parse(cls, text: str | None, sep: str = "/") -> Rational | None:
        """Parse ``"num/den"`` (or ``"num:den"``), returning ``None`` when invalid."""
        if not text:
            return None
        num_s, found, den_s = text.partition(sep)
        try:
            num = int(num_s)
            den = int(den_s) if found else 1
        except ValueError:
            return None
        if num <= 0 or den <= 0:
            return None
        return cls(num, den)

    @property
    def fraction(self) -> Fraction:
        """Value as a reduced :class:`~fractions.Fraction`."""
        return Fraction(self.num, self.den)

    @property
    def is_unit(self) -> bool:
        """Whether the ratio equals one."""
        return self.num == self.den

    def reduced(self) -> Rational:
        """Return the ratio divided by the gcd of its terms."""
        g = math.gcd(self.num, self.den)
        return Rational(self.num // g, self.den // g)

    def __str__(self) -> str:
        return f"{self.num}/{self.den}"


@dataclass(frozen=True)
class StreamDescriptor:
    """Information about one probed stream.

    Unknown numeric properties are ``None``; callers decide how an unknown
    value interacts with each policy limit.
    """

    index: int
    kind: StreamKind
    codec_name: str | None = None
    codec_tag: str | None = None
    profile: str | None = None
    width: int | None = None
    height: int | None = None
    sample_aspect_ratio: Rational | None = None
    pixel_format: str | None = None
    bits_per_raw_sample: int | None = None
    color_range: str | None = None
    color_transfer: str | None = None
    color_primaries: str | None = None
    color_space: str | None = None
    field_order: str | None = None
    channels: int | None = None
    channel_layout: str | None = None
    sample_rate: int | None = None
    frame_rate: Rational | None = None
    duration: float | None = None
    language: str | None = None
    title: str | None = None
    is_default: bool = False
    attached_pic: bool = False
    timed_thumbnails: bool = False
    has_alpha: bool = False

    @property
    def is_thumbnail(self) -> bool:
        """Whether this stream is an attached or timed thumbnail image."""
        return self.kind is StreamKind.THUMBNAIL

    @property
    def is_progressive(self) -> bool:
        """Whether frames are progressive; unknown field order counts as progressive."""
        return self.field_order in _PROGRESSIVE_FIELD_ORDERS

    @property
    def has_square_pixels(self) -> bool:
        """Whether the sample aspect ratio is 1:1 (unknown counts as square)."""
        return self.sample_aspect_ratio is None or self.sample_aspect_ratio.is_unit

    @property
    def pixel_format_info(self) -> PixelFormatInfo | None:
        """Characteristics of the pixel format, if it is a known one."""
        return pixel_format_info(self.pixel_format)

    @property
    def bits_per_channel(self) -> int | None:
        """Bit depth from the pixel format, falling back to the raw sample size."""
        info = self.pixel_format_info
        if info is not None:
            return info.bits
        return self.bits_per_raw_sample

    @property
    def has_dimensions(self) -> bool:
        """Whether both width and height are known and positive."""
        return bool(self.width and self.height and self.width > 0 and self.height > 0)


@dataclass(frozen=True)
class SourceInventory:
    """Container facts and ordered streams of a probed file."""

    format_name: str | None
    duration: float | None
    streams: tuple[StreamDescriptor, ...] = field(default_factory=tuple)

    def of_kind(self, kind: StreamKind) -> tuple[StreamDescriptor, ...]:
        """Return streams of ``kind`` in file order."""
        return tuple(s for s in self.streams if s.kind is kind)

    @property
    def video_streams(self) -> tuple[StreamDescriptor, ...]:
        """Playable video streams; thumbnails are excluded."""
        return self.of_kind(StreamKind.VIDEO)

    @property
    def audio_streams(self) -> tuple[StreamDescriptor, ...]:
        """Audio streams."""
        return self.of_kind(StreamKind.AUDIO)

    @property
    def thumbnail_streams(self) -> tuple[StreamDescriptor, ...]:
        """Attached picture and timed thumbnail streams."""
        return self.of_kind(StreamKind.THUMBNAIL)

    @property
    def other_streams(self) -> tuple[StreamDescriptor, ...]:
        """Subtitle, data, attachment and unknown streams."""
        return tuple(s for s in self.streams if not s.kind.is_media and not s.is_thumbnail)

    @property
    def longest_duration(self) -> float | None:
        """Longest known duration among the streams and the container."""
        known = [d for d in (*(s.duration for s in self.streams), self.duration) if d is not None and d > 0]
        return max(known, default=None)

    def stream_duration(self, stream: StreamDescriptor) -> float | None:
        """Duration of ``stream``, falling back to the container duration."""
        if stream.duration is not None and stream.duration > 0:
            return stream.duration
        if self.duration is not None and self.duration > 0:
            return self.duration
        return None


__all__ = ["Rational", "SourceInventory", "StreamDescriptor"]
