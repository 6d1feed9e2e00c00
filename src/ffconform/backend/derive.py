"""Encoding parameter derivation.

Every function here is pure: it looks only at a probed
:class:`~ffconform.models.ffprobe.StreamDescriptor` and the policy sections
passed in, so the planner can evaluate copy legality and re-encode settings
without touching ffmpeg.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ffconform.errors import ResizeInfeasible
from ffconform.models.catalog import HDR_TRANSFERS, is_sdr
from ffconform.models.ffprobe import Rational
from ffconform.models.plan import AudioEncodeParams, VideoEncodeParams
from ffconform.models.types import Encoder, FpsMode

if TYPE_CHECKING:
    from ffconform.models.catalog import VideoCodec
    from ffconform.models.ffprobe import StreamDescriptor
    from ffconform.models.options import AudioOptions, VideoOptions

RESIZE_INFEASIBLE = "Cannot re-encode video to fit within specified dimensions."
PIXEL_BUDGET_INFEASIBLE = "Cannot re-encode very large video to fit within codec maximum pixel count."

H264_MAX_DIMENSION = 16384  #: Largest width or height libx264 accepts.
HEVC_MAX_DIMENSION = 65535  #: Largest width or height libx265 accepts.
H264_MIN_DIMENSION = 2  #: Smallest width or height for H.264 output.
HEVC_MIN_DIMENSION = 16  #: Smallest width or height for HEVC output with 16x16 CTUs.
HEVC_CTU_STEPS: tuple[tuple[int, int], ...] = (
    (64799, 64),
    (4217, 32),
)  #: (dimension threshold, minimum dimension) pairs forcing larger HEVC CTUs.
PIXEL_BUDGET = (2**31 - 1) // 8  #: ffmpeg limit on ``(w + 128) * (h + 128)`` for 8-byte pixels.
PIXEL_BUDGET_PAD = 128  #: Padding ffmpeg adds to each dimension for its frame buffers.

H264_MAX_MACROBLOCK_RATE = 16_711_680  #: Level 6.2 macroblocks per second.
HEVC_MAX_SAMPLE_RATE = 4_278_190_080  #: Level 6.2 luma samples per second.
H264_MACROBLOCK = 16  #: Macroblock edge length in pixels.
MAX_FPS_TERM = 1_001_000  #: Largest frame rate numerator or denominator ffmpeg keeps exact.

STANDARD_BIT_DEPTHS: tuple[int, ...] = (8, 10, 12)  #: Bit depths output pixel formats use.
NON_HEVC_MAX_BITS = 10  #: Highest bit depth libx264 profiles cover.
MAX_CHROMA = 444  #: Chroma value used when the source layout is unknown.
ODD_CHROMA = 440  #: Vertical-only subsampling; re-encoded as 4:4:4.
OUTPUT_COLOR_RANGE = "pc"  #: Full range, written for every re-encoded video stream.
SDR_COLOR = "bt709"  #: Transfer, primaries and matrix for remapped HDR.

AAC_SAMPLE_RATES: tuple[int, ...] = (
    8000,
    11025,
    12000,
    16000,
    22050,
    24000,
    32000,
    44100,
    48000,
    64000,
    88200,
    96000,
)  #: Sample rates the AAC encoders accept.
AAC_SNAP_STEPS: tuple[tuple[int, int], ...] = (
    (88200, 96000),
    (64000, 88200),
    (48000, 64000),
    (44000, 48000),
    (32000, 44100),
    (24000, 32000),
    (22050, 24000),
    (16000, 22050),
    (12000, 16000),
    (11025, 12000),
    (8000, 11025),
)  #: (exclusive lower bound, snapped rate) pairs, highest first.
FDK_MAX_CHANNELS = 8  #: Channel count above which libfdk_aac needs explicit layouts.
FDK_CUTOFF = 20000  #: Low-pass cutoff for the two highest libfdk_aac VBR modes.
FDK_CUTOFF_MIN_VBR = 4  #: Lowest VBR mode that gets :data:`FDK_CUTOFF`.
DEFAULT_CHANNELS = 2  #: Channel count assumed for bitrate budgeting when unknown.

_LANGUAGE_LENGTH = 3
_UNDETERMINED_LANGUAGE = "und"

_H264_PROFILES: dict[tuple[int, int], str] = {
    (8, 420): "high",
    (8, 422): "high422",
    (8, 444): "high444",
    (10, 420): "high10",
    (10, 422): "high422",
    (10, 444): "high444",
}
_HEVC_PROFILES: dict[tuple[int, int], str] = {
    (8, 420): "main",
    (10, 420): "main10",
}
_HEVC_EXT_PROFILE = "rext"


@dataclass(frozen=True)
class CodecLimits:
    """Dimension and throughput limits of an output video codec."""

    max_dimension: int
    min_dimension: int
    hevc: bool

    def units(self, width: int, height: int) -> int:
        """Return the level-limited units per frame (macroblocks or samples)."""
        if self.hevc:
            return width * height
        return math.ceil(width / H264_MACROBLOCK) * math.ceil(height / H264_MACROBLOCK)

    @property
    def max_unit_rate(self) -> int:
        """Units per second allowed at the highest level."""
        return HEVC_MAX_SAMPLE_RATE if self.hevc else H264_MAX_MACROBLOCK_RATE


def codec_limits(codec: VideoCodec) -> CodecLimits:
    """Return the limits used when encoding to ``codec``."""
    if codec.is_hevc:
        return CodecLimits(HEVC_MAX_DIMENSION, HEVC_MIN_DIMENSION, hevc=True)
    return CodecLimits(H264_MAX_DIMENSION, H264_MIN_DIMENSION, hevc=False)


# ---------------------------------------------------------------------------
# Re-encode triggers


def source_chroma(stream: StreamDescriptor) -> int:
    """Chroma layout of ``stream`` as encodable output; 4:4:0 and unknown count as 4:4:4."""
    info = stream.pixel_format_info
    if info is None or info.chroma == ODD_CHROMA:
        return MAX_CHROMA
    return info.chroma


def exceeds_bit_depth(stream: StreamDescriptor, ceiling: int | None) -> bool:
    """Whether ``stream`` must be re-encoded to honour a bit-depth ceiling."""
    if ceiling is None:
        return False
    bits = stream.bits_per_channel
    if bits is None or bits <= 0 or bits > ceiling:
        return True
    raw = stream.bits_per_raw_sample
    return raw is not None and raw > 0 and raw != bits


def exceeds_chroma(stream: StreamDescriptor, ceiling: int | None) -> bool:
    """Whether ``stream`` must be re-encoded to honour a chroma ceiling.

    Non-standard layouts and alpha are never trusted under an active ceiling.
    """
    if ceiling is None:
        return False
    info = stream.pixel_format_info
    if info is None or not info.is_standard or stream.has_alpha:
        return True
    return info.chroma > ceiling


def exceeds_fps(stream: StreamDescriptor, limit: int | None) -> bool:
    """Whether the frame rate is unknown or above ``limit``."""
    if limit is None:
        return False
    rate = stream.frame_rate
    return rate is None or rate.num > rate.den * limit


def is_hdr(stream: StreamDescriptor) -> bool:
    """Whether the color description is not a recognized SDR profile."""
    if stream.color_transfer in HDR_TRANSFERS:
        return True
    return not is_sdr(stream.color_transfer, stream.color_primaries, stream.color_space)


def exceeds_bounds(stream: StreamDescriptor, options: VideoOptions, limits: CodecLimits) -> bool:
    """Whether the stream is outside the resize bounds or the codec's dimension range."""
    width = stream.width or 0
    height = stream.height or 0
    max_w = min(options.max_width or limits.max_dimension, limits.max_dimension)
    max_h = min(options.max_height or limits.max_dimension, limits.max_dimension)
    if width > max(max_w, limits.min_dimension) or height > max(max_h, limits.min_dimension):
        return True
    return 0 < width < limits.min_dimension or 0 < height < limits.min_dimension


def video_triggers(stream: StreamDescriptor, options: VideoOptions) -> tuple[str, ...]:
    """Return every reason ``stream`` cannot be copied as-is."""
    limits = codec_limits(options.encode_codec)
    reasons: list[str] = []
    if exceeds_bounds(stream, options, limits):
        reasons.append("dimensions")
    if exceeds_bit_depth(stream, options.max_bits.ceiling):
        reasons.append("bit depth")
    if exceeds_chroma(stream, options.max_chroma.ceiling):
        reasons.append("pixel format")
    if exceeds_fps(stream, options.fps_limit):
        reasons.append("frame rate")
    if options.remap_hdr and is_hdr(stream):
        reasons.append("hdr")
    if options.force_progressive and not stream.is_progressive:
        reasons.append("interlaced")
    if options.force_square_pixels and not stream.has_square_pixels:
        reasons.append("non-square pixels")
    return tuple(reasons)


def exceeds_channels(stream: StreamDescriptor, ceiling: int | None) -> bool:
    """Whether the channel count is unknown or above ``ceiling``."""
    if ceiling is None:
        return False
    return stream.channels is None or stream.channels <= 0 or stream.channels > ceiling


def exceeds_sample_rate(stream: StreamDescriptor, ceiling: int | None) -> bool:
    """Whether the sample rate is unknown or above ``ceiling``."""
    if ceiling is None:
        return False
    return stream.sample_rate is None or stream.sample_rate <= 0 or stream.sample_rate > ceiling


def audio_triggers(stream: StreamDescriptor, options: AudioOptions) -> tuple[str, ...]:
    """Return every reason ``stream`` cannot be copied as-is."""
    reasons: list[str] = []
    if exceeds_channels(stream, options.max_channels.ceiling):
        reasons.append("channels")
    if exceeds_sample_rate(stream, options.max_sample_rate.ceiling):
        reasons.append("sample rate")
    return tuple(reasons)


# ---------------------------------------------------------------------------
# Geometry


def _square_pixels(width: int, height: int, sar: Rational | None) -> tuple[int, int]:
    if sar is None or sar.is_unit:
        return width, height
    ratio = sar.num / sar.den
    if sar.num > sar.den:
        return max(1, math.floor(0.5 + width * ratio)), height
    return width, max(1, math.floor(0.5 + height / ratio))


def _round_even(value: float, *, even: bool, limit: float) -> int:
    step = 2 if even else 1
    rounded = math.floor(value / step + 0.5) * step
    if rounded > limit:
        rounded = math.floor(value / step) * step
    return int(rounded)


def _min_dimension(width: int, height: int, current: int, limits: CodecLimits) -> int:
    if not limits.hevc:
        return current
    for threshold, minimum in HEVC_CTU_STEPS:
        if width >= threshold or height >= threshold:
            return max(current, minimum)
    return current


def resize_dimensions(
    width: int,
    height: int,
    *,
    limits: CodecLimits,
    max_width: int | None = None,
    max_height: int | None = None,
    sar: Rational | None = None,
    even_width: bool = False,
    even_height: bool = False,
) -> tuple[int, int]:
    """Return the output size for a ``width`` x ``height`` source.

    The result keeps the display aspect ratio, never exceeds the source size
    except to reach the codec minimum, and is rounded to even values where the
    chroma layout needs it.

    Raises:
        ResizeInfeasible: If the bounds cannot all be met at once.

    """
    src_w, src_h = _square_pixels(width, height, sar)
    hard_w = min(max_width or limits.max_dimension, limits.max_dimension)
    hard_h = min(max_height or limits.max_dimension, limits.max_dimension)
    box_w, box_h = min(hard_w, src_w), min(hard_h, src_h)
    min_dim = limits.min_dimension
    while True:
        w1 = min(box_w, src_w / src_h * box_h)
        h1 = min(box_h, src_h / src_w * box_w)
        grow = max(1.0, min_dim / w1, min_dim / h1)
        w2, h2 = w1 * grow, h1 * grow
        out_w = _round_even(w2, even=even_width, limit=min(hard_w, max(box_w, w2)))
        out_h = _round_even(h2, even=even_height, limit=min(hard_h, max(box_h, h2)))
        if out_w < min_dim or out_h < min_dim or out_w > hard_w or out_h > hard_h:
            raise ResizeInfeasible(RESIZE_INFEASIBLE)

        raised = _min_dimension(out_w, out_h, min_dim, limits)
        if raised != min_dim:
            min_dim = raised
            if out_w < min_dim or out_h < min_dim:
                continue

        if (out_w + PIXEL_BUDGET_PAD) * (out_h + PIXEL_BUDGET_PAD) > PIXEL_BUDGET:
            if min_dim in (out_w, out_h):
                raise ResizeInfeasible(PIXEL_BUDGET_INFEASIBLE)
            scale = math.sqrt(PIXEL_BUDGET / ((out_w + PIXEL_BUDGET_PAD) * (out_h + PIXEL_BUDGET_PAD)))
            new_w = min(math.ceil(out_w * scale), out_w)
            new_h = min(math.ceil(out_h * scale), out_h)
            if (new_w, new_h) == (out_w, out_h):
                if new_w > new_h:
                    new_w -= 1
                else:
                    new_h -= 1
            hard_w, hard_h = new_w, new_h
            box_w, box_h = min(box_w, new_w), min(box_h, new_h)
            continue
        return out_w, out_h


# ---------------------------------------------------------------------------
# Frame rate


def limit_fps(rate: Rational | None, limit: int, mode: FpsMode) -> Rational:
    """Return the reduced frame rate for a stream above ``limit``.

    In integer-division mode the source rate is divided by the smallest
    integer that brings it to or below ``limit``.
    """
    if mode is FpsMode.EXACT or rate is None:
        return Rational(limit, 1)
    divisor = -(-rate.num // (rate.den * limit))
    g = math.gcd(rate.num, divisor)
    return Rational(rate.num // g, rate.den * (divisor // g))


def cap_fps_for_level(width: int, height: int, rate: Rational | None, limits: CodecLimits) -> Rational | None:
    """Return the highest level-compliant rate if ``rate`` exceeds it, else ``None``."""
    if rate is None:
        return None
    units = limits.units(width, height)
    g = math.gcd(units, limits.max_unit_rate)
    max_num = limits.max_unit_rate // g
    max_den = units // g
    if rate.num * max_den > rate.den * max_num:
        return Rational(max_num, max_den)
    return None


def clamp_fps_terms(rate: Rational) -> Rational:
    """Shrink ``rate`` so both terms fit ffmpeg's exact range without raising it."""
    if rate.num <= MAX_FPS_TERM and rate.den <= MAX_FPS_TERM:
        return rate
    factor = -(-max(rate.num, rate.den) // MAX_FPS_TERM)
    return Rational(rate.num // factor, -(-rate.den // factor))


# ---------------------------------------------------------------------------
# Pixel format and profiles


def output_pixel_format(stream: StreamDescriptor, options: VideoOptions) -> tuple[str, int, int]:
    """Return ``(pix_fmt, bits, chroma)`` for a re-encoded stream."""
    chroma = min(source_chroma(stream), options.max_chroma.ceiling or MAX_CHROMA)
    bits = stream.bits_per_channel or 0
    bits = next((b for b in STANDARD_BIT_DEPTHS if bits <= b), STANDARD_BIT_DEPTHS[-1])
    ceiling = options.max_bits.ceiling or STANDARD_BIT_DEPTHS[-1]
    if not options.encode_codec.is_hevc:
        ceiling = min(ceiling, NON_HEVC_MAX_BITS)
    bits = min(bits, ceiling)
    name = f"yuv{chroma}p" if bits == STANDARD_BIT_DEPTHS[0] else f"yuv{chroma}p{bits}le"
    return name, bits, chroma


def video_profile(bits: int, chroma: int, *, hevc: bool) -> str:
    """Return the encoder profile for ``bits`` and ``chroma``."""
    if hevc:
        return _HEVC_PROFILES.get((bits, chroma), _HEVC_EXT_PROFILE)
    return _H264_PROFILES[(bits, chroma)]


def derive_video_params(stream: StreamDescriptor, options: VideoOptions) -> VideoEncodeParams:
    """Derive the complete encoder settings for re-encoding ``stream``.

    Raises:
        ResizeInfeasible: If no output size satisfies the bounds.

    """
    codec = options.encode_codec
    limits = codec_limits(codec)
    encoder = codec.info.encoder
    if encoder is None:  # pragma: no cover - enforced by VideoOptions
        raise ValueError(f"No encoder for {codec.value}")
    pix_fmt, bits, chroma = output_pixel_format(stream, options)

    width, height = stream.width or 0, stream.height or 0
    sar = stream.sample_aspect_ratio if options.force_square_pixels else None
    out_w, out_h = resize_dimensions(
        width,
        height,
        limits=limits,
        max_width=options.max_width,
        max_height=options.max_height,
        sar=sar,
        even_width=chroma in (420, 422),
        even_height=chroma == 420,
    )

    fps: Rational | None = None
    if exceeds_fps(stream, options.fps_limit) and options.fps_limit is not None:
        fps = limit_fps(stream.frame_rate, options.fps_limit, options.fps_mode)
    rate = fps or stream.frame_rate
    capped = cap_fps_for_level(out_w, out_h, rate, limits)
    if capped is not None:
        fps = rate = capped
    if rate is not None and (rate.num > MAX_FPS_TERM or rate.den > MAX_FPS_TERM):
        fps = clamp_fps_terms(rate)

    resized = (out_w, out_h) != (width, height)
    return VideoEncodeParams(
        encoder=encoder,
        pixel_format=pix_fmt,
        profile=video_profile(bits, chroma, hevc=limits.hevc),
        crf=options.quality.hevc_crf if limits.hevc else options.quality.h264_crf,
        preset=options.compression.preset,
        width=out_w if resized else None,
        height=out_h if resized else None,
        fps=fps,
        tonemap=options.remap_hdr and is_hdr(stream),
        deinterlace=not stream.is_progressive,
        square_pixels=sar is not None and not sar.is_unit,
        tag=codec.info.tag,
    )


# ---------------------------------------------------------------------------
# Audio


def snap_sample_rate(rate: int) -> int:
    """Round ``rate`` up to the nearest AAC-supported sample rate."""
    if rate in AAC_SAMPLE_RATES:
        return rate
    for lower, snapped in AAC_SNAP_STEPS:
        if rate > lower:
            return snapped
    return AAC_SAMPLE_RATES[0]


def derive_audio_params(stream: StreamDescriptor, options: AudioOptions, encoders: set[Encoder]) -> AudioEncodeParams:
    """Derive AAC encoder settings for re-encoding ``stream``.

    ``libfdk_aac`` is preferred when available, unless the stream keeps more
    than eight channels.
    """
    channel_ceiling = options.max_channels.ceiling
    channels: int | None = None
    if exceeds_channels(stream, channel_ceiling):
        channels = channel_ceiling
    rate_ceiling = options.max_sample_rate.ceiling
    sample_rate: int | None = None
    if exceeds_sample_rate(stream, rate_ceiling):
        sample_rate = rate_ceiling
    effective_rate = sample_rate or stream.sample_rate
    if effective_rate is not None and effective_rate > 0 and effective_rate not in AAC_SAMPLE_RATES:
        sample_rate = snap_sample_rate(effective_rate)

    source_channels = stream.channels if stream.channels and stream.channels > 0 else None
    out_channels = channels or source_channels
    fdk_ok = (source_channels or 0) <= FDK_MAX_CHANNELS or channel_ceiling is not None
    if Encoder.FDK_AAC in encoders and fdk_ok:
        vbr = options.quality.fdk_vbr
        return AudioEncodeParams(
            encoder=Encoder.FDK_AAC,
            channels=channels,
            sample_rate=sample_rate,
            vbr=vbr,
            cutoff=FDK_CUTOFF if vbr >= FDK_CUTOFF_MIN_VBR else None,
        )
    bitrate = (out_channels or DEFAULT_CHANNELS) * options.quality.bitrate_per_channel
    return AudioEncodeParams(
        encoder=Encoder.AAC,
        channels=channels,
        sample_rate=sample_rate,
        bitrate=bitrate,
    )


# ---------------------------------------------------------------------------
# Metadata


def valid_language(language: str | None) -> str | None:
    """Return ``language`` if it is a three-letter lowercase code other than ``und``."""
    if language is None or len(language) != _LANGUAGE_LENGTH or language == _UNDETERMINED_LANGUAGE:
        return None
    if not all("a" <= ch <= "z" for ch in language):
        return None
    return language


__all__ = [
    "AAC_SAMPLE_RATES",
    "PIXEL_BUDGET_INFEASIBLE",
    "RESIZE_INFEASIBLE",
    "CodecLimits",
    "audio_triggers",
    "cap_fps_for_level",
    "clamp_fps_terms",
    "codec_limits",
    "derive_audio_params",
    "derive_video_params",
    "exceeds_bit_depth",
    "exceeds_bounds",
    "exceeds_channels",
    "exceeds_chroma",
    "exceeds_fps",
    "exceeds_sample_rate",
    "is_hdr",
    "limit_fps",
    "output_pixel_format",
    "resize_dimensions",
    "snap_sample_rate",
    "source_chroma",
    "valid_language",
    "video_profile",
    "video_triggers",
]
