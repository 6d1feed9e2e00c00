"""Static codec, container and pixel format tables.

The tables are read-only module constants. Each enum member exposes its
entry through an ``info`` property so callers never index the dictionaries
directly.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .types import Encoder


@dataclass(frozen=True)
class VideoCodecInfo:
    """Matching and muxing facts for a video codec identifier."""

    codec_name: str
    tag: str | None
    encoder: Encoder | None
    mp4_muxable: bool
    writable_extension: str


@dataclass(frozen=True)
class AudioCodecInfo:
    """Matching and muxing facts for an audio codec identifier."""

    codec_name: str
    profile: str | None
    encodable: bool
    mp4_muxable: bool
    writable_extension: str


@dataclass(frozen=True)
class ContainerInfo:
    """Detection and writing facts for a container format."""

    format_name: str
    extensions: tuple[str, ...]
    writable: bool

    @property
    def canonical_extension(self) -> str:
        """Preferred extension for files of this format."""
        return self.extensions[0]


@dataclass(frozen=True)
class PixelFormatInfo:
    """Bit depth and chroma layout of a pixel format."""

    bits: int
    is_standard: bool
    chroma: int


class VideoCodec(str, Enum):
    """Video codec identifiers usable in allow-lists."""

    H264 = "h264"
    HEVC = "hevc"
    HEVC_ANY_TAG = "hevc-any-tag"
    H262 = "h262"
    H263 = "h263"
    H266 = "h266"
    MPEG1 = "mpeg1"
    MPEG4 = "mpeg4"
    VP8 = "vp8"
    VP9 = "vp9"
    AV1 = "av1"

    @property
    def info(self) -> VideoCodecInfo:
        """Catalog entry for this codec."""
        return _VIDEO_CODECS[self]

    @property
    def is_hevc(self) -> bool:
        """Whether this identifier refers to HEVC regardless of tag."""
        return self.info.codec_name == "hevc"

    def matches(self, codec_name: str | None, tag: str | None) -> bool:
        """Return True if a stream with ``codec_name`` and ``tag`` is this codec.

        Tag-specific identifiers only match streams carrying that exact tag;
        tag-agnostic identifiers match any tag.
        """
        info = self.info
        if codec_name != info.codec_name:
            return False
        return info.tag is None or info.tag == tag


class AudioCodec(str, Enum):
    """Audio codec identifiers usable in allow-lists."""

    AAC = "aac"
    HE_AAC = "he-aac"
    MP2 = "mp2"
    MP3 = "mp3"
    VORBIS = "vorbis"
    OPUS = "opus"

    @property
    def info(self) -> AudioCodecInfo:
        """Catalog entry for this codec."""
        return _AUDIO_CODECS[self]

    def matches(self, codec_name: str | None, profile: str | None) -> bool:
        """Return True if a stream with ``codec_name`` and ``profile`` is this codec."""
        info = self.info
        if codec_name != info.codec_name:
            return False
        return info.profile is None or info.profile == profile


class ContainerFormat(str, Enum):
    """Container formats the processor can read; only MP4 can be written."""

    MP4 = "mp4"
    THREE_GP = "3gp"
    MOV = "mov"
    MKV = "mkv"
    WEBM = "webm"
    AVI = "avi"
    WMV = "wmv"
    TS = "ts"
    MTS = "mts"
    M2TS = "m2ts"

    @property
    def info(self) -> ContainerInfo:
        """Catalog entry for this container."""
        return _CONTAINERS[self]

    @property
    def extension(self) -> str:
        """Canonical filename extension for this container, including dot."""
        return self.info.canonical_extension


_VIDEO_CODECS: dict[VideoCodec, VideoCodecInfo] = {
    VideoCodec.H264: VideoCodecInfo("h264", None, Encoder.X264, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.HEVC: VideoCodecInfo("hevc", "hvc1", Encoder.X265, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.HEVC_ANY_TAG: VideoCodecInfo("hevc", None, Encoder.X265, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.H262: VideoCodecInfo("mpeg2video", None, None, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.H263: VideoCodecInfo("h263", None, None, mp4_muxable=False, writable_extension=".3gp"),
    VideoCodec.H266: VideoCodecInfo("vvc", None, None, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.MPEG1: VideoCodecInfo("mpeg1video", None, None, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.MPEG4: VideoCodecInfo("mpeg4", None, None, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.VP8: VideoCodecInfo("vp8", None, None, mp4_muxable=False, writable_extension=".webm"),
    VideoCodec.VP9: VideoCodecInfo("vp9", None, None, mp4_muxable=True, writable_extension=".mp4"),
    VideoCodec.AV1: VideoCodecInfo("av1", None, None, mp4_muxable=True, writable_extension=".mp4"),
}

_AUDIO_CODECS: dict[AudioCodec, AudioCodecInfo] = {
    AudioCodec.AAC: AudioCodecInfo("aac", "LC", encodable=True, mp4_muxable=True, writable_extension=".m4a"),
    AudioCodec.HE_AAC: AudioCodecInfo("aac", "HE-AAC", encodable=False, mp4_muxable=True, writable_extension=".m4a"),
    AudioCodec.MP2: AudioCodecInfo("mp2", None, encodable=False, mp4_muxable=True, writable_extension=".mp2"),
    AudioCodec.MP3: AudioCodecInfo("mp3", None, encodable=False, mp4_muxable=True, writable_extension=".mp3"),
    AudioCodec.VORBIS: AudioCodecInfo("vorbis", None, encodable=False, mp4_muxable=False, writable_extension=".ogg"),
    AudioCodec.OPUS: AudioCodecInfo("opus", None, encodable=False, mp4_muxable=True, writable_extension=".opus"),
}

_MP4_FAMILY = "mov,mp4,m4a,3gp,3g2,mj2"
_MATROSKA_FAMILY = "matroska,webm"
_MPEGTS = "mpegts"

_CONTAINERS: dict[ContainerFormat, ContainerInfo] = {
    ContainerFormat.MP4: ContainerInfo(_MP4_FAMILY, (".mp4", ".m4v"), writable=True),
    ContainerFormat.THREE_GP: ContainerInfo(_MP4_FAMILY, (".3gp",), writable=False),
    ContainerFormat.MOV: ContainerInfo(_MP4_FAMILY, (".mov",), writable=False),
    ContainerFormat.MKV: ContainerInfo(_MATROSKA_FAMILY, (".mkv",), writable=False),
    ContainerFormat.WEBM: ContainerInfo(_MATROSKA_FAMILY, (".webm",), writable=False),
    ContainerFormat.AVI: ContainerInfo("avi", (".avi",), writable=False),
    ContainerFormat.WMV: ContainerInfo("asf", (".wmv", ".asf"), writable=False),
    ContainerFormat.TS: ContainerInfo(_MPEGTS, (".ts",), writable=False),
    ContainerFormat.MTS: ContainerInfo(_MPEGTS, (".mts",), writable=False),
    ContainerFormat.M2TS: ContainerInfo(_MPEGTS, (".m2ts",), writable=False),
}

ALL_SOURCE_VIDEO_CODECS: tuple[VideoCodec, ...] = (
    VideoCodec.H264,
    VideoCodec.HEVC,
    VideoCodec.HEVC_ANY_TAG,
    VideoCodec.H262,
    VideoCodec.H263,
    VideoCodec.H266,
    VideoCodec.MPEG1,
    VideoCodec.MPEG4,
    VideoCodec.VP8,
    VideoCodec.VP9,
    VideoCodec.AV1,
)  #: Every video codec the processor can read.
ALL_SOURCE_AUDIO_CODECS: tuple[AudioCodec, ...] = tuple(AudioCodec)  #: Every audio codec the processor can read.
ALL_SOURCE_FORMATS: tuple[ContainerFormat, ...] = tuple(ContainerFormat)  #: Every readable container format.

_PIXEL_FORMATS: dict[str, PixelFormatInfo] = {
    "yuv420p": PixelFormatInfo(8, is_standard=True, chroma=420),
    "yuvj420p": PixelFormatInfo(8, is_standard=True, chroma=420),
    "yuv422p": PixelFormatInfo(8, is_standard=True, chroma=422),
    "yuvj422p": PixelFormatInfo(8, is_standard=True, chroma=422),
    "yuv444p": PixelFormatInfo(8, is_standard=True, chroma=444),
    "yuvj444p": PixelFormatInfo(8, is_standard=True, chroma=444),
    "yuv420p10le": PixelFormatInfo(10, is_standard=True, chroma=420),
    "yuv422p10le": PixelFormatInfo(10, is_standard=True, chroma=422),
    "yuv444p10le": PixelFormatInfo(10, is_standard=True, chroma=444),
    "yuv420p12le": PixelFormatInfo(12, is_standard=True, chroma=420),
    "yuv422p12le": PixelFormatInfo(12, is_standard=True, chroma=422),
    "yuv444p12le": PixelFormatInfo(12, is_standard=True, chroma=444),
    "gbrp": PixelFormatInfo(8, is_standard=False, chroma=444),
    "gbrp10le": PixelFormatInfo(10, is_standard=False, chroma=444),
    "gbrp12le": PixelFormatInfo(12, is_standard=False, chroma=444),
    "yuv440p": PixelFormatInfo(8, is_standard=False, chroma=440),
    "yuv440p10le": PixelFormatInfo(10, is_standard=False, chroma=440),
    "yuv440p12le": PixelFormatInfo(12, is_standard=False, chroma=440),
}

SDR_TRANSFERS: frozenset[str] = frozenset(
    {"bt709", "bt601", "bt470", "bt470bg", "smpte170m", "smpte240m", "iec61966-2-1"}
)  #: Transfer characteristics treated as SDR.
SDR_PRIMARIES: frozenset[str] = frozenset({"bt709", "bt470m", "bt470bg", "smpte170m", "smpte240m"})  #: Color primaries treated as SDR.
SDR_SPACES: frozenset[str] = frozenset(
    {"bt709", "bt470m", "bt470bg", "smpte170m", "smpte240m", "srgb", "iec61966-2-1", "gbr"}
)  #: Matrix coefficients treated as SDR.
HDR_TRANSFERS: frozenset[str] = frozenset({"smpte2084", "arib-std-b67"})  #: PQ and HLG.

MP4_FRIENDLY_IMAGE_CODECS: frozenset[str] = frozenset({"mjpeg", "png"})  #: Thumbnail codecs MP4 always accepts.
MP4_SUBTITLE_CODEC = "mov_text"  #: The only text subtitle codec MP4 carries.


def pixel_format_info(name: str | None) -> PixelFormatInfo | None:
    """Return the characteristics of ``name`` or ``None`` if it is not known."""
    if name is None:
        return None
    return _PIXEL_FORMATS.get(name)


def is_sdr(transfer: str | None, primaries: str | None, space: str | None) -> bool:
    """Return True when every known color property is a recognized SDR value.

    Unknown (missing) properties are assumed to be SDR; an unrecognized value
    is treated as HDR.
    """
    if transfer is not None and transfer not in SDR_TRANSFERS:
        return False
    if primaries is not None and primaries not in SDR_PRIMARIES:
        return False
    return space is None or space in SDR_SPACES


def match_video_codec(
    codecs: Iterable[VideoCodec], codec_name: str | None, tag: str | None
) -> VideoCodec | None:
    """Return the first entry of ``codecs`` matching the stream, if any."""
    return next((c for c in codecs if c.matches(codec_name, tag)), None)


def match_video_codec_by_name(codecs: Iterable[VideoCodec], codec_name: str | None) -> VideoCodec | None:
    """Return the first entry of ``codecs`` whose codec name matches, ignoring tags."""
    return next((c for c in codecs if c.info.codec_name == codec_name), None)


def match_audio_codec(
    codecs: Iterable[AudioCodec], codec_name: str | None, profile: str | None
) -> AudioCodec | None:
    """Return the first entry of ``codecs`` matching the stream, if any."""
    return next((c for c in codecs if c.matches(codec_name, profile)), None)


def identify_container(
    formats: Iterable[ContainerFormat], format_name: str | None, extension: str | None = None
) -> ContainerFormat | None:
    """Return the format matching ``format_name``.

    Among matching formats, one whose extensions include ``extension`` is
    preferred; otherwise the first match in ``formats`` order wins.
    """
    candidates = [f for f in formats if f.info.format_name == format_name]
    if not candidates:
        return None
    if extension:
        ext = extension.lower()
        for fmt in candidates:
            if ext in fmt.info.extensions:
                return fmt
    return candidates[0]


__all__ = [
    "ALL_SOURCE_AUDIO_CODECS",
    "ALL_SOURCE_FORMATS",
    "ALL_SOURCE_VIDEO_CODECS",
    "HDR_TRANSFERS",
    "MP4_FRIENDLY_IMAGE_CODECS",
    "MP4_SUBTITLE_CODEC",
    "AudioCodec",
    "AudioCodecInfo",
    "ContainerFormat",
    "ContainerInfo",
    "PixelFormatInfo",
    "VideoCodec",
    "VideoCodecInfo",
    "identify_container",
    "is_sdr",
    "match_audio_codec",
    "match_video_codec",
    "match_video_codec_by_name",
    "pixel_format_info",
]
