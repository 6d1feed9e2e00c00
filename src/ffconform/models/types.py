"""Enumerations shared by the policy, planner and command builder."""

from enum import Enum


class StreamKind(str, Enum):
    """Classification of a probed stream."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    ATTACHMENT = "attachment"
    DATA = "data"
    THUMBNAIL = "thumbnail"
    UNKNOWN = "unknown"

    @property
    def is_media(self) -> bool:
        """Whether this kind is a playable audio or video stream."""
        return self in {StreamKind.VIDEO, StreamKind.AUDIO}

    @property
    def specifier(self) -> str:
        """FFmpeg stream specifier letter for this kind."""
        return {
            StreamKind.VIDEO: "v",
            StreamKind.AUDIO: "a",
            StreamKind.SUBTITLE: "s",
            StreamKind.ATTACHMENT: "t",
            StreamKind.DATA: "d",
            StreamKind.THUMBNAIL: "v",
            StreamKind.UNKNOWN: "d",
        }[self]


class StreamAction(str, Enum):
    """What happens to a stream in the output."""

    COPY = "copy"
    REMUX = "remux"
    REENCODE = "reencode"
    OMIT = "omit"


class ReencodeMode(str, Enum):
    """When a compliant stream may still be re-encoded."""

    AVOID_REENCODING = "avoid-reencoding"
    ALWAYS = "always"
    SELECT_SMALLEST = "select-smallest"


class MetadataMode(str, Enum):
    """How container, stream and thumbnail metadata is handled."""

    NONE = "none"
    THUMBNAIL_ONLY = "thumbnail-only"
    PREFERRED = "preferred"
    REQUIRED = "required"

    @property
    def strips_thumbnails(self) -> bool:
        """Whether attached thumbnail streams are dropped."""
        return self is not MetadataMode.NONE

    @property
    def strips_metadata(self) -> bool:
        """Whether global, chapter and per-stream metadata is dropped when rewriting."""
        return self in {MetadataMode.PREFERRED, MetadataMode.REQUIRED}

    @property
    def forces_rewrite(self) -> bool:
        """Whether the mode alone forces the output to be rewritten."""
        return self is MetadataMode.REQUIRED


class FpsMode(str, Enum):
    """How an over-limit frame rate is reduced."""

    EXACT = "exact"
    INTEGER_DIVISION = "integer-division"


class ChromaSubsampling(str, Enum):
    """Maximum chroma subsampling allowed in the output."""

    PRESERVE = "preserve"
    YUV420 = "420"
    YUV422 = "422"
    YUV444 = "444"

    @property
    def ceiling(self) -> int | None:
        """Numeric chroma ceiling or ``None`` when preserving."""
        return None if self is ChromaSubsampling.PRESERVE else int(self.value)


class BitDepth(str, Enum):
    """Maximum bits per channel allowed in the output."""

    PRESERVE = "preserve"
    BITS_8 = "8"
    BITS_10 = "10"
    BITS_12 = "12"

    @property
    def ceiling(self) -> int | None:
        """Numeric bit-depth ceiling or ``None`` when preserving."""
        return None if self is BitDepth.PRESERVE else int(self.value)


class AudioChannels(str, Enum):
    """Maximum number of audio channels allowed in the output."""

    PRESERVE = "preserve"
    MONO = "mono"
    STEREO = "stereo"

    @property
    def ceiling(self) -> int | None:
        """Numeric channel ceiling or ``None`` when preserving."""
        return {
            AudioChannels.PRESERVE: None,
            AudioChannels.MONO: 1,
            AudioChannels.STEREO: 2,
        }[self]


class AudioSampleRate(str, Enum):
    """Maximum audio sample rate allowed in the output."""

    PRESERVE = "preserve"
    HZ_44100 = "44100"
    HZ_48000 = "48000"
    HZ_96000 = "96000"
    HZ_192000 = "192000"

    @property
    def ceiling(self) -> int | None:
        """Numeric sample-rate ceiling or ``None`` when preserving."""
        return None if self is AudioSampleRate.PRESERVE else int(self.value)


class VideoQuality(str, Enum):
    """Perceptual quality target for re-encoded video."""

    HIGHEST = "highest"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    LOWEST = "lowest"

    @property
    def h264_crf(self) -> int:
        """Constant rate factor used with ``libx264``."""
        return {
            VideoQuality.HIGHEST: 17,
            VideoQuality.HIGH: 20,
            VideoQuality.MEDIUM: 23,
            VideoQuality.LOW: 26,
            VideoQuality.LOWEST: 29,
        }[self]

    @property
    def hevc_crf(self) -> int:
        """Constant rate factor used with ``libx265``."""
        return {
            VideoQuality.HIGHEST: 19,
            VideoQuality.HIGH: 23,
            VideoQuality.MEDIUM: 28,
            VideoQuality.LOW: 31,
            VideoQuality.LOWEST: 34,
        }[self]


class CompressionLevel(str, Enum):
    """Encoder effort spent on compression."""

    HIGHEST = "highest"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    LOWEST = "lowest"

    @property
    def preset(self) -> str:
        """x264/x265 preset name."""
        return {
            CompressionLevel.HIGHEST: "slower",
            CompressionLevel.HIGH: "slow",
            CompressionLevel.MEDIUM: "medium",
            CompressionLevel.LOW: "faster",
            CompressionLevel.LOWEST: "superfast",
        }[self]


class AudioQuality(str, Enum):
    """Quality target for re-encoded audio."""

    HIGHEST = "highest"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    LOWEST = "lowest"

    @property
    def fdk_vbr(self) -> int:
        """VBR mode used with ``libfdk_aac``."""
        return {
            AudioQuality.HIGHEST: 5,
            AudioQuality.HIGH: 4,
            AudioQuality.MEDIUM: 3,
            AudioQuality.LOW: 2,
            AudioQuality.LOWEST: 1,
        }[self]

    @property
    def bitrate_per_channel(self) -> int:
        """Bits per second per channel used with the native ``aac`` encoder."""
        return {
            AudioQuality.HIGHEST: 192_000,
            AudioQuality.HIGH: 160_000,
            AudioQuality.MEDIUM: 128_000,
            AudioQuality.LOW: 80_000,
            AudioQuality.LOWEST: 64_000,
        }[self]


class Encoder(str, Enum):
    """FFmpeg encoders the processor can drive."""

    X264 = "x264"
    X265 = "x265"
    FDK_AAC = "fdk-aac"
    AAC = "aac"

    @property
    def ffmpeg_name(self) -> str:
        """Return the FFmpeg encoder name for this enum."""
        return {
            Encoder.X264: "libx264",
            Encoder.X265: "libx265",
            Encoder.FDK_AAC: "libfdk_aac",
            Encoder.AAC: "aac",
        }[self]

    @property
    def is_video(self) -> bool:
        """Whether this encoder produces video."""
        return self in {Encoder.X264, Encoder.X265}


__all__ = [
    "AudioChannels",
    "AudioQuality",
    "AudioSampleRate",
    "BitDepth",
    "ChromaSubsampling",
    "CompressionLevel",
    "Encoder",
    "FpsMode",
    "MetadataMode",
    "ReencodeMode",
    "StreamAction",
    "StreamKind",
    "VideoQuality",
]
