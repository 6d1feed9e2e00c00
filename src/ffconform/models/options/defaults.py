"""Default constants for option models."""

from __future__ import annotations

from ffconform.models.catalog import AudioCodec, ContainerFormat, VideoCodec
from ffconform.models.types import (
    AudioChannels,
    AudioSampleRate,
    BitDepth,
    ChromaSubsampling,
    MetadataMode,
    ReencodeMode,
)

DEFAULT_RESULT_FORMATS: tuple[ContainerFormat, ...] = (ContainerFormat.MP4,)
DEFAULT_RESULT_VIDEO_CODECS: tuple[VideoCodec, ...] = (VideoCodec.H264,)
DEFAULT_RESULT_AUDIO_CODECS: tuple[AudioCodec, ...] = (AudioCodec.AAC,)
DEFAULT_METADATA_MODE = MetadataMode.THUMBNAIL_ONLY
DEFAULT_REENCODE_MODE = ReencodeMode.ALWAYS
DEFAULT_FPS_LIMIT = 60
DEFAULT_MAX_BITS = BitDepth.BITS_8
DEFAULT_MAX_CHROMA = ChromaSubsampling.YUV420
DEFAULT_MAX_CHANNELS = AudioChannels.STEREO
DEFAULT_MAX_SAMPLE_RATE = AudioSampleRate.HZ_48000
OUTPUT_SUFFIX = "_conformed"  #: Suffix appended to default output filenames.

__all__ = [
    "DEFAULT_FPS_LIMIT",
    "DEFAULT_MAX_BITS",
    "DEFAULT_MAX_CHANNELS",
    "DEFAULT_MAX_CHROMA",
    "DEFAULT_MAX_SAMPLE_RATE",
    "DEFAULT_METADATA_MODE",
    "DEFAULT_REENCODE_MODE",
    "DEFAULT_RESULT_AUDIO_CODECS",
    "DEFAULT_RESULT_FORMATS",
    "DEFAULT_RESULT_VIDEO_CODECS",
    "OUTPUT_SUFFIX",
]
