"""Expose models and type definitions."""

from .catalog import AudioCodec, ContainerFormat, VideoCodec
from .context import RuntimeContext
from .ffprobe import Rational, SourceInventory, StreamDescriptor
from .plan import AudioEncodeParams, EncodingPlan, ProcessingResult, StreamDecision, VideoEncodeParams
from .types import (
    AudioChannels,
    AudioQuality,
    AudioSampleRate,
    BitDepth,
    ChromaSubsampling,
    CompressionLevel,
    Encoder,
    FpsMode,
    MetadataMode,
    ReencodeMode,
    StreamAction,
    StreamKind,
    VideoQuality,
)
from .verbosity import Verbosity
from .options import (  # noqa: I001
    AudioOptions,
    AudioValidationOptions,
    ContainerOptions,
    Options,
    PolicyPreset,
    ProcessingPolicy,
    RuntimeOptions,
    VideoOptions,
    VideoValidationOptions,
)

__all__ = [
    "AudioChannels",
    "AudioCodec",
    "AudioEncodeParams",
    "AudioOptions",
    "AudioQuality",
    "AudioSampleRate",
    "AudioValidationOptions",
    "BitDepth",
    "ChromaSubsampling",
    "CompressionLevel",
    "ContainerFormat",
    "ContainerOptions",
    "Encoder",
    "EncodingPlan",
    "FpsMode",
    "MetadataMode",
    "Options",
    "PolicyPreset",
    "ProcessingPolicy",
    "ProcessingResult",
    "Rational",
    "ReencodeMode",
    "RuntimeContext",
    "RuntimeOptions",
    "SourceInventory",
    "StreamAction",
    "StreamDecision",
    "StreamDescriptor",
    "StreamKind",
    "Verbosity",
    "VideoCodec",
    "VideoEncodeParams",
    "VideoOptions",
    "VideoQuality",
    "VideoValidationOptions",
]
