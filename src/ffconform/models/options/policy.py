"""Processing policy model and presets."""

from __future__ import annotations

from typing import Annotated, Any

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field

from ffconform.models.catalog import (
    ALL_SOURCE_AUDIO_CODECS,
    ALL_SOURCE_FORMATS,
    ALL_SOURCE_VIDEO_CODECS,
    VideoCodec,
)
from ffconform.models.types import (
    AudioChannels,
    AudioSampleRate,
    BitDepth,
    ChromaSubsampling,
    MetadataMode,
    ReencodeMode,
)

from .audio import AudioOptions
from .container import ContainerOptions
from .groups import VALIDATION_GROUP
from .validation import AudioValidationOptions, VideoValidationOptions
from .video import VideoOptions


@Parameter(name="*")
class ProcessingPolicy(BaseModel):
    """Declarative description of what a compliant output looks like.

    The policy is immutable; use :meth:`replace` to derive a variant.
    Defaults describe the standardized H.264/AAC/MP4 output.
    """

    container: ContainerOptions = Field(default_factory=ContainerOptions)
    video: VideoOptions = Field(default_factory=VideoOptions)
    audio: AudioOptions = Field(default_factory=AudioOptions)
    video_validation: VideoValidationOptions = Field(default_factory=VideoValidationOptions.none)
    audio_validation: AudioValidationOptions = Field(default_factory=AudioValidationOptions.none)
    validate_all_streams: Annotated[bool, Parameter(group=VALIDATION_GROUP)] = Field(
        default=True,
        description="Decode every stream to measure its real duration and catch corrupt data.",
    )
    require_changes: Annotated[bool, Parameter(group=VALIDATION_GROUP)] = Field(
        default=False,
        description="Fail instead of returning the source unchanged.",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    def replace(self, **updates: Any) -> ProcessingPolicy:
        """Return a validated copy with ``updates`` applied.

        Nested sections accept a mapping of field overrides, e.g.
        ``policy.replace(video={"max_width": 1280})``.
        """
        data = self.model_dump()
        for key, value in updates.items():
            current = data.get(key)
            if isinstance(value, dict) and isinstance(current, dict):
                data[key] = {**current, **value}
            elif isinstance(value, BaseModel):
                data[key] = value.model_dump()
            else:
                data[key] = value
        return type(self).model_validate(data)

    @classmethod
    def standardized_h264_aac_mp4(cls) -> ProcessingPolicy:
        """Return the standardized H.264 video, AAC audio, MP4 policy."""
        return cls()

    @classmethod
    def standardized_hevc_aac_mp4(cls) -> ProcessingPolicy:
        """Return the standardized HEVC (``hvc1``) video, AAC audio, MP4 policy."""
        return cls(video=VideoOptions(result_codecs=(VideoCodec.HEVC,)))

    @classmethod
    def preserve(cls) -> ProcessingPolicy:
        """Return a policy that keeps the original file whenever possible."""
        return cls(
            container=ContainerOptions(
                result_formats=ALL_SOURCE_FORMATS,
                force_progressive_download=False,
                metadata=MetadataMode.NONE,
                preserve_unrecognized=True,
            ),
            video=VideoOptions(
                result_codecs=ALL_SOURCE_VIDEO_CODECS,
                reencode=ReencodeMode.AVOID_REENCODING,
                fps_limit=None,
                max_bits=BitDepth.PRESERVE,
                max_chroma=ChromaSubsampling.PRESERVE,
                remap_hdr=False,
                force_square_pixels=False,
                force_progressive=False,
            ),
            audio=AudioOptions(
                result_codecs=ALL_SOURCE_AUDIO_CODECS,
                reencode=ReencodeMode.AVOID_REENCODING,
                max_channels=AudioChannels.PRESERVE,
                max_sample_rate=AudioSampleRate.PRESERVE,
            ),
        )


__all__ = ["ProcessingPolicy"]
