"""Audio option models."""

from __future__ import annotations

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ffconform.models.catalog import ALL_SOURCE_AUDIO_CODECS, AudioCodec
from ffconform.models.types import AudioChannels, AudioQuality, AudioSampleRate, ReencodeMode

from .allow_lists import check_allow_list
from .defaults import (
    DEFAULT_MAX_CHANNELS,
    DEFAULT_MAX_SAMPLE_RATE,
    DEFAULT_REENCODE_MODE,
    DEFAULT_RESULT_AUDIO_CODECS,
)
from .groups import AUDIO_GROUP


@Parameter(group=AUDIO_GROUP)
class AudioOptions(BaseModel):
    """Options for audio stream handling."""

    source_codecs: tuple[AudioCodec, ...] = Field(
        ALL_SOURCE_AUDIO_CODECS,
        description="Audio codecs accepted as input.",
    )
    result_codecs: tuple[AudioCodec, ...] = Field(
        DEFAULT_RESULT_AUDIO_CODECS,
        description="Audio codecs accepted as output. The first one is used when re-encoding.",
    )
    reencode: ReencodeMode = Field(
        DEFAULT_REENCODE_MODE,
        description="When compliant audio streams are re-encoded.",
    )
    quality: AudioQuality = Field(AudioQuality.MEDIUM, description="Quality of re-encoded audio.")
    max_channels: AudioChannels = Field(DEFAULT_MAX_CHANNELS, description="Maximum number of channels.")
    max_sample_rate: AudioSampleRate = Field(DEFAULT_MAX_SAMPLE_RATE, description="Maximum sample rate.")
    remove: bool = Field(default=False, description="Drop all audio streams.")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("source_codecs")
    @classmethod
    def _check_source_codecs(cls, v: tuple[AudioCodec, ...]) -> tuple[AudioCodec, ...]:
        return check_allow_list(v, "Codecs")

    @field_validator("result_codecs")
    @classmethod
    def _check_result_codecs(cls, v: tuple[AudioCodec, ...]) -> tuple[AudioCodec, ...]:
        return check_allow_list(
            v,
            "Codecs",
            first_ok=lambda c: c.info.encodable,
            first_requirement="The first codec in the list must support encoding.",
        )


__all__ = ["AudioOptions"]
