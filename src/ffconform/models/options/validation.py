"""Source validation option models."""

from __future__ import annotations

from typing import Self

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ffconform.tools.helpers import parse_timespan_to_seconds

from .allow_lists import check_min_max
from .groups import AUDIO_VALIDATION_GROUP, VIDEO_VALIDATION_GROUP

_LENGTH_DESC = "{} stream duration. Examples: '90s', '1m20s', '00:01:30', or seconds."


def _parse_length(v: object) -> object:
    """Accept seconds or a timespan string for duration limits."""
    if isinstance(v, str):
        try:
            return parse_timespan_to_seconds(v)
        except ValueError as exc:
            raise ValueError(f"Invalid time format: {v}") from exc
    return v


@Parameter(group=VIDEO_VALIDATION_GROUP)
class VideoValidationOptions(BaseModel):
    """Limits a source's video streams must satisfy.

    Stream counts default to exactly one video stream; every other limit is
    unset.
    """

    max_length: float | None = Field(None, gt=0, description=_LENGTH_DESC.format("Maximum video"))
    min_length: float | None = Field(None, ge=0, description=_LENGTH_DESC.format("Minimum video"))
    max_streams: int | None = Field(1, ge=0, description="Maximum number of video streams.")
    min_streams: int | None = Field(1, ge=0, description="Minimum number of video streams.")
    max_width: int | None = Field(None, gt=0, description="Maximum source width in pixels.")
    max_height: int | None = Field(None, gt=0, description="Maximum source height in pixels.")
    max_pixels: int | None = Field(None, gt=0, description="Maximum source pixel count (width x height).")
    min_width: int | None = Field(None, gt=0, description="Minimum source width in pixels.")
    min_height: int | None = Field(None, gt=0, description="Minimum source height in pixels.")
    min_pixels: int | None = Field(None, gt=0, description="Minimum source pixel count (width x height).")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("max_length", "min_length", mode="before")
    @classmethod
    def _parse_lengths(cls, v: object) -> object:
        return _parse_length(v)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        check_min_max(self.min_length, self.max_length, "Length")
        check_min_max(self.min_streams, self.max_streams, "Streams")
        check_min_max(self.min_width, self.max_width, "Width")
        check_min_max(self.min_height, self.max_height, "Height")
        check_min_max(self.min_pixels, self.max_pixels, "Pixels")
        return self

    @classmethod
    def none(cls) -> VideoValidationOptions:
        """Return options that place no limits on video streams."""
        return cls(max_streams=None, min_streams=None)

    @classmethod
    def standard(cls) -> VideoValidationOptions:
        """Return options requiring exactly one video stream."""
        return cls()


@Parameter(group=AUDIO_VALIDATION_GROUP)
class AudioValidationOptions(BaseModel):
    """Limits a source's audio streams must satisfy.

    By default at most one audio stream is allowed and none is required.
    """

    max_length: float | None = Field(None, gt=0, description=_LENGTH_DESC.format("Maximum audio"))
    min_length: float | None = Field(None, ge=0, description=_LENGTH_DESC.format("Minimum audio"))
    max_streams: int | None = Field(1, ge=0, description="Maximum number of audio streams.")
    min_streams: int | None = Field(None, ge=0, description="Minimum number of audio streams.")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("max_length", "min_length", mode="before")
    @classmethod
    def _parse_lengths(cls, v: object) -> object:
        return _parse_length(v)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        check_min_max(self.min_length, self.max_length, "Length")
        check_min_max(self.min_streams, self.max_streams, "Streams")
        return self

    @classmethod
    def none(cls) -> AudioValidationOptions:
        """Return options that place no limits on audio streams."""
        return cls(max_streams=None)

    @classmethod
    def standard_audio(cls) -> AudioValidationOptions:
        """Return options requiring exactly one audio stream."""
        return cls(min_streams=1)

    @classmethod
    def optional_standard_audio(cls) -> AudioValidationOptions:
        """Return options allowing at most one audio stream."""
        return cls()


__all__ = ["AudioValidationOptions", "VideoValidationOptions"]
