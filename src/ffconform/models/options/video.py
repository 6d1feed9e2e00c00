"""Video option models."""

from __future__ import annotations

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ffconform.models.catalog import ALL_SOURCE_VIDEO_CODECS, VideoCodec
from ffconform.models.types import (
    BitDepth,
    ChromaSubsampling,
    CompressionLevel,
    FpsMode,
    ReencodeMode,
    VideoQuality,
)

from .allow_lists import check_allow_list
from .defaults import (
    DEFAULT_FPS_LIMIT,
    DEFAULT_MAX_BITS,
    DEFAULT_MAX_CHROMA,
    DEFAULT_REENCODE_MODE,
    DEFAULT_RESULT_VIDEO_CODECS,
)
from .groups import VIDEO_GROUP


@Parameter(group=VIDEO_GROUP)
class VideoOptions(BaseModel):
    """Options for video stream handling."""

    source_codecs: tuple[VideoCodec, ...] = Field(
        ALL_SOURCE_VIDEO_CODECS,
        description="Video codecs accepted as input.",
    )
    result_codecs: tuple[VideoCodec, ...] = Field(
        DEFAULT_RESULT_VIDEO_CODECS,
        description="Video codecs accepted as output. The first one is used when re-encoding.",
    )
    reencode: ReencodeMode = Field(
        DEFAULT_REENCODE_MODE,
        description="When compliant video streams are re-encoded.",
    )
    quality: VideoQuality = Field(VideoQuality.MEDIUM, description="Quality of re-encoded video.")
    compression: CompressionLevel = Field(
        CompressionLevel.MEDIUM,
        description="Encoder effort spent on compression.",
    )
    max_width: int | None = Field(None, gt=0, description="Maximum output width in pixels.")
    max_height: int | None = Field(None, gt=0, description="Maximum output height in pixels.")
    fps_limit: int | None = Field(
        DEFAULT_FPS_LIMIT,
        gt=0,
        description=f"Maximum output frame rate. [default: {DEFAULT_FPS_LIMIT}]",
    )
    fps_mode: FpsMode = Field(
        FpsMode.INTEGER_DIVISION,
        description="How an over-limit frame rate is reduced.",
    )
    max_bits: BitDepth = Field(DEFAULT_MAX_BITS, description="Maximum bits per channel.")
    max_chroma: ChromaSubsampling = Field(DEFAULT_MAX_CHROMA, description="Maximum chroma subsampling.")
    remap_hdr: bool = Field(default=True, description="Tonemap HDR video to SDR BT.709.")
    force_square_pixels: bool = Field(default=True, description="Resample non-square pixels to square.")
    force_progressive: bool = Field(default=True, description="De-interlace interlaced video.")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("source_codecs")
    @classmethod
    def _check_source_codecs(cls, v: tuple[VideoCodec, ...]) -> tuple[VideoCodec, ...]:
        return check_allow_list(v, "Codecs")

    @field_validator("result_codecs")
    @classmethod
    def _check_result_codecs(cls, v: tuple[VideoCodec, ...]) -> tuple[VideoCodec, ...]:
        return check_allow_list(
            v,
            "Codecs",
            first_ok=lambda c: c.info.encoder is not None,
            first_requirement="The first codec in the list must support encoding.",
        )

    @property
    def encode_codec(self) -> VideoCodec:
        """Codec produced when a video stream is re-encoded."""
        return self.result_codecs[0]


__all__ = ["VideoOptions"]
