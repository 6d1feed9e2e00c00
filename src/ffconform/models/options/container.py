"""Container and metadata option models."""

from __future__ import annotations

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ffconform.models.catalog import ALL_SOURCE_FORMATS, ContainerFormat
from ffconform.models.types import MetadataMode

from .allow_lists import check_allow_list
from .defaults import DEFAULT_METADATA_MODE, DEFAULT_RESULT_FORMATS
from .groups import CONTAINER_GROUP


@Parameter(group=CONTAINER_GROUP)
class ContainerOptions(BaseModel):
    """Allowed containers and metadata handling."""

    source_formats: tuple[ContainerFormat, ...] = Field(
        ALL_SOURCE_FORMATS,
        description="Container formats accepted as input.",
    )
    result_formats: tuple[ContainerFormat, ...] = Field(
        DEFAULT_RESULT_FORMATS,
        description="Container formats accepted as output. The first one is used when rewriting.",
    )
    force_progressive_download: bool = Field(
        default=True,
        description="Move the index to the front of the file for progressive playback.",
    )
    metadata: MetadataMode = Field(
        DEFAULT_METADATA_MODE,
        description="Metadata handling: none, thumbnail-only, preferred or required.",
    )
    preserve_unrecognized: bool = Field(
        default=False,
        description="Keep subtitle, data and attachment streams when the output container accepts them.",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("source_formats")
    @classmethod
    def _check_source_formats(cls, v: tuple[ContainerFormat, ...]) -> tuple[ContainerFormat, ...]:
        return check_allow_list(v, "Formats")

    @field_validator("result_formats")
    @classmethod
    def _check_result_formats(cls, v: tuple[ContainerFormat, ...]) -> tuple[ContainerFormat, ...]:
        return check_allow_list(
            v,
            "Formats",
            first_ok=lambda f: f.info.writable,
            first_requirement="The first format in the list must support writing.",
        )

    @property
    def output_format(self) -> ContainerFormat:
        """Format written whenever the source has to be rewritten."""
        return self.result_formats[0]


__all__ = ["ContainerOptions"]
