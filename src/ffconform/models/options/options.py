"""Command-line option model wrapping the processing policy."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import OUTPUT_SUFFIX
from .groups import OUTPUT_GROUP, SOURCE_GROUP
from .policy import ProcessingPolicy
from .runtime import RuntimeOptions


class PolicyPreset(str, Enum):
    """Named starting points for a policy."""

    STANDARDIZED_H264 = "standardized-h264"
    STANDARDIZED_HEVC = "standardized-hevc"
    PRESERVE = "preserve"

    def build(self) -> ProcessingPolicy:
        """Return the policy this preset names."""
        return {
            PolicyPreset.STANDARDIZED_H264: ProcessingPolicy.standardized_h264_aac_mp4,
            PolicyPreset.STANDARDIZED_HEVC: ProcessingPolicy.standardized_hevc_aac_mp4,
            PolicyPreset.PRESERVE: ProcessingPolicy.preserve,
        }[self]()


@Parameter(name="*")
class Options(BaseModel):
    """Options for the ffconform command."""

    source: Annotated[
        Path,
        Parameter(group=SOURCE_GROUP),
    ] = Field(description="Path to the source media file.")
    output: Annotated[
        Path | None,
        Parameter(group=OUTPUT_GROUP),
    ] = Field(
        default=None,
        description=f"Path for the output file. Defaults to appending '{OUTPUT_SUFFIX}' to the source name.",
    )
    preset: Annotated[
        PolicyPreset,
        Parameter(group=OUTPUT_GROUP),
    ] = Field(
        PolicyPreset.STANDARDIZED_H264,
        description="Policy preset; explicitly passed policy flags override it.",
    )
    policy: ProcessingPolicy = Field(default_factory=ProcessingPolicy)
    runtime: RuntimeOptions = Field(default_factory=RuntimeOptions)

    model_config = ConfigDict(extra="forbid")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: Path) -> Path:
        """Ensure the source exists."""
        path = Path(v).expanduser().absolute()
        if not path.is_file():
            raise ValueError(f"Input path is not a file: {path}")
        return path

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: Path | None) -> Path | None:
        """Normalize output path; creation happens later when processing."""
        if v is None:
            return None
        return Path(v).expanduser().absolute()

    def resolved_policy(self) -> ProcessingPolicy:
        """Return the preset policy with explicitly set policy fields applied."""
        base = self.preset.build()
        if "policy" not in self.model_fields_set:
            return base
        return base.replace(**self.policy.model_dump(exclude_unset=True))


__all__ = ["Options", "PolicyPreset"]
