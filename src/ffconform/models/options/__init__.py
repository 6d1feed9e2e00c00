"""Options package exports."""

from __future__ import annotations

from .audio import AudioOptions
from .container import ContainerOptions
from .defaults import OUTPUT_SUFFIX
from .options import Options, PolicyPreset
from .policy import ProcessingPolicy
from .runtime import RuntimeOptions
from .validation import AudioValidationOptions, VideoValidationOptions
from .video import VideoOptions

__all__ = [
    "OUTPUT_SUFFIX",
    "AudioOptions",
    "AudioValidationOptions",
    "ContainerOptions",
    "Options",
    "PolicyPreset",
    "ProcessingPolicy",
    "RuntimeOptions",
    "VideoOptions",
    "VideoValidationOptions",
]
