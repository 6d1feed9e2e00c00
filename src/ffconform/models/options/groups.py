"""Shared Cyclopts groups for option models."""

from __future__ import annotations

from cyclopts import Group

SOURCE_GROUP = Group.create_ordered("Source")
OUTPUT_GROUP = Group.create_ordered("Output")
CONTAINER_GROUP = Group.create_ordered("Container")
VIDEO_GROUP = Group.create_ordered("Video")
AUDIO_GROUP = Group.create_ordered("Audio")
VIDEO_VALIDATION_GROUP = Group.create_ordered("Video Validation")
AUDIO_VALIDATION_GROUP = Group.create_ordered("Audio Validation")
VALIDATION_GROUP = Group.create_ordered("Validation")
RUNTIME_GROUP = Group.create_ordered("Runtime")

__all__ = [
    "AUDIO_GROUP",
    "AUDIO_VALIDATION_GROUP",
    "CONTAINER_GROUP",
    "OUTPUT_GROUP",
    "RUNTIME_GROUP",
    "SOURCE_GROUP",
    "VALIDATION_GROUP",
    "VIDEO_GROUP",
    "VIDEO_VALIDATION_GROUP",
]
