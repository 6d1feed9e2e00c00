"""Tests for option models and policy presets."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ffconform.models import Options
from ffconform.models.catalog import ALL_SOURCE_FORMATS, AudioCodec, ContainerFormat, VideoCodec
from ffconform.models.options import (
    AudioOptions,
    AudioValidationOptions,
    ContainerOptions,
    PolicyPreset,
    ProcessingPolicy,
    VideoOptions,
    VideoValidationOptions,
)
from ffconform.models.types import BitDepth, MetadataMode, ReencodeMode


def test_default_policy_is_standardized_h264() -> None:
    """Defaults describe H.264/AAC in MP4 with faststart."""
    policy = ProcessingPolicy()
    assert policy.container.result_formats == (ContainerFormat.MP4,)
    assert policy.video.result_codecs == (VideoCodec.H264,)
    assert policy.audio.result_codecs == (AudioCodec.AAC,)
    assert policy.video.reencode is ReencodeMode.ALWAYS
    assert policy.video.max_bits is BitDepth.BITS_8
    assert policy.container.metadata is MetadataMode.THUMBNAIL_ONLY
    assert policy.container.force_progressive_download
    assert policy.validate_all_streams
    assert not policy.require_changes


def test_presets() -> None:
    """Named presets build the documented policies."""
    assert PolicyPreset.STANDARDIZED_H264.build() == ProcessingPolicy()
    hevc = PolicyPreset.STANDARDIZED_HEVC.build()
    assert hevc.video.encode_codec is VideoCodec.HEVC
    preserve = PolicyPreset.PRESERVE.build()
    assert preserve.container.result_formats == ALL_SOURCE_FORMATS
    assert preserve.video.reencode is ReencodeMode.AVOID_REENCODING
    assert preserve.container.preserve_unrecognized


def test_policy_is_frozen() -> None:
    """Policies cannot be mutated in place."""
    policy = ProcessingPolicy()
    with pytest.raises(ValidationError):
        policy.require_changes = True  # type: ignore[misc]


def test_replace_merges_nested_sections() -> None:
    """``replace`` overrides single fields of nested sections."""
    policy = ProcessingPolicy.standardized_hevc_aac_mp4().replace(video={"max_width": 1280}, require_changes=True)
    assert policy.video.max_width == 1280
    assert policy.video.result_codecs == (VideoCodec.HEVC,)
    assert policy.require_changes


def test_replace_validates() -> None:
    """Invalid replacements are rejected."""
    with pytest.raises(ValidationError):
        ProcessingPolicy().replace(video={"max_width": 0})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"result_formats": ()},
        {"result_formats": (ContainerFormat.MP4, ContainerFormat.MP4)},
        {"result_formats": (ContainerFormat.MKV, ContainerFormat.MP4)},
        {"source_formats": ()},
    ],
)
def test_container_allow_lists(kwargs: dict) -> None:
    """Allow-lists must be non-empty, unique, and start with a writable format."""
    with pytest.raises(ValidationError):
        ContainerOptions(**kwargs)


def test_result_codecs_must_start_encodable() -> None:
    """The first result codec is the one re-encodes produce."""
    with pytest.raises(ValidationError, match="must support encoding"):
        VideoOptions(result_codecs=(VideoCodec.VP9, VideoCodec.H264))
    with pytest.raises(ValidationError, match="must support encoding"):
        AudioOptions(result_codecs=(AudioCodec.MP3,))
    assert VideoOptions(result_codecs=(VideoCodec.HEVC, VideoCodec.HEVC_ANY_TAG)).encode_codec is VideoCodec.HEVC


@pytest.mark.parametrize(
    ("value", "seconds"),
    [
        ("90s", 90.0),
        ("1m20s", 80.0),
        ("00:01:30", 90.0),
        (45, 45.0),
    ],
)
def test_length_accepts_timespans(value: object, seconds: float) -> None:
    """Duration limits accept seconds or timespan strings."""
    assert VideoValidationOptions(max_length=value).max_length == seconds  # type: ignore[arg-type]


def test_length_rejects_invalid_format() -> None:
    """Reject invalid time strings."""
    with pytest.raises(ValidationError):
        AudioValidationOptions(max_length="notatime")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_length": 10, "max_length": 5},
        {"min_streams": 2, "max_streams": 1},
        {"min_width": 1920, "max_width": 1280},
        {"min_pixels": 100, "max_pixels": 10},
    ],
)
def test_min_cannot_exceed_max(kwargs: dict) -> None:
    """Minimums above maximums are rejected."""
    with pytest.raises(ValidationError, match="cannot be greater than"):
        VideoValidationOptions(**kwargs)


def test_validation_presets() -> None:
    """Validation presets set only stream counts."""
    assert (VideoValidationOptions.standard().min_streams, VideoValidationOptions.standard().max_streams) == (1, 1)
    assert VideoValidationOptions.none().max_streams is None
    assert AudioValidationOptions.standard_audio().min_streams == 1
    assert AudioValidationOptions.optional_standard_audio().max_streams == 1
    assert AudioValidationOptions.none().max_streams is None


def test_options_source_must_exist(tmp_path: Path) -> None:
    """Options reject sources that are not files."""
    with pytest.raises(ValidationError):
        Options(source=tmp_path / "missing.mp4")


def test_resolved_policy_uses_preset(tmp_path: Path) -> None:
    """Without explicit policy fields the preset is used as is."""
    src = tmp_path / "a.mp4"
    src.touch()
    opts = Options(source=src, preset=PolicyPreset.PRESERVE)
    assert opts.resolved_policy() == ProcessingPolicy.preserve()


def test_resolved_policy_applies_overrides(tmp_path: Path) -> None:
    """Explicit policy fields override the preset."""
    src = tmp_path / "a.mp4"
    src.touch()
    opts = Options(
        source=src,
        preset=PolicyPreset.PRESERVE,
        policy=ProcessingPolicy(video=VideoOptions(max_width=640), require_changes=True),
    )
    policy = opts.resolved_policy()
    assert policy.video.max_width == 640
    assert policy.require_changes
    assert policy.video.reencode is ReencodeMode.AVOID_REENCODING
    assert policy.container.result_formats == ALL_SOURCE_FORMATS
