"""Tests for codec, container and pixel format catalogs."""

import pytest

from ffconform.models.catalog import (
    AudioCodec,
    ContainerFormat,
    VideoCodec,
    identify_container,
    is_sdr,
    match_audio_codec,
    match_video_codec,
    match_video_codec_by_name,
    pixel_format_info,
)

MP4_FAMILY = "mov,mp4,m4a,3gp,3g2,mj2"


def test_tag_specific_codec_matches_only_its_tag() -> None:
    """The ``hvc1`` HEVC identifier rejects ``hev1`` streams."""
    assert VideoCodec.HEVC.matches("hevc", "hvc1")
    assert not VideoCodec.HEVC.matches("hevc", "hev1")
    assert not VideoCodec.HEVC.matches("hevc", None)


def test_tag_agnostic_codec_matches_any_tag() -> None:
    """Tag-agnostic identifiers match whatever tag the stream carries."""
    assert VideoCodec.HEVC_ANY_TAG.matches("hevc", "hev1")
    assert VideoCodec.HEVC_ANY_TAG.matches("hevc", None)
    assert VideoCodec.H264.matches("h264", "avc1")


def test_match_video_codec_respects_list_order() -> None:
    """The first matching entry of the allow-list wins."""
    codecs = (VideoCodec.HEVC, VideoCodec.HEVC_ANY_TAG)
    assert match_video_codec(codecs, "hevc", "hvc1") is VideoCodec.HEVC
    assert match_video_codec(codecs, "hevc", "hev1") is VideoCodec.HEVC_ANY_TAG
    assert match_video_codec((VideoCodec.HEVC,), "hevc", "hev1") is None
    assert match_video_codec_by_name((VideoCodec.HEVC,), "hevc") is VideoCodec.HEVC


@pytest.mark.parametrize(
    ("profile", "expected"),
    [
        ("LC", AudioCodec.AAC),
        ("HE-AAC", AudioCodec.HE_AAC),
        ("Main", None),
    ],
)
def test_audio_profile_must_match_exactly(profile: str, expected: AudioCodec | None) -> None:
    """AAC entries only match their exact profile."""
    assert match_audio_codec((AudioCodec.AAC, AudioCodec.HE_AAC), "aac", profile) is expected


def test_audio_without_profile_matches_name() -> None:
    """Entries without a profile ignore the stream's profile."""
    assert match_audio_codec(tuple(AudioCodec), "mp3", "Layer 3") is AudioCodec.MP3


def test_identify_container_prefers_extension() -> None:
    """Among formats sharing a demuxer, the one owning the extension wins."""
    formats = tuple(ContainerFormat)
    assert identify_container(formats, MP4_FAMILY, ".mov") is ContainerFormat.MOV
    assert identify_container(formats, MP4_FAMILY, ".M4V") is ContainerFormat.MP4
    assert identify_container(formats, MP4_FAMILY, ".mkv") is ContainerFormat.MP4
    assert identify_container(formats, "matroska,webm", ".webm") is ContainerFormat.WEBM
    assert identify_container(formats, "flv", ".flv") is None


def test_only_mp4_is_writable() -> None:
    """MP4 is the single writable container and lists ``.mp4`` first."""
    assert [f for f in ContainerFormat if f.info.writable] == [ContainerFormat.MP4]
    assert ContainerFormat.MP4.extension == ".mp4"


def test_pixel_format_table() -> None:
    """Known pixel formats report bits and chroma; unknown ones return None."""
    info = pixel_format_info("yuv422p10le")
    assert info is not None
    assert (info.bits, info.chroma, info.is_standard) == (10, 422, True)
    gbr = pixel_format_info("gbrp")
    assert gbr is not None
    assert not gbr.is_standard
    assert pixel_format_info("nv12") is None
    assert pixel_format_info(None) is None


@pytest.mark.parametrize(
    ("transfer", "primaries", "space", "expected"),
    [
        ("bt709", "bt709", "bt709", True),
        (None, None, None, True),
        ("smpte2084", "bt2020", "bt2020nc", False),
        ("arib-std-b67", None, None, False),
        ("bt709", "bt2020", None, False),
    ],
)
def test_is_sdr(transfer: str | None, primaries: str | None, space: str | None, expected: bool) -> None:
    """Unknown color properties count as SDR, unrecognized ones as HDR."""
    assert is_sdr(transfer, primaries, space) is expected
