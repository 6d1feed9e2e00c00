"""Tests for ffmpeg argument construction."""

from __future__ import annotations

from pathlib import Path

from ffconform.backend.builder import audio, build_extract, build_main, build_mix, build_validation, video
from ffconform.backend.builder.video import TONEMAP_ZSCALE
from ffconform.models.catalog import ContainerFormat
from ffconform.models.ffprobe import Rational, StreamDescriptor
from ffconform.models.plan import AudioEncodeParams, EncodingPlan, StreamDecision, VideoEncodeParams
from ffconform.models.types import Encoder, StreamAction, StreamKind

SOURCE = Path("/in/clip.mkv")
OUTPUT = Path("/out/clip.mp4")
ENCODED = Path("/tmp/encoded.mp4")

PROGRESS = ("-progress", "pipe:1", "-nostats")
TRAILER = ("-f", "mp4", "-copy_unknown", "-xerror", "-hide_banner", "-y")
FASTSTART = ("-movflags", "+faststart+use_metadata_tags")

H264_PARAMS = VideoEncodeParams(
    encoder=Encoder.X264,
    pixel_format="yuv420p",
    profile="high",
    crf=23,
    preset="medium",
)
AAC_PARAMS = AudioEncodeParams(encoder=Encoder.AAC, channels=2, bitrate=256_000)

VIDEO = StreamDescriptor(index=0, kind=StreamKind.VIDEO, codec_name="h264")
AUDIO = StreamDescriptor(index=1, kind=StreamKind.AUDIO, codec_name="aac", language="eng")
SUBTITLE = StreamDescriptor(index=2, kind=StreamKind.SUBTITLE, codec_name="subrip")


def make_plan(*decisions: StreamDecision, strip: bool = False, faststart: bool = True) -> EncodingPlan:
    return EncodingPlan(
        source=SOURCE,
        source_format=ContainerFormat.MKV,
        output_format=ContainerFormat.MP4,
        decisions=decisions,
        rewrite=True,
        strip_global_metadata=strip,
        strip_chapters=strip,
        faststart=faststart,
    )


def copy(stream: StreamDescriptor, index: int = 0, **kwargs: object) -> StreamDecision:
    return StreamDecision(stream, StreamAction.COPY, output_index=index, **kwargs)  # type: ignore[arg-type]


def test_build_main_remux() -> None:
    """A copy-only plan maps streams and metadata from the source."""
    plan = make_plan(copy(VIDEO), copy(AUDIO, language="eng"))
    assert build_main(plan, OUTPUT) == (
        "-i",
        str(SOURCE),
        *PROGRESS,
        "-map_metadata:g",
        "0:g",
        "-map",
        "0:0",
        "-map",
        "0:1",
        "-map_chapters",
        "0",
        "-c",
        "copy",
        "-map_metadata:s:0",
        "0:s:0",
        "-map_metadata:s:1",
        "0:s:1",
        "-metadata:s:1",
        "language=eng",
        *FASTSTART,
        *TRAILER,
        str(OUTPUT),
    )


def test_build_main_skips_omitted_streams() -> None:
    """Omitted streams are not mapped and do not shift output positions."""
    plan = make_plan(copy(VIDEO), StreamDecision(SUBTITLE, StreamAction.OMIT), copy(AUDIO), faststart=False)
    args = build_main(plan, OUTPUT)
    assert "0:2" not in args
    assert args[args.index("-map_metadata:s:1") + 1] == "0:s:1"
    assert ("-movflags", "+use_metadata_tags") == args[-9:-7]


def test_build_main_strips_metadata_but_keeps_language() -> None:
    """Stripping drops global, chapter and stream metadata but rewrites the language."""
    plan = make_plan(copy(VIDEO, map_metadata=False), copy(AUDIO, map_metadata=False, language="eng"), strip=True)
    args = build_main(plan, OUTPUT)
    assert args[args.index("-map_metadata:g") + 1] == "-1"
    assert args[args.index("-map_chapters") + 1] == "-1"
    assert args[args.index("-map_metadata:s:0") + 1] == "-1"
    assert args[args.index("-map_metadata:s:1") + 1] == "-1"
    assert args[args.index("-metadata:s:1") + 1] == "language=eng"


def test_build_main_reencode_and_retag() -> None:
    """Re-encoded streams get encoder args; remuxed video gets its new tag."""
    plan = make_plan(
        StreamDecision(VIDEO, StreamAction.REMUX, output_index=0, retag="hvc1"),
        StreamDecision(AUDIO, StreamAction.REENCODE, output_index=0, audio=AAC_PARAMS),
        StreamDecision(SUBTITLE, StreamAction.REENCODE, output_index=0, subtitle_codec="mov_text"),
    )
    args = build_main(plan, OUTPUT)
    start = args.index("copy") + 1
    assert args[start : start + 2] == ("-tag:v:0", "hvc1")
    assert ("-c:a:0", "aac", "-b:a:0", "256000") == args[args.index("-c:a:0") : args.index("-c:a:0") + 4]
    assert args[args.index("-c:s:0") + 1] == "mov_text"


def test_video_filters_default() -> None:
    """Every re-encode converts to full range."""
    assert video.filters(H264_PARAMS) == ("scale=out_range=pc",)


def test_video_filters_order() -> None:
    """De-interlace first, then color, frame rate, scaling and SAR."""
    params = VideoEncodeParams(
        encoder=Encoder.X264,
        pixel_format="yuv420p",
        profile="high",
        crf=23,
        preset="medium",
        width=1280,
        height=720,
        fps=Rational(120, 2),
        tonemap=True,
        deinterlace=True,
        square_pixels=True,
    )
    assert video.filters(params) == ("bwdif", TONEMAP_ZSCALE, "fps=60", "scale=w=1280:h=720", "setsar=1")


def test_video_filters_fractional_fps() -> None:
    """Fractional frame rates are written as a ratio."""
    params = VideoEncodeParams(
        encoder=Encoder.X264,
        pixel_format="yuv420p",
        profile="high",
        crf=23,
        preset="medium",
        fps=Rational(30000, 1001),
    )
    assert video.filters(params)[-1] == "fps=30000/1001"


def test_video_encode_h264() -> None:
    """H.264 args carry preset, quality, profile, pixel format and range."""
    assert video.encode(H264_PARAMS, 0) == (
        "-c:v:0",
        "libx264",
        "-preset:v:0",
        "medium",
        "-crf:v:0",
        "23",
        "-profile:v:0",
        "high",
        "-pix_fmt:v:0",
        "yuv420p",
        "-color_range:v:0",
        "pc",
        "-filter:v:0",
        "scale=out_range=pc",
    )


def test_video_encode_hevc_tonemap() -> None:
    """HEVC output is tagged ``hvc1``; tonemapped output declares BT.709."""
    params = VideoEncodeParams(
        encoder=Encoder.X265,
        pixel_format="yuv420p",
        profile="main",
        crf=28,
        preset="medium",
        tonemap=True,
        tag="hvc1",
    )
    args = video.encode(params, 1)
    assert args[:2] == ("-c:v:1", "libx265")
    assert args[-6:] == (
        "-colorspace:v:1",
        "bt709",
        "-x265-params",
        "log-level=error",
        "-tag:v:1",
        "hvc1",
    )
    assert args[args.index("-color_trc:v:1") + 1] == "bt709"
    assert args[args.index("-color_primaries:v:1") + 1] == "bt709"


def test_audio_encode_fdk() -> None:
    """libfdk_aac uses the LC profile, a VBR mode and an optional cutoff."""
    params = AudioEncodeParams(encoder=Encoder.FDK_AAC, vbr=4, cutoff=20000)
    assert audio.encode(params, 0) == (
        "-c:a:0",
        "libfdk_aac",
        "-profile:a:0",
        "aac_low",
        "-vbr:a:0",
        "4",
        "-cutoff:a:0",
        "20000",
    )


def test_audio_encode_native() -> None:
    """The native encoder uses a bitrate plus channel and rate limits."""
    params = AudioEncodeParams(encoder=Encoder.AAC, channels=1, sample_rate=48000, bitrate=128_000)
    assert audio.encode(params, 1) == (
        "-c:a:1",
        "aac",
        "-b:a:1",
        "128000",
        "-ac:a:1",
        "1",
        "-ar:a:1",
        "48000",
    )


def test_build_validation() -> None:
    """The validation pass decodes everything to the null muxer."""
    assert build_validation(SOURCE) == (
        "-i",
        str(SOURCE),
        *PROGRESS,
        "-ignore_unknown",
        "-xerror",
        "-hide_banner",
        "-f",
        "null",
        "-",
    )


def test_build_extract() -> None:
    """Extraction copies one stream with all metadata removed."""
    out = Path("/tmp/candidate.m4a")
    assert build_extract(SOURCE, 1, out) == (
        "-i",
        str(SOURCE),
        "-map",
        "0:1",
        "-c",
        "copy",
        "-map_metadata",
        "-1",
        "-map_chapters",
        "-1",
        "-copy_unknown",
        "-xerror",
        "-hide_banner",
        "-y",
        str(out),
    )


def test_build_mix() -> None:
    """The mix pass takes chosen source streams from input 0, the rest from input 1."""
    plan = make_plan(
        StreamDecision(VIDEO, StreamAction.REMUX, output_index=0, retag="hvc1"),
        StreamDecision(AUDIO, StreamAction.REENCODE, output_index=0, audio=AAC_PARAMS),
    )
    assert build_mix(plan, ENCODED, OUTPUT, {0: True, 1: False}) == (
        "-i",
        str(SOURCE),
        "-i",
        str(ENCODED),
        *PROGRESS,
        "-map_metadata:g",
        "1:g",
        "-map",
        "0:0",
        "-map",
        "1:1",
        "-map_chapters",
        "1",
        "-c",
        "copy",
        "-tag:v:0",
        "hvc1",
        "-map_metadata:s:0",
        "0:s:0",
        "-map_metadata:s:1",
        "1:s:1",
        *FASTSTART,
        *TRAILER,
        str(OUTPUT),
    )
