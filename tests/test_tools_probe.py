"""Tests for ffprobe helper caching and inventory parsing."""

from __future__ import annotations

import importlib
import json
import os
import subprocess
import time
from typing import TYPE_CHECKING, Never

import pytest
from diskcache import Cache

from ffconform.errors import ProbeFailure
from ffconform.models.ffprobe import Rational
from ffconform.models.types import StreamKind
from ffconform.tools import probe

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

probe_module = importlib.import_module("ffconform.tools.probe")

SAMPLE = {
    "format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "duration": "10.010000"},
    "streams": [
        {
            "index": 0,
            "codec_type": "video",
            "codec_name": "hevc",
            "codec_tag_string": "hev1",
            "profile": "Main 10",
            "width": 3840,
            "height": 2160,
            "sample_aspect_ratio": "1:1",
            "pix_fmt": "yuv420p10le",
            "bits_per_raw_sample": "10",
            "color_transfer": "smpte2084",
            "color_primaries": "bt2020",
            "field_order": "progressive",
            "r_frame_rate": "60000/1001",
            "duration": "10.010000",
            "disposition": {"default": 1, "attached_pic": 0},
            "tags": {"language": "eng"},
        },
        {
            "index": 1,
            "codec_type": "audio",
            "codec_name": "aac",
            "profile": "LC",
            "channels": 6,
            "channel_layout": "5.1",
            "sample_rate": "48000",
            "tags": {"language": "und", "title": "Surround"},
        },
        {
            "index": 2,
            "codec_type": "video",
            "codec_name": "mjpeg",
            "disposition": {"attached_pic": 1},
        },
        {"index": 3, "codec_type": "subtitle", "codec_name": "mov_text"},
        {"index": 4, "codec_type": "data", "codec_name": "unknown"},
    ],
}


def test_parse_inventory() -> None:
    """Parse streams, classify thumbnails and normalize unknown values."""
    inventory = probe.parse_inventory(json.dumps(SAMPLE))
    assert inventory.format_name == "mov,mp4,m4a,3gp,3g2,mj2"
    assert inventory.duration == pytest.approx(10.01)
    assert [s.kind for s in inventory.streams] == [
        StreamKind.VIDEO,
        StreamKind.AUDIO,
        StreamKind.THUMBNAIL,
        StreamKind.SUBTITLE,
        StreamKind.DATA,
    ]
    hevc = inventory.streams[0]
    assert (hevc.codec_name, hevc.codec_tag) == ("hevc", "hev1")
    assert (hevc.width, hevc.height) == (3840, 2160)
    assert hevc.sample_aspect_ratio == Rational(1, 1)
    assert hevc.frame_rate == Rational(60000, 1001)
    assert hevc.bits_per_channel == 10
    assert hevc.is_default
    assert hevc.language == "eng"
    aac = inventory.streams[1]
    assert (aac.channels, aac.sample_rate, aac.channel_layout) == (6, 48000, "5.1")
    assert aac.title == "Surround"
    assert inventory.streams[4].codec_name is None
    assert [s.index for s in inventory.other_streams] == [3, 4]


@pytest.mark.parametrize("text", ["not json", "[]", '{"streams": []}'])
def test_parse_inventory_rejects_bad_output(text: str) -> None:
    """Unreadable or incomplete output is a probe failure."""
    with pytest.raises(ProbeFailure):
        probe.parse_inventory(text)


def test_parse_stream_ignores_invalid_ratios() -> None:
    """Zero or malformed ratios are treated as unknown."""
    stream = probe.parse_stream(
        {"codec_type": "video", "sample_aspect_ratio": "0:1", "r_frame_rate": "0/0"},
        position=7,
    )
    assert stream.index == 7
    assert stream.sample_aspect_ratio is None
    assert stream.frame_rate is None


def test_run_caches_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Cache ``ffprobe`` failures to avoid repeated executions."""
    calls = {"count": 0}

    def fake_run_ffprobe(
        cmd: list[str],
        *,
        verbose: bool,
        status_callback: Callable[[str], None] | None = None,
        list_cmd: bool = False,
    ) -> Never:
        calls["count"] += 1
        raise subprocess.CalledProcessError(1, cmd, "moov atom not found\n")

    monkeypatch.setattr(probe_module, "run_ffprobe", fake_run_ffprobe)

    cache = Cache(str(tmp_path))
    ctx = probe.RuntimeContext(cache=cache)

    cmd = ["-version"]
    assert probe.run(ctx, cmd) == (False, "moov atom not found")
    assert calls["count"] == 1
    assert probe.run(ctx, cmd) == (False, "moov atom not found")
    assert calls["count"] == 1


def test_run_includes_file_metadata(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Invalidate cache when probed file metadata changes."""
    calls = {"count": 0}

    def fake_run_ffprobe(
        cmd: list[str],
        *,
        verbose: bool,
        status_callback: Callable[[str], None] | None = None,
        list_cmd: bool = False,
    ) -> str:
        calls["count"] += 1
        return "data"

    monkeypatch.setattr(probe_module, "run_ffprobe", fake_run_ffprobe)

    cache = Cache(str(tmp_path / "cache"))
    ctx = probe.RuntimeContext(cache=cache)

    media = tmp_path / "a.mp4"
    media.write_text("a")
    cmd = [str(media)]

    assert probe.run(ctx, cmd) == (True, "data")
    assert calls["count"] == 1
    assert probe.run(ctx, cmd) == (True, "data")
    assert calls["count"] == 1

    media.write_text("bigger")
    assert probe.run(ctx, cmd) == (True, "data")
    assert calls["count"] == 2

    time.sleep(0.01)
    os.utime(media, None)
    assert probe.run(ctx, cmd) == (True, "data")
    assert calls["count"] == 3


def test_probe_source_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A failed probe raises with ffprobe's diagnostics attached."""
    monkeypatch.setattr(probe_module, "run", lambda _ctx, _cmd: (False, "Invalid data found"))
    with pytest.raises(ProbeFailure) as exc_info:
        probe.probe_source(probe.RuntimeContext(cache=Cache(str(tmp_path))), tmp_path / "broken.mp4")
    assert exc_info.value.output == "Invalid data found"


def test_probe_source_reads_clip(ctx: probe.RuntimeContext, source_file: Path) -> None:
    """Probe a real clip into one video and one audio stream."""
    inventory = probe.probe_source(ctx, source_file)
    assert [s.kind for s in inventory.streams] == [StreamKind.VIDEO, StreamKind.AUDIO]
    assert inventory.video_streams[0].codec_name == "h264"
    assert inventory.audio_streams[0].codec_name == "aac"
    assert inventory.longest_duration is not None
