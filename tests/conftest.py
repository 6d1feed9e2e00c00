"""Shared pytest fixtures.

Synthetic clips are generated with ffmpeg; tests that need them are skipped
when ffmpeg is not installed.
"""

from __future__ import annotations

import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest
from diskcache import Cache

from ffconform.models import RuntimeContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

# Duration in seconds used by synthetic sample videos in tests.
VIDEO_DURATION_SEC: float = 2.0


@pytest.fixture
def ctx(tmp_path: Path) -> Iterator[RuntimeContext]:
    """Provide a runtime context with a private cache and temp root."""
    temp_root = tmp_path / "work"
    temp_root.mkdir()
    with RuntimeContext(cache=Cache(str(tmp_path / "cache")), temp_root=temp_root) as runtime:
        yield runtime


def _make_clip(
    out: Path,
    *,
    size: str = "200x200",
    channels: str = "stereo",
    video_codec: str = "libx264",
    audio_codec: str = "aac",
    audio: bool = True,
    duration: float = VIDEO_DURATION_SEC,
    extra: tuple[str, ...] = (),
) -> Path:
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg is None:
        pytest.skip("ffmpeg must be available in PATH")
    out.parent.mkdir(parents=True, exist_ok=True)
    args = [
        ffmpeg,
        "-v",
        "error",
        # Video source
        "-f",
        "lavfi",
        "-i",
        f"testsrc=s={size}:d={duration}:r=25",
    ]
    if audio:
        # Audio source (sine so the encoder has real content)
        args += ["-f", "lavfi", "-i", f"sine=r=48000:d={duration}"]
        args += ["-ac", "1" if channels == "mono" else "2"]
    args += ["-c:v", video_codec, "-pix_fmt", "yuv420p"]
    if audio:
        args += ["-c:a", audio_codec]
    args += [*extra, "-y", str(out)]
    try:
        subprocess.run(args, check=True, capture_output=True)  # noqa: S603
    except subprocess.CalledProcessError as exc:
        pytest.skip(f"ffmpeg cannot build the sample clip: {exc.stderr!r}")
    return out


@pytest.fixture
def make_clip(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory building synthetic clips under ``tmp_path / 'data'``."""

    def _factory(name: str = "video.mp4", **kwargs: object) -> Path:
        return _make_clip(tmp_path / "data" / name, **kwargs)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def source_file(make_clip: Callable[..., Path]) -> Path:
    """Provide a small synthetic H.264/AAC MP4 clip."""
    return make_clip()
