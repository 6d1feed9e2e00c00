"""Tests for the conform pipeline."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from ffconform.backend import arbitration, executor
from ffconform.errors import Cancelled, EncodeFailure, NoChangeFailure, SourceValidationFailure, UnsupportedExtension
from ffconform.models import Options
from ffconform.models.catalog import ContainerFormat
from ffconform.models.options import PolicyPreset, ProcessingPolicy
from ffconform.models.types import AudioChannels, Encoder, ReencodeMode, StreamAction
from ffconform.tools import probe
from ffconform.tools.capabilities import available_encoders

if TYPE_CHECKING:
    from collections.abc import Callable

    from ffconform.models import RuntimeContext


def test_default_output_path() -> None:
    """Default outputs sit next to the source with the output extension."""
    assert executor.default_output_path(Path("/in/a.mkv"), ContainerFormat.MP4) == Path("/in/a_conformed.mp4")


def test_rejects_extension_before_probing(ctx: RuntimeContext, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Unknown extensions fail without running ffprobe."""

    def fail_probe(*_args: object) -> None:
        raise AssertionError("probe should not run")

    monkeypatch.setattr(executor.probe, "probe_source", fail_probe)
    source = tmp_path / "notes.txt"
    source.write_text("text")
    with pytest.raises(UnsupportedExtension):
        executor.process(source, ctx=ctx)


def test_cancel_before_start(ctx: RuntimeContext, source_file: Path) -> None:
    """A set cancel event stops processing."""
    ctx.cancel_event.set()
    with pytest.raises(Cancelled):
        executor.process(source_file, ctx=ctx)


def test_standardized_output(ctx: RuntimeContext, source_file: Path) -> None:
    """The default policy re-encodes into an H.264/AAC MP4 next to the source."""
    progress: list[float] = []
    ctx.progress_callback = progress.append
    result = executor.process(source_file, ctx=ctx)
    assert result.changed
    assert result.output == source_file.with_name("video_conformed.mp4")
    assert result.output.is_file()
    inventory = probe.probe_source(ctx, result.output)
    assert [s.codec_name for s in inventory.streams] == ["h264", "aac"]
    assert progress[-1] == 1.0
    assert progress == sorted(progress)
    assert not list(ctx.temp_root.iterdir())


def test_preserve_returns_source(ctx: RuntimeContext, source_file: Path) -> None:
    """A compliant source is returned unchanged."""
    result = executor.process(source_file, policy=ProcessingPolicy.preserve(), ctx=ctx)
    assert not result.changed
    assert result.output == source_file
    assert not source_file.with_name("video_conformed.mp4").exists()


def test_require_changes(ctx: RuntimeContext, source_file: Path) -> None:
    """Strict mode turns an unchanged result into an error."""
    policy = ProcessingPolicy.preserve().replace(require_changes=True)
    with pytest.raises(NoChangeFailure, match="did not result in any changes"):
        executor.process(source_file, policy=policy, ctx=ctx)


def test_mkv_is_remuxed(ctx: RuntimeContext, make_clip: Callable[..., Path]) -> None:
    """Compliant streams in a disallowed container are copied into MP4."""
    source = make_clip("video.mkv")
    policy = ProcessingPolicy.preserve().replace(container={"result_formats": (ContainerFormat.MP4,)})
    result = executor.process(source, policy=policy, ctx=ctx)
    assert result.changed
    assert result.output.suffix == ".mp4"
    assert result.plan is not None
    assert "container format" in result.plan.reasons
    assert not result.plan.reencodes


def test_stereo_is_downmixed(ctx: RuntimeContext, source_file: Path, tmp_path: Path) -> None:
    """A channel ceiling re-encodes audio with fewer channels."""
    policy = ProcessingPolicy.preserve().replace(audio={"max_channels": AudioChannels.MONO})
    out = tmp_path / "nested" / "mono.mp4"
    result = executor.process(source_file, out, policy=policy, ctx=ctx)
    assert result.output == out
    audio = probe.probe_source(ctx, out).audio_streams[0]
    assert audio.channels == 1


def test_duration_limit(ctx: RuntimeContext, source_file: Path) -> None:
    """Sources longer than the limit are rejected."""
    policy = ProcessingPolicy().replace(video_validation={"max_length": 1})
    with pytest.raises(SourceValidationFailure):
        executor.process(source_file, policy=policy, ctx=ctx)


def test_output_parent_is_file(ctx: RuntimeContext, source_file: Path, tmp_path: Path) -> None:
    """An output whose parent is a file fails after encoding."""
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(EncodeFailure, match="not a directory"):
        executor.process(source_file, blocker / "out.mp4", ctx=ctx)


SELECT_SMALLEST = ProcessingPolicy.preserve().replace(
    video={"reencode": ReencodeMode.SELECT_SMALLEST},
    audio={"reencode": ReencodeMode.SELECT_SMALLEST},
)


def fixed_sizes(monkeypatch: pytest.MonkeyPatch, source_wins: dict[int, bool]) -> None:
    """Make extracted stream sizes favour the source per output position."""

    def fake_extract(_ctx: object, _args: tuple[str, ...], output: Path) -> int:
        position = int(output.name.split("-")[1])
        from_source = "source" in output.name
        return 100 if from_source == source_wins[position] else 200

    monkeypatch.setattr(arbitration, "_extract", fake_extract)


def test_select_smallest_source_wins(ctx: RuntimeContext, source_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Smaller originals everywhere return the source untouched."""
    fixed_sizes(monkeypatch, {0: True, 1: True})
    result = executor.process(source_file, policy=SELECT_SMALLEST, ctx=ctx)
    assert not result.changed
    assert result.output == source_file
    assert not source_file.with_name("video_conformed.mp4").exists()
    assert not list(ctx.temp_root.iterdir())


def test_select_smallest_encoded_wins(ctx: RuntimeContext, source_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Smaller re-encodes everywhere keep the re-encoded output as it is."""
    fixed_sizes(monkeypatch, {0: False, 1: False})
    result = executor.process(source_file, policy=SELECT_SMALLEST, ctx=ctx)
    assert result.changed
    assert result.output.is_file()
    assert result.plan is not None
    assert [d.action for d in result.plan.decisions] == [StreamAction.REENCODE, StreamAction.REENCODE]
    assert not any(c.count("-i") == 2 for c in result.commands)


def test_select_smallest_mixed(ctx: RuntimeContext, source_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A split outcome combines the original video with the re-encoded audio."""
    fixed_sizes(monkeypatch, {0: True, 1: False})
    result = executor.process(source_file, policy=SELECT_SMALLEST, ctx=ctx)
    assert result.changed
    assert result.plan is not None
    assert [d.action for d in result.plan.decisions] == [StreamAction.COPY, StreamAction.REENCODE]
    assert result.commands[-1].count("-i") == 2
    inventory = probe.probe_source(ctx, result.output)
    assert [s.codec_name for s in inventory.streams] == ["h264", "aac"]


def test_hevc_minimum_dimensions(ctx: RuntimeContext, make_clip: Callable[..., Path]) -> None:
    """Tiny frames are grown to the HEVC minimum when re-encoding."""
    if Encoder.X265 not in available_encoders(ctx):
        pytest.skip("libx265 is not available")
    source = make_clip("tiny.mp4", size="8x8")
    result = executor.process(source, policy=ProcessingPolicy.standardized_hevc_aac_mp4(), ctx=ctx)
    video = probe.probe_source(ctx, result.output).video_streams[0]
    assert (video.width, video.height) == (16, 16)
    assert video.codec_tag == "hvc1"


def test_ffconform_reports_unchanged(source_file: Path) -> None:
    """The command reports an already compliant source."""
    messages: list[str] = []
    code = executor.ffconform(Options(source=source_file, preset=PolicyPreset.PRESERVE), status_callback=messages.append)
    assert code == 0
    assert messages[-1] == f"Source already conforms: {source_file.absolute()}"


def test_ffconform_reports_failure(source_file: Path) -> None:
    """Processing errors are printed and return a non-zero code."""
    messages: list[str] = []
    opts = Options(
        source=source_file,
        preset=PolicyPreset.PRESERVE,
        policy=ProcessingPolicy(require_changes=True),
    )
    assert executor.ffconform(opts, status_callback=messages.append) == 1
    assert messages[-1] == executor.NO_CHANGE


def test_ffconform_prints_output(source_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Without a callback the output path is printed to stdout."""
    local = tmp_path / "copy.mp4"
    shutil.copy(source_file, local)
    assert executor.ffconform(Options(source=local)) == 0
    out = capsys.readouterr().out
    assert str(local.with_name("copy_conformed.mp4")) in out
