"""Tests for CLI entry point."""

import shutil
from pathlib import Path

import pytest

from ffconform.cli import main
from ffconform.tools import probe


def test_cli_help(capsys: pytest.CaptureFixture[str]) -> None:
    """Display help message without error."""
    code = main(["--help"])
    out = capsys.readouterr().out
    assert code in (0, None)
    assert "--source" in out
    assert "--preset" in out


def test_cli_conversion(tmp_path: Path, source_file: Path) -> None:
    """Run the CLI to conform a clip end-to-end."""
    local_src = tmp_path / source_file.name
    shutil.copy(source_file, local_src)
    code = main(["--source", str(local_src)])
    assert code == 0
    output = local_src.with_name(f"{local_src.stem}_conformed.mp4")
    assert output.is_file()
    with probe.RuntimeContext() as ctx:
        inventory = probe.probe_source(ctx, output)
    assert [s.codec_name for s in inventory.streams] == ["h264", "aac"]


def test_cli_custom_output(tmp_path: Path, source_file: Path) -> None:
    """Run the CLI specifying a custom output file."""
    custom = tmp_path / "nested" / "result.mp4"
    code = main(["--source", str(source_file), "--output", str(custom)])
    assert code == 0
    assert custom.parent.is_dir()
    assert custom.is_file()


def test_cli_preserve(source_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A compliant source under the preserve preset is reported, not rewritten."""
    code = main(["--source", str(source_file), "--preset", "preserve"])
    assert code == 0
    assert "Source already conforms" in capsys.readouterr().out


def test_cli_failure_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Unsupported sources exit with status 1 and a message on stderr."""
    source = tmp_path / "notes.txt"
    source.write_text("text")
    assert main(["--source", str(source)]) == 1
    assert "is not supported" in capsys.readouterr().err
