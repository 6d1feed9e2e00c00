"""Tests for command-line interface help output."""

import subprocess
import sys


def test_help_hides_internal_options() -> None:
    """`ffconform --help` does not expose internal parameters like status_callback."""
    result = subprocess.run(  # noqa: S603
        [sys.executable, "-m", "ffconform.cli", "--help"],
        capture_output=True,
        text=True,
        encoding="utf-8",
        check=True,
    )
    assert "status-callback" not in result.stdout
    assert "--source" in result.stdout
