"""Helpers for executing FFmpeg and ffprobe commands."""

import logging
import os
import shlex
import subprocess
import threading
from collections.abc import Callable, Sequence
from functools import partial
from pathlib import Path
from typing import Any

from ffconform.errors import CANCELLED, Cancelled

from .helpers import emit_status

_FFMPEG = "ffmpeg"
_FFPROBE = "ffprobe"

_VIDEO_FILTER = "-vf"

PROGRESS_ARGS: tuple[str, ...] = ("-progress", "pipe:1", "-nostats")  #: Machine-readable progress on stdout.
_OUT_TIME_KEYS = ("out_time_us", "out_time_ms")
_PROGRESS_KEYS = frozenset(
    {
        "frame",
        "fps",
        "bitrate",
        "total_size",
        "out_time",
        "dup_frames",
        "drop_frames",
        "speed",
        "progress",
        *_OUT_TIME_KEYS,
    }
)
_CANCEL_POLL_S = 0.1
_US_PER_S = 1_000_000

logger = logging.getLogger(__name__)


def cache_key(cmd: Sequence[str | Path]) -> tuple[Any, ...]:
    """Return a cache key for ``cmd`` based on tokens and file metadata."""
    key_parts: list[Any] = []
    for token in cmd:
        s = str(token)
        key_parts.append(s)
        if s.startswith("-"):
            continue
        path = Path(s)
        if path.is_file():
            try:
                stat = path.stat()
            except OSError:
                continue
            key_parts.extend([int(stat.st_mtime_ns), stat.st_size])
    return tuple(key_parts)


def parse_progress_line(line: str) -> float | None:
    """Return the output timestamp in seconds from an ffmpeg ``-progress`` line.

    Returns ``None`` for any other line, including ``out_time_us=N/A``.
    """
    key, sep, value = line.strip().partition("=")
    if not sep or key not in _OUT_TIME_KEYS:
        return None
    try:
        micros = int(value)
    except ValueError:
        return None
    return max(0.0, micros / _US_PER_S)


def _is_progress_line(line: str) -> bool:
    key, sep, _ = line.strip().partition("=")
    return bool(sep) and (key in _PROGRESS_KEYS or key.startswith("stream_"))


def _run_streaming(
    cmd: list[str],
    *,
    creationflags: int,
    log: Callable[[str], None],
) -> str:
    """Run a command, streaming combined stdout/stderr and returning output."""
    with subprocess.Popen(  # noqa: S603
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        creationflags=creationflags,
    ) as p:
        output_chunks: list[str] = []
        if p.stdout is None:  # pragma: no cover - defensive
            raise RuntimeError("Failed to capture subprocess stdout")
        buf = ""
        for line in iter(p.stdout.readline, ""):
            output_chunks.append(line)
            parts = line.split("\r")
            buf += parts[0]
            for part in parts[1:]:
                log(buf + "\r")
                buf = part
            if buf.endswith("\n"):
                log(buf[:-1])
                buf = ""
        if buf:
            log(buf)
            buf = ""
        p.wait()
        output = "".join(output_chunks)
        if p.returncode:
            raise subprocess.CalledProcessError(p.returncode or 1, cmd, output)
        return output


def run(
    exe: str | Path,
    args: Sequence[str | Path],
    *,
    verbose: bool = False,
    status_callback: Callable[[str], None] | None = None,
    list_cmd: bool = False,
) -> str:
    """Run an executable and return its combined stdout/stderr.

    When ``verbose`` is ``True``, stream output lines to the provided
    ``status_callback`` (or the logger) as the process runs. Otherwise capture
    output and return it after completion.
    """
    cmd = [str(exe), *[str(a) for a in args]]

    def log(message: str) -> None:
        emit_status(message, status_callback=status_callback)

    if list_cmd:
        log(f"Running: {join_command(exe, args)}")

    creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0)

    if verbose:
        return _run_streaming(cmd, creationflags=creationflags, log=log)

    proc = subprocess.run(  # noqa: S603
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        creationflags=creationflags,
        check=True,
    )
    return proc.stdout


def _watch_cancel(proc: subprocess.Popen[str], cancel_event: threading.Event, done: threading.Event) -> None:
    """Terminate ``proc`` once ``cancel_event`` is set, unless it finished first."""
    while not done.is_set():
        if cancel_event.wait(_CANCEL_POLL_S):
            if proc.poll() is None:
                proc.terminate()
            return


def run_with_progress(
    exe: str | Path,
    args: Sequence[str | Path],
    *,
    on_time: Callable[[float], bool | None] | None = None,
    cancel_event: threading.Event | None = None,
    verbose: bool = False,
    status_callback: Callable[[str], None] | None = None,
) -> str:
    """Run ``exe`` with ``-progress`` output and return its diagnostics.

    ``on_time`` is only called when ``args`` contain :data:`PROGRESS_ARGS`.
    Each reported output timestamp is passed to it; returning ``False`` stops
    the process early, in which case its exit status is ignored.

    Raises:
        Cancelled: If ``cancel_event`` is set while the process runs.
        subprocess.CalledProcessError: If the process exits with an error.

    """
    cmd = [str(exe), *[str(a) for a in args]]
    cancel_event = cancel_event or threading.Event()
    if cancel_event.is_set():
        raise Cancelled(CANCELLED)
    creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
    diagnostics: list[str] = []
    stopped_early = False
    done = threading.Event()
    with subprocess.Popen(  # noqa: S603
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
        creationflags=creationflags,
    ) as p:
        if p.stdout is None:  # pragma: no cover - defensive
            raise RuntimeError("Failed to capture subprocess stdout")
        watcher = threading.Thread(target=_watch_cancel, args=(p, cancel_event, done), daemon=True)
        watcher.start()
        try:
            for line in iter(p.stdout.readline, ""):
                seconds = parse_progress_line(line)
                if seconds is not None:
                    if on_time is not None and on_time(seconds) is False and not stopped_early:
                        stopped_early = True
                        p.terminate()
                    continue
                if _is_progress_line(line):
                    continue
                diagnostics.append(line)
                if verbose:
                    emit_status(line.rstrip("\n"), status_callback=status_callback)
            p.wait()
        finally:
            done.set()
            watcher.join()
    output = "".join(diagnostics)
    if cancel_event.is_set():
        raise Cancelled(CANCELLED)
    if p.returncode and not stopped_early:
        raise subprocess.CalledProcessError(p.returncode, cmd, output)
    return output


run_ffprobe = partial(run, _FFPROBE)
run_ffmpeg_with_progress = partial(run_with_progress, _FFMPEG)


def quote_arg(arg: str, *, force: bool = False) -> str:
    """Quote argument if needed."""
    if os.name == "nt":
        quoted = subprocess.list2cmdline([arg])
        if force and quoted == arg:
            return f'"{arg}"'
        return quoted
    quoted = shlex.quote(arg)
    if force and quoted == arg:
        return f"'{arg}'"
    return quoted


def join_command(exe: str | Path, args: Sequence[str | Path]) -> str:
    """Format a command for display."""
    parts = [str(exe), *[str(a) for a in args]]
    return " ".join(quote_arg(part, force=i > 0 and parts[i - 1] == _VIDEO_FILTER) for i, part in enumerate(parts))


def format_ffmpeg_cmd(args: Sequence[str | Path]) -> str:
    """Format an ``ffmpeg`` command for display."""
    return join_command(_FFMPEG, args)


__all__ = [
    "PROGRESS_ARGS",
    "cache_key",
    "format_ffmpeg_cmd",
    "join_command",
    "parse_progress_line",
    "quote_arg",
    "run",
    "run_ffmpeg_with_progress",
    "run_ffprobe",
    "run_with_progress",
]
