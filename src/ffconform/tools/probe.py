"""ffprobe helpers and source inventory parsing."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import TYPE_CHECKING, Any

from ffconform.errors import ProbeFailure
from ffconform.models.context import RuntimeContext
from ffconform.models.ffprobe import Rational, SourceInventory, StreamDescriptor
from ffconform.models.types import StreamKind
from ffconform.models.verbosity import Verbosity

from .cli import cache_key, join_command, run_ffprobe
from .helpers import emit_status, format_action_label, maybe_log_command

if TYPE_CHECKING:
    from pathlib import Path

_INVENTORY_ARGS = ["-show_format", "-show_streams", "-print_format", "json", "-v", "error", "-hide_banner", "-i"]

_CODEC_TYPES: dict[str | None, StreamKind] = {
    "video": StreamKind.VIDEO,
    "audio": StreamKind.AUDIO,
    "subtitle": StreamKind.SUBTITLE,
    "attachment": StreamKind.ATTACHMENT,
    "data": StreamKind.DATA,
}
_UNKNOWN = "unknown"
_ALPHA_ON = "1"

logger = logging.getLogger(__name__)

_CACHE_ENTRY_LENGTH = 2


def _decode_cache_entry(value: object) -> tuple[bool, str | None]:
    """Normalize ffprobe cache entries."""
    if isinstance(value, tuple) and len(value) == _CACHE_ENTRY_LENGTH and isinstance(value[0], bool):
        ok, payload = value
        if payload is None or isinstance(payload, str):
            return ok, payload
        return ok, str(payload)
    if value is None or isinstance(value, str):
        return True, value
    return True, str(value)


def _log_cmd(ctx: RuntimeContext, cmd: list[str], *, cached: bool = False) -> None:
    """Log an ffprobe command banner with consistent labeling and routing."""
    action = format_action_label(cached=cached)
    maybe_log_command(
        verbosity=ctx.verbosity,
        status_callback=ctx.status_callback,
        banner=f"{action}: {join_command('ffprobe', cmd)}",
    )


def run(ctx: RuntimeContext, cmd: list[str]) -> tuple[bool, str | None]:
    """Run ``ffprobe`` with ``cmd``.

    Returns:
        ``(ok, output)`` where ``output`` is the stripped combined output. On
        failure ``output`` holds ffprobe's diagnostics.

    """
    key = cache_key(["ffprobe", *cmd])
    if key in ctx.cache:
        _log_cmd(ctx, cmd, cached=True)
        return _decode_cache_entry(ctx.cache[key])
    _log_cmd(ctx, cmd)
    try:
        out = run_ffprobe(
            cmd,
            verbose=ctx.verbosity >= Verbosity.OUTPUT,
            status_callback=ctx.status_callback,
            list_cmd=False,
        ).strip()
    except subprocess.CalledProcessError as exc:
        command = join_command("ffprobe", cmd)
        logger.warning("ffprobe command failed (%s): %s", exc.returncode, command)
        if ctx.verbosity >= Verbosity.COMMANDS:
            emit_status(
                f"ffprobe failed ({exc.returncode}): {command}",
                status_callback=ctx.status_callback,
            )
        entry = (False, (exc.output or "").strip() or None)
        ctx.cache[key] = entry
        return entry
    entry = (True, out or None)
    ctx.cache[key] = entry
    return entry


def _text(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)
    if not isinstance(value, str) or not value or value == _UNKNOWN:
        return None
    return value


def _int(obj: dict[str, Any], key: str) -> int | None:
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _float(obj: dict[str, Any], key: str) -> float | None:
    value = obj.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _flag(obj: dict[str, Any], key: str) -> bool:
    return bool(_int(obj, key))


def _classify(codec_type: str | None, disposition: dict[str, Any]) -> StreamKind:
    kind = _CODEC_TYPES.get(codec_type, StreamKind.UNKNOWN)
    if kind is StreamKind.VIDEO and (_flag(disposition, "attached_pic") or _flag(disposition, "timed_thumbnails")):
        return StreamKind.THUMBNAIL
    return kind


def parse_stream(raw: dict[str, Any], position: int) -> StreamDescriptor:
    """Build a :class:`StreamDescriptor` from one ffprobe ``streams`` entry."""
    disposition = raw.get("disposition")
    if not isinstance(disposition, dict):
        disposition = {}
    tags = raw.get("tags")
    if not isinstance(tags, dict):
        tags = {}
    index = _int(raw, "index")
    return StreamDescriptor(
        index=position if index is None else index,
        kind=_classify(_text(raw, "codec_type"), disposition),
        codec_name=_text(raw, "codec_name"),
        codec_tag=_text(raw, "codec_tag_string"),
        profile=_text(raw, "profile"),
        width=_int(raw, "width"),
        height=_int(raw, "height"),
        sample_aspect_ratio=Rational.parse(_text(raw, "sample_aspect_ratio"), sep=":"),
        pixel_format=_text(raw, "pix_fmt"),
        bits_per_raw_sample=_int(raw, "bits_per_raw_sample"),
        color_range=_text(raw, "color_range"),
        color_transfer=_text(raw, "color_transfer"),
        color_primaries=_text(raw, "color_primaries"),
        color_space=_text(raw, "color_space"),
        field_order=_text(raw, "field_order"),
        channels=_int(raw, "channels"),
        channel_layout=_text(raw, "channel_layout"),
        sample_rate=_int(raw, "sample_rate"),
        frame_rate=Rational.parse(_text(raw, "r_frame_rate")),
        duration=_float(raw, "duration"),
        language=_text(tags, "language"),
        title=_text(tags, "title"),
        is_default=_flag(disposition, "default"),
        attached_pic=_flag(disposition, "attached_pic"),
        timed_thumbnails=_flag(disposition, "timed_thumbnails"),
        has_alpha=tags.get("alpha_mode") == _ALPHA_ON,
    )


def parse_inventory(text: str) -> SourceInventory:
    """Parse ffprobe JSON output into a :class:`SourceInventory`.

    Raises:
        ProbeFailure: If the output is not JSON or lacks a ``format`` object.

    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProbeFailure("ffprobe returned unreadable output.", output=text) from e
    if not isinstance(data, dict) or not isinstance(data.get("format"), dict):
        raise ProbeFailure("ffprobe output is missing format information.", output=text)
    fmt = data["format"]
    raw_streams = data.get("streams")
    if not isinstance(raw_streams, list):
        raw_streams = []
    streams = tuple(parse_stream(s, i) for i, s in enumerate(raw_streams) if isinstance(s, dict))
    return SourceInventory(
        format_name=_text(fmt, "format_name"),
        duration=_float(fmt, "duration"),
        streams=streams,
    )


def probe_source(ctx: RuntimeContext, path: str | Path) -> SourceInventory:
    """Probe ``path`` once and return its stream inventory.

    Raises:
        ProbeFailure: If ffprobe fails or its output cannot be parsed.

    """
    ok, out = run(ctx, [*_INVENTORY_ARGS, str(path)])
    if not ok:
        raise ProbeFailure(f"Failed to read media information from '{path}'.", output=out)
    inventory = parse_inventory(out or "")
    logger.debug(
        "Probed %s: format=%s streams=%s",
        path,
        inventory.format_name,
        [s.kind.value for s in inventory.streams],
    )
    return inventory


__all__ = [
    "RuntimeContext",
    "parse_inventory",
    "parse_stream",
    "probe_source",
    "run",
]
