"""Utility functions for timespan parsing and status emission."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
else:
    from collections import abc

    Callable = abc.Callable

from pytimeparse2 import parse as parse_duration

from ffconform.models.verbosity import Verbosity

logger = logging.getLogger(__name__)


def parse_timespan_to_seconds(s: str | None) -> float | None:
    """Convert a time string to seconds.

    Args:
        s: Timespan such as ``"90s"``, ``"1m30s"`` or ``"00:01:30"``. ``None``
            or an empty string returns ``None``.

    Returns:
        The parsed duration in seconds.

    Raises:
        ValueError: If ``s`` cannot be parsed.

    """
    if not s:
        return None
    parsed = parse_duration(s)
    if parsed is None:
        raise ValueError(f"Unable to parse timespan: {s}")
    return float(parsed)


def emit_status(message: str, *, status_callback: Callable[[str], None] | None) -> None:
    """Send ``message`` to the CLI, logger, or a custom callback.

    The caller controls where status lines go:

    * ``print`` - used by the CLI for direct terminal updates.
    * ``None`` - route messages through ``logger.info``.
    * Any other ``Callable[[str], None]`` - for embedding applications or
      tests that capture status output.
    """
    if status_callback is None:
        logger.info(message)
        return
    # Special handling for terminal-friendly in-place updates.
    if status_callback is print:
        print(  # noqa: T201
            message,
            end="" if "\r" in message and "\n" not in message else "\n",
            flush=True,
        )
        return
    status_callback(message)


def format_action_label(*, cached: bool = False) -> str:
    """Return a short action label for command banners.

    - Cached: when serving from cache
    - Running: otherwise
    """
    return "Cached" if cached else "Running"


def maybe_log_command(
    *,
    verbosity: Verbosity,
    status_callback: Callable[[str], None] | None,
    banner: str,
) -> None:
    """Log a command banner when verbosity is at least ``Verbosity.COMMANDS``."""
    if verbosity >= Verbosity.COMMANDS:
        emit_status(banner, status_callback=status_callback)
    else:
        logger.debug(banner)


__all__ = [
    "emit_status",
    "format_action_label",
    "maybe_log_command",
    "parse_timespan_to_seconds",
]
