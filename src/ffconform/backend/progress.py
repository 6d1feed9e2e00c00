"""Monotonic progress reporting for a processing request."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

VALIDATION_END = 0.2  #: End of the measured-duration validation pass.
COMPATIBILITY_SHARE = 0.03  #: Share of the range spent on stream compatibility probes.
MAIN_PASS_END = 0.95  #: End of the main ffmpeg pass.
SIZE_CHECK_END = 0.975  #: End of the pick-smallest extractions.
MIX_RESERVE = 0.02  #: Fraction of the mix range held back until the mix pass returns.


class ProgressTracker:
    """Forward strictly increasing progress values to ``callback``.

    Values are clamped to ``[0, 1]``; anything not above the last reported
    value is dropped, so overlapping stages can never move progress back.
    """

    def __init__(self, callback: Callable[[float], None] | None = None) -> None:
        self._callback = callback
        self._value = 0.0
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        """Last value reported."""
        return self._value

    def report(self, value: float) -> None:
        """Report ``value`` if it is higher than the previous one."""
        value = min(1.0, max(0.0, value))
        with self._lock:
            if value <= self._value:
                return
            self._value = value
        if self._callback is not None:
            self._callback(value)

    def span(self, start: float, end: float) -> Callable[[float], None]:
        """Return a reporter mapping a ``[0, 1]`` fraction into ``[start, end]``."""

        def _report(fraction: float) -> None:
            fraction = min(1.0, max(0.0, fraction))
            self.report(start + (end - start) * fraction)

        return _report

    def timed(self, start: float, end: float, duration: float | None) -> Callable[[float], None]:
        """Return a reporter mapping ffmpeg output timestamps into ``[start, end]``.

        Without a known ``duration`` only ``start`` is ever reported.
        """
        span = self.span(start, end)

        def _report(seconds: float) -> None:
            span(seconds / duration if duration else 0.0)

        return _report

    def finish(self) -> None:
        """Report completion."""
        self.report(1.0)


__all__ = [
    "COMPATIBILITY_SHARE",
    "MAIN_PASS_END",
    "MIX_RESERVE",
    "SIZE_CHECK_END",
    "VALIDATION_END",
    "ProgressTracker",
]
