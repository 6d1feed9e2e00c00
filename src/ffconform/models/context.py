"""Runtime context shared across ffconform components."""

from __future__ import annotations

import os
import tempfile
import threading
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Self

from diskcache import Cache

from ffconform.models.verbosity import Verbosity

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

_CACHE_DIR = Path(os.getenv("FFCONFORM_CACHE", tempfile.gettempdir())) / "ffconform-cache"


def _default_cache() -> Cache:
    """Return a cache for ffconform operations."""
    return Cache(str(_CACHE_DIR))


@dataclass(slots=True)
class RuntimeContext:
    """Runtime flags, callbacks and cache for probing and encoding.

    ``progress_callback`` receives values in ``[0, 1]``; ``cancel_event``
    aborts the running request when set.
    """

    verbosity: Verbosity = Verbosity.QUIET
    status_callback: Callable[[str], None] | None = None
    progress_callback: Callable[[float], None] | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    cache: Cache = field(default_factory=_default_cache)
    temp_root: Path | None = None

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self.cancel_event.is_set()

    def close(self) -> None:
        """Close any open resources."""
        self.cache.close()

    def __enter__(self) -> Self:
        """Return ``self`` when entering a context."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close resources when exiting a context."""
        self.close()

    def __del__(self) -> None:  # pragma: no cover - cleanup
        """Ensure cache is closed on garbage collection."""
        with suppress(Exception):
            self.cache.close()


__all__ = ["RuntimeContext"]
