"""Backend pipeline for validating, planning and encoding media files."""

from .builder import build_main
from .executor import ffconform, process
from .planner import build_plan

__all__ = [
    "build_main",
    "build_plan",
    "ffconform",
    "process",
]
