"""Conform media files to a declarative container and codec policy."""

from .backend import build_plan, ffconform, process
from .models import Options, ProcessingPolicy

__all__ = ["Options", "ProcessingPolicy", "build_plan", "ffconform", "process"]
