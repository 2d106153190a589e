"""Patch module: SEARCH/REPLACE patch parsing and application."""

from poolbox.patch.parser import PatchParser
from poolbox.patch.engine import PatchEngine

__all__ = ["PatchParser", "PatchEngine"]
