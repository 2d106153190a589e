"""Resources module for path resolution, reading and atomic writes."""

from poolbox.resources.resolver import PathSandbox, IGNORED_NAMES
from poolbox.resources.reader import WindowedReader, ContentSearcher, GlobSearcher
from poolbox.resources.writer import atomic_write_bytes, atomic_write_text

__all__ = [
    "PathSandbox",
    "IGNORED_NAMES",
    "WindowedReader",
    "ContentSearcher",
    "GlobSearcher",
    "atomic_write_bytes",
    "atomic_write_text",
]
