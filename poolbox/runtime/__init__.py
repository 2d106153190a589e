"""Runtime module: boxes, the tool registry and the dispatcher."""

from poolbox.runtime.box import Box, BoxManager
from poolbox.runtime.surface import ToolSurface
from poolbox.runtime.project import ProjectNotes
from poolbox.runtime.registry import ToolRegistry, ToolSpec, build_default_registry
from poolbox.runtime.dispatcher import ToolDispatcher

__all__ = [
    "Box",
    "BoxManager",
    "ToolSurface",
    "ProjectNotes",
    "ToolRegistry",
    "ToolSpec",
    "build_default_registry",
    "ToolDispatcher",
]
