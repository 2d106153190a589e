"""Explicit table of the tools a box exposes.

Each tool is a name, a description, a pydantic argument schema and a
handler ``(box, args) -> str``. The table is built once and shared by every
box; per-box state lives in the Box passed to the handler.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from poolbox.adapters.tool_response import TOOL_ERRORS, build_error_response, build_text_response
from poolbox.exceptions import PartialPatchFailure, ToolNotFoundError
from poolbox.models import ToolResponse
from poolbox.runtime.box import Box

logger = logging.getLogger(__name__)


class ToolArgs(BaseModel):
    """Base class for tool argument schemas; unknown arguments are rejected."""
    model_config = ConfigDict(extra="forbid")


class ListDirArgs(ToolArgs):
    """Input schema for ls tool."""
    path: str = Field(".", description="Directory to list, relative or @pool/...")
    recursive: bool = Field(False, description="Render a tree (max depth 3) instead of a flat list")
    show_hidden: bool = Field(False, description="Include dot files and directories")


class ReadArgs(ToolArgs):
    """Input schema for read tool."""
    path: str = Field(..., description="File to read")
    start_line: Optional[int] = Field(None, ge=1, description="First line (1-indexed)")
    end_line: Optional[int] = Field(None, ge=1, description="Last line (inclusive)")


class WriteArgs(ToolArgs):
    """Input schema for write tool."""
    path: str = Field(..., description="File to create or overwrite")
    content: str = Field(..., description="Complete new file content")


class EditArgs(ToolArgs):
    """Input schema for edit tool."""
    path: str = Field(..., description="File to edit")
    old_str: str = Field(..., description="Exact text to replace; must occur exactly once")
    new_str: str = Field(..., description="Replacement text")


class UndoArgs(ToolArgs):
    """Input schema for undo tool."""
    path: str = Field(..., description="File whose last write or edit to revert")


class GrepArgs(ToolArgs):
    """Input schema for grep tool."""
    query: str = Field(..., description="Literal text to search for")
    path: str = Field(".", description="Directory or file to search")


class GlobArgs(ToolArgs):
    """Input schema for glob tool."""
    pattern: str = Field(..., description="Glob pattern such as **/*.py")
    path: str = Field(".", description="Directory the pattern is relative to")


class BashArgs(ToolArgs):
    """Input schema for bash tool."""
    command: str = Field(..., description="Non-interactive shell command; @pool aliases are allowed")


class ApplyPatchArgs(ToolArgs):
    """Input schema for apply_patch tool."""
    patch_text: str = Field(..., description="Patch with Add/Update/Delete File sections")


class ExplainSkillArgs(ToolArgs):
    """Input schema for explain_skill tool."""
    path: str = Field(..., description="Capability path, e.g. @shared/video")


class SearchSkillsArgs(ToolArgs):
    """Input schema for search_skills tool."""
    query: str = Field(..., description="Space separated keywords")


class TodoWriteArgs(ToolArgs):
    """Input schema for todowrite tool."""
    todos: str = Field(..., description="The complete updated task list as a Markdown checklist")


class NoArgs(ToolArgs):
    """Input schema for tools without arguments."""


@dataclass(frozen=True)
class ToolSpec:
    """One registered tool."""
    name: str
    description: str
    args_schema: Type[ToolArgs]
    handler: Callable[[Box, Any], str]
    gated: bool = False  # commands pass through the CommandGate
    discovery: bool = False  # visibility decided by the disclosure tier


def _apply_patch(box: Box, args: ApplyPatchArgs) -> str:
    summary = box.patch_engine.apply(args.patch_text)
    if not summary.fully_applied:
        raise PartialPatchFailure(summary.render(), summary=summary)
    return summary.render()


class ToolRegistry:
    """Name -> ToolSpec table with argument validation at the call boundary."""

    def __init__(self, specs: list[ToolSpec] | None = None):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        """Look up a tool.

        Raises:
            ToolNotFoundError: If no tool has that name
        """
        spec = self._specs.get(name)
        if spec is None:
            raise ToolNotFoundError(f"Unknown tool: {name}")
        return spec

    def names(self) -> list[str]:
        return list(self._specs)

    def visible_tools(self, box: Box) -> list[ToolSpec]:
        """Tools the agent should be offered for this box right now."""
        exposed = set(box.discovery.exposed_tools())
        return [
            spec for spec in self._specs.values()
            if not spec.discovery or spec.name in exposed
        ]

    def validate(self, name: str, args: dict[str, Any]) -> ToolArgs:
        """Validate raw arguments against the tool's schema."""
        return self.get(name).args_schema.model_validate(args)

    def invoke(self, box: Box, name: str, args: dict[str, Any]) -> ToolResponse:
        """Validate arguments, run the handler and wrap the outcome.

        Tool errors (poolbox errors, OS errors, invalid arguments) become
        error responses whose content can be shown to the agent as is.
        """
        path = args.get("path") if isinstance(args.get("path"), str) else None
        try:
            spec = self.get(name)
            parsed = spec.args_schema.model_validate(args)
            content = spec.handler(box, parsed)
        except TOOL_ERRORS as e:
            logger.info("Tool %s failed in box %s: %s: %s", name, box.session_id, type(e).__name__, e)
            return build_error_response(name, e, path=path)
        return build_text_response(name, content, path=path)


def build_default_registry() -> ToolRegistry:
    """Registry with every built-in tool."""
    return ToolRegistry([
        ToolSpec(
            "ls", "List a directory. Marks capability directories with [SKILL].",
            ListDirArgs,
            lambda box, a: box.surface.list_dir(a.path, a.recursive, a.show_hidden),
        ),
        ToolSpec(
            "read", "Read a text file with line numbers, 500 lines per call by default.",
            ReadArgs,
            lambda box, a: box.surface.read(a.path, a.start_line, a.end_line),
        ),
        ToolSpec(
            "write", "Create or overwrite a file. The previous content can be restored with undo.",
            WriteArgs,
            lambda box, a: box.surface.write(a.path, a.content),
        ),
        ToolSpec(
            "edit", "Replace one exact, unique occurrence of old_str with new_str.",
            EditArgs,
            lambda box, a: box.surface.edit(a.path, a.old_str, a.new_str),
        ),
        ToolSpec(
            "undo", "Revert the last write or edit of a file.",
            UndoArgs,
            lambda box, a: box.surface.undo(a.path),
        ),
        ToolSpec(
            "grep", "Search files for a literal string. Output is capped.",
            GrepArgs,
            lambda box, a: box.surface.grep(a.query, a.path),
        ),
        ToolSpec(
            "glob", "Find files by glob pattern (max 500 results).",
            GlobArgs,
            lambda box, a: box.surface.glob(a.pattern, a.path),
        ),
        ToolSpec(
            "bash", "Run a non-interactive shell command in the working directory.",
            BashArgs,
            lambda box, a: box.surface.run(a.command),
            gated=True,
        ),
        ToolSpec(
            "apply_patch", "Apply a multi-file patch of Add/Update/Delete File sections with SEARCH/REPLACE blocks.",
            ApplyPatchArgs,
            _apply_patch,
        ),
        ToolSpec(
            "todoread", "Read the task list (TODO.md) to check progress before the next step.",
            NoArgs,
            lambda box, a: box.notes.todo_read(),
        ),
        ToolSpec(
            "todowrite",
            "Replace the task list (TODO.md). Use it for tasks with three or more steps; "
            "mark exactly one item in_progress and each item completed as soon as it is done.",
            TodoWriteArgs,
            lambda box, a: box.notes.todo_write(a.todos),
        ),
        ToolSpec(
            "code_init", "Detect the project stack and write CLAUDE.md with build, test and style guidelines.",
            NoArgs,
            lambda box, a: box.notes.code_init(),
        ),
        ToolSpec(
            "explain_skill", "Load the full instructions and file list of a capability.",
            ExplainSkillArgs,
            lambda box, a: box.discovery.explain(a.path),
            discovery=True,
        ),
        ToolSpec(
            "search_skills", "Search capabilities by keywords in their name and description.",
            SearchSkillsArgs,
            lambda box, a: box.discovery.search(a.query),
            discovery=True,
        ),
        ToolSpec(
            "refresh_skills", "Rescan every mounted pool for capabilities.",
            NoArgs,
            lambda box, a: box.discovery.refresh(),
            discovery=True,
        ),
        ToolSpec(
            "list_skills", "List every known capability with its description.",
            NoArgs,
            lambda box, a: box.discovery.list_capabilities(),
            discovery=True,
        ),
    ])
