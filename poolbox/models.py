"""Data models for poolbox."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Pool:
    """An aliased directory mounted into a box."""
    alias: str  # "@name"
    root: Path
    writable: bool = False

    @property
    def name(self) -> str:
        """Alias without the leading '@'."""
        return self.alias[1:]

    @property
    def env_name(self) -> str:
        """Name of the environment variable that carries the pool root."""
        return re.sub(r"[^A-Za-z0-9_]", "_", self.name).upper()

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "alias": self.alias,
            "root": str(self.root),
            "writable": self.writable,
        }


@dataclass(frozen=True)
class CapabilityManifest:
    """Snapshot of one discovered capability directory."""
    alias_path: str  # "@shared/video"
    path: Path
    manifest_file: Path
    description: str

    @property
    def name(self) -> str:
        return self.alias_path.rstrip("/").rsplit("/", 1)[-1].lstrip("@")

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "alias_path": self.alias_path,
            "path": str(self.path),
            "manifest_file": str(self.manifest_file),
            "description": self.description,
        }


class HunkKind(Enum):
    """File-level operation of a patch section."""
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class SearchReplaceChunk:
    """One SEARCH/REPLACE pair inside an update section."""
    search: str
    replace: str


@dataclass
class PatchHunk:
    """One parsed file section of a patch."""
    kind: HunkKind
    path: str
    move_path: str | None = None
    chunks: list[SearchReplaceChunk] = field(default_factory=list)
    new_content: str | None = None


class ChangeKind(Enum):
    """Effect of a staged file change."""
    ADD = "add"
    UPDATE = "update"
    MOVE = "move"
    DELETE = "delete"

    @property
    def marker(self) -> str:
        if self is ChangeKind.ADD:
            return "A"
        if self is ChangeKind.DELETE:
            return "D"
        return "M"


@dataclass
class FileChange:
    """Computed effect of a hunk, staged before anything is written."""
    kind: ChangeKind
    logical_path: str
    physical_path: Path
    old_content: str | None = None
    new_content: str | None = None
    move_path: Path | None = None
    move_logical: str | None = None
    additions: int = 0
    deletions: int = 0
    diff: str = ""

    @property
    def display_path(self) -> str:
        """Path shown in summaries; moves show their destination."""
        return self.move_logical or self.logical_path

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "kind": self.kind.value,
            "path": self.logical_path,
            "move_path": self.move_logical,
            "additions": self.additions,
            "deletions": self.deletions,
        }


@dataclass
class PatchSummary:
    """Outcome of applying a patch."""
    changes: list[FileChange]
    applied: list[FileChange] = field(default_factory=list)
    failed: FileChange | None = None
    error: str | None = None

    @property
    def fully_applied(self) -> bool:
        return self.failed is None and len(self.applied) == len(self.changes)

    @property
    def additions(self) -> int:
        return sum(c.additions for c in self.applied)

    @property
    def deletions(self) -> int:
        return sum(c.deletions for c in self.applied)

    def render(self) -> str:
        """Render the per-file summary returned to the agent."""
        lines = [f"{c.kind.marker} {c.display_path}" for c in self.applied]
        if self.fully_applied:
            return "\n".join(["Success. Updated the following files:", *lines])

        pending = [
            f"{c.kind.marker} {c.display_path}"
            for c in self.changes
            if c not in self.applied and c is not self.failed
        ]
        out = [
            f"Partially applied. Failed on {self.failed.display_path}: {self.error}",
            "Written before the failure:",
            *(lines or ["(none)"]),
        ]
        if pending:
            out.extend(["Not written:", *pending])
        return "\n".join(out)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "fully_applied": self.fully_applied,
            "applied": [c.to_dict() for c in self.applied],
            "failed": self.failed.to_dict() if self.failed else None,
            "error": self.error,
            "additions": self.additions,
            "deletions": self.deletions,
        }


@dataclass
class ExecutionResult:
    """Result of a shell command."""
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration_ms": self.duration_ms,
            "meta": self.meta,
        }


@dataclass
class AuditEvent:
    """Record of an operation performed inside a box."""
    ts: datetime
    kind: str  # "write", "edit", "undo", "run", "patch", "scan", "approval"
    box: str
    tool: str | None = None
    path: str | None = None
    detail: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "ts": self.ts.isoformat(),
            "kind": self.kind,
            "box": self.box,
            "tool": self.tool,
            "path": self.path,
            "detail": self.detail,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEvent":
        """Deserialize from dict."""
        return cls(
            ts=datetime.fromisoformat(data["ts"]),
            kind=data["kind"],
            box=data["box"],
            tool=data.get("tool"),
            path=data.get("path"),
            detail=data.get("detail", {}),
        )


@dataclass
class ToolResponse:
    """Unified response format for all tools."""
    ok: bool
    type: str  # "result", "error", "approval_required", "rejected"
    tool: str
    content: str | None = None
    path: str | None = None
    meta: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "ok": self.ok,
            "type": self.type,
            "tool": self.tool,
            "content": self.content,
            "path": self.path,
            "meta": self.meta,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ToolResponse":
        """Deserialize from dict."""
        return cls(
            ok=data["ok"],
            type=data["type"],
            tool=data["tool"],
            content=data.get("content"),
            path=data.get("path"),
            meta=data.get("meta", {}),
        )


class ApprovalState(Enum):
    """State machine for a session's approval slot."""
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class PendingApproval:
    """A suspended tool call awaiting a human decision."""
    session_id: str
    tool_name: str
    args: dict[str, Any]
    reason: str
    decision: ApprovalState = ApprovalState.PENDING
    note: str | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "session_id": self.session_id,
            "tool_name": self.tool_name,
            "args": self.args,
            "reason": self.reason,
            "decision": self.decision.value,
            "note": self.note,
            "created_at": self.created_at.isoformat(),
        }


class DisclosureTier(Enum):
    """How much of the capability library is shown to the agent."""
    INLINE = "inline"
    INDEX = "index"
    SEARCH = "search"
