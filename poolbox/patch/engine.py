"""Applies parsed patches to a box.

Every hunk is resolved and computed in memory before the first write. A bad
path or a SEARCH block that does not match therefore leaves the disk
untouched. Individual files are replaced atomically, but there is no
cross-file rollback: if the write phase fails midway, the returned summary
reports which files were written and which one failed.
"""

import difflib
import logging
from datetime import datetime
from pathlib import Path

from poolbox.exceptions import PatchError, PatchMismatchError
from poolbox.models import AuditEvent, ChangeKind, FileChange, HunkKind, PatchHunk, PatchSummary
from poolbox.observability.audit import AuditSink
from poolbox.patch.parser import PatchParser
from poolbox.resources.resolver import PathSandbox
from poolbox.resources.writer import atomic_write_text

logger = logging.getLogger(__name__)


def diff_stats(old: str, new: str, path: str) -> tuple[int, int, str]:
    """Count added/removed lines and render a unified diff.

    Returns:
        Tuple of (additions, deletions, unified diff text)
    """
    diff_lines = list(difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    ))
    additions = sum(1 for line in diff_lines if line.startswith("+") and not line.startswith("+++"))
    deletions = sum(1 for line in diff_lines if line.startswith("-") and not line.startswith("---"))
    return additions, deletions, "".join(diff_lines)


def apply_chunks(content: str, hunk: PatchHunk) -> str:
    """Apply every SEARCH/REPLACE chunk of an update hunk to content.

    Each chunk replaces the first exact occurrence of its search text. When
    the content uses CRLF line endings the chunk is converted first. If the
    exact text is absent, one retry uses the whitespace-trimmed search and
    replace text. An empty search block appends the replacement.

    Raises:
        PatchMismatchError: If a search block cannot be found
    """
    crlf = "\r\n" in content
    for index, chunk in enumerate(hunk.chunks, start=1):
        search, replace = chunk.search, chunk.replace
        if crlf:
            search = search.replace("\r\n", "\n").replace("\n", "\r\n")
            replace = replace.replace("\r\n", "\n").replace("\n", "\r\n")

        if not search.strip():
            if content and not content.endswith(("\n", "\r")):
                content += "\r\n" if crlf else "\n"
            content += replace
            continue

        if search in content:
            content = content.replace(search, replace, 1)
            continue

        trimmed = search.strip()
        if trimmed and trimmed in content:
            content = content.replace(trimmed, replace.strip(), 1)
            continue

        raise PatchMismatchError("SEARCH block mismatch", hunk.path, index)
    return content


class PatchEngine:
    """Parses and applies multi-file patches inside one box."""

    def __init__(
        self,
        sandbox: PathSandbox,
        audit_sink: AuditSink | None = None,
        box_id: str = "default",
    ):
        """Initialize with the box's sandbox.

        Args:
            sandbox: Resolver enforcing containment and pool policy
            audit_sink: Optional sink receiving "patch" events
            box_id: Box identifier used in audit events
        """
        self.sandbox = sandbox
        self.parser = PatchParser()
        self.audit_sink = audit_sink
        self.box_id = box_id

    def apply(self, patch_text: str) -> PatchSummary:
        """Parse, stage and write a patch.

        Args:
            patch_text: Patch in the Add/Update/Delete File format

        Returns:
            PatchSummary; check ``fully_applied`` for write-phase failures

        Raises:
            PatchError: If parsing or staging fails (nothing is written)
            SecurityViolation: If any path escapes or targets a read-only pool
        """
        hunks = self.parser.parse(patch_text)
        changes = self.stage(hunks)
        summary = self._write(changes)

        self._audit(summary)
        if summary.fully_applied:
            logger.info("Applied patch to %d files", len(changes))
        else:
            logger.error("Patch partially applied, failed on %s: %s",
                         summary.failed.display_path, summary.error)
        return summary

    def stage(self, hunks: list[PatchHunk]) -> list[FileChange]:
        """Resolve every path and compute every change without touching disk.

        Hunks are staged in order against the pending content of their
        physical path, so a later section for the same file builds on the
        earlier ones instead of on the disk copy.
        """
        resolved = []
        for hunk in hunks:
            physical = self.sandbox.resolve(hunk.path, write=True)
            move = self.sandbox.resolve(hunk.move_path, write=True) if hunk.move_path else None
            resolved.append((hunk, physical, move))

        pending: dict[Path, str | None] = {}  # None marks a staged delete
        changes = []
        for hunk, physical, move in resolved:
            logical = self.sandbox.to_logical(physical)
            current = self._current(physical, pending)

            if hunk.kind is HunkKind.ADD:
                old = current or ""
                new = hunk.new_content or ""
                additions, deletions, diff = diff_stats(old, new, logical)
                changes.append(FileChange(
                    kind=ChangeKind.ADD, logical_path=logical, physical_path=physical,
                    old_content=old, new_content=new,
                    additions=additions, deletions=deletions, diff=diff,
                ))
                pending[physical] = new
                continue

            if current is None:
                raise PatchError(f"File not found: {hunk.path}")
            old = current

            if hunk.kind is HunkKind.DELETE:
                additions, deletions, diff = diff_stats(old, "", logical)
                changes.append(FileChange(
                    kind=ChangeKind.DELETE, logical_path=logical, physical_path=physical,
                    old_content=old, additions=additions, deletions=deletions, diff=diff,
                ))
                pending[physical] = None
                continue

            new = apply_chunks(old, hunk)
            additions, deletions, diff = diff_stats(old, new, logical)
            moving = move is not None and move != physical
            changes.append(FileChange(
                kind=ChangeKind.MOVE if moving else ChangeKind.UPDATE,
                logical_path=logical,
                physical_path=physical,
                old_content=old,
                new_content=new,
                move_path=move if moving else None,
                move_logical=self.sandbox.to_logical(move) if moving else None,
                additions=additions,
                deletions=deletions,
                diff=diff,
            ))
            if moving:
                pending[physical] = None
                pending[move] = new
            else:
                pending[physical] = new
        return changes

    def _current(self, physical: Path, pending: dict[Path, str | None]) -> str | None:
        if physical in pending:
            return pending[physical]
        return self._read(physical) if physical.is_file() else None

    def _write(self, changes: list[FileChange]) -> PatchSummary:
        summary = PatchSummary(changes=changes)
        for change in changes:
            try:
                if change.kind is ChangeKind.DELETE:
                    change.physical_path.unlink()
                elif change.kind is ChangeKind.MOVE:
                    atomic_write_text(change.move_path, change.new_content)
                    change.physical_path.unlink()
                else:
                    atomic_write_text(change.physical_path, change.new_content)
            except OSError as e:
                summary.failed = change
                summary.error = f"{type(e).__name__}: {e.strerror or e}"
                return summary
            summary.applied.append(change)
        return summary

    def _read(self, path) -> str:
        try:
            return path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as e:
            raise PatchError(f"{self.sandbox.to_logical(path)} is not UTF-8 text") from e

    def _audit(self, summary: PatchSummary) -> None:
        if self.audit_sink is None:
            return
        self.audit_sink.log(AuditEvent(
            ts=datetime.now(),
            kind="patch",
            box=self.box_id,
            tool="apply_patch",
            detail=summary.to_dict(),
        ))
