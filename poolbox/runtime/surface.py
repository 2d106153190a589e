"""The file and shell operations a box exposes to the agent.

Every operation takes logical paths, resolves them through the box's
PathSandbox and reports logical paths back; physical host paths never
appear in results.
"""

import logging
from datetime import datetime
from pathlib import Path

from poolbox.config import BoxConfig
from poolbox.discovery.pools import PoolRegistry
from poolbox.exceptions import (
    AmbiguousMatchError,
    EditError,
    LineEndingMismatchError,
    PathNotFoundError,
    TextNotFoundError,
    ToolInputError,
    UndoUnavailableError,
)
from poolbox.exec.local_sandbox import LocalShellSandbox
from poolbox.exec.sandbox import SandboxProvider
from poolbox.exec.shell import ShellSpec, detect_shell, translate_command
from poolbox.models import AuditEvent
from poolbox.observability.audit import AuditSink
from poolbox.resources.listing import DirectoryLister
from poolbox.resources.reader import ContentSearcher, GlobSearcher, WindowedReader
from poolbox.resources.resolver import PathSandbox
from poolbox.resources.writer import atomic_write_bytes

logger = logging.getLogger(__name__)


class ToolSurface:
    """list/read/write/edit/undo/grep/glob/run for one box.

    Undo records live in the ``undo_records`` mapping handed in by the box:
    logical path -> bytes the file held before the last write or edit.
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        registry: PoolRegistry,
        config: BoxConfig | None = None,
        undo_records: dict[str, bytes] | None = None,
        provider: SandboxProvider | None = None,
        shell: ShellSpec | None = None,
        audit_sink: AuditSink | None = None,
        box_id: str = "default",
    ):
        """Initialize the surface.

        Args:
            sandbox: Resolver for the box
            registry: Pool registry (pool env vars and manifest markers)
            config: Limits; defaults to BoxConfig()
            undo_records: Per-box undo storage
            provider: Command runner; defaults to LocalShellSandbox
            shell: Shell to use; probed from the host when omitted
            audit_sink: Optional sink for mutation and run events
            box_id: Box identifier used in audit events
        """
        self.config = config or BoxConfig()
        self.sandbox = sandbox
        self.registry = registry
        self.undo_records = undo_records if undo_records is not None else {}
        self.provider = provider or LocalShellSandbox()
        self.shell = shell or detect_shell()
        self.audit_sink = audit_sink
        self.box_id = box_id

        self.lister = DirectoryLister(tree_depth=self.config.tree_depth)
        self.reader = WindowedReader(window=self.config.read_window)
        self.searcher = ContentSearcher(max_chars=self.config.grep_max_chars)
        self.globber = GlobSearcher(max_results=self.config.glob_max_results)

    def list_dir(self, path: str = ".", recursive: bool = False, show_hidden: bool = False) -> str:
        """List a directory, or render a depth-capped tree when recursive."""
        physical = self.sandbox.resolve(path)
        return self.lister.render(
            physical,
            self.sandbox.to_logical(physical),
            recursive=recursive,
            show_hidden=show_hidden,
        )

    def read(self, path: str, start_line: int | None = None, end_line: int | None = None) -> str:
        """Read a numbered window of a text file."""
        physical = self.sandbox.resolve(path)
        return self.reader.read(physical, self.sandbox.to_logical(physical), start_line, end_line)

    def write(self, path: str, content: str) -> str:
        """Create or overwrite a file, keeping the old bytes for undo."""
        physical = self.sandbox.resolve(path, write=True)
        logical = self.sandbox.to_logical(physical)
        if physical.is_dir():
            raise ToolInputError(f"{logical} is a directory")

        data = content.encode("utf-8")
        self._snapshot(physical, logical)
        atomic_write_bytes(physical, data)
        self._audit("write", "write", logical, {"bytes": len(data)})
        return f"File written: {logical} ({len(data)} bytes)"

    def edit(self, path: str, old_str: str, new_str: str) -> str:
        """Replace the single occurrence of old_str with new_str.

        The match must be unique. When the exact text is absent, it is
        retried with its line endings converted to the file's style.

        Raises:
            TextNotFoundError: If old_str does not occur
            AmbiguousMatchError: If old_str occurs more than once
            LineEndingMismatchError: If old_str only matches with line endings ignored
        """
        if not old_str:
            raise ToolInputError("old_str must not be empty")
        if old_str == new_str:
            raise ToolInputError("old_str and new_str are identical")

        physical = self.sandbox.resolve(path, write=True)
        logical = self.sandbox.to_logical(physical)
        if not physical.is_file():
            raise PathNotFoundError(f"File not found: {logical}")

        raw = physical.read_bytes()
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EditError(f"{logical} is not UTF-8 text") from e

        old, new = old_str, new_str
        count = content.count(old)
        if count == 0:
            old, new = _match_line_endings(content, old_str, new_str)
            count = content.count(old) if old != old_str else 0
        if count == 0:
            if _lf(old_str) in _lf(content):
                raise LineEndingMismatchError(
                    f"old_str matches {logical} only when line endings are ignored; "
                    "the file mixes line endings, re-read it and copy the exact text"
                )
            raise TextNotFoundError(
                f"old_str not found in {logical}. Re-read the file and copy the exact text"
            )
        if count > 1:
            raise AmbiguousMatchError(
                f"old_str appears {count} times in {logical}; add surrounding lines so it matches exactly once",
                occurrences=count,
            )

        updated = content.replace(old, new, 1)
        self.undo_records[logical] = raw
        atomic_write_bytes(physical, updated.encode("utf-8"))
        self._audit("edit", "edit", logical, {"bytes": len(updated.encode("utf-8"))})
        return f"File edited: {logical}"

    def undo(self, path: str) -> str:
        """Restore the content a file had before its last write or edit."""
        physical = self.sandbox.resolve(path, write=True)
        logical = self.sandbox.to_logical(physical)
        previous = self.undo_records.pop(logical, None)
        if previous is None:
            raise UndoUnavailableError(f"No undo history for {logical}")

        atomic_write_bytes(physical, previous)
        self._audit("undo", "undo", logical, {"bytes": len(previous)})
        return f"Undo successful: {logical} restored"

    def grep(self, query: str, path: str = ".") -> str:
        """Literal substring search; output is capped."""
        if not query:
            raise ToolInputError("query must not be empty")
        root = self.sandbox.resolve(path)
        if not root.exists():
            raise PathNotFoundError(f"Path not found: {path}")

        hits, truncated = self.searcher.search(root, query)
        if not hits:
            return "No matches found."

        lines = [
            f"{self.sandbox.to_logical(hit['path'])}:{hit['line_num']}: {hit['content']}"
            for hit in hits
        ]
        if truncated:
            lines.append(f"... (output truncated at {self.config.grep_max_chars} characters, narrow the search)")
        return "\n".join(lines)

    def glob(self, pattern: str, path: str = ".") -> str:
        """Find files by glob pattern relative to path."""
        if not pattern:
            raise ToolInputError("pattern must not be empty")
        root = self.sandbox.resolve(path)
        if not root.is_dir():
            raise PathNotFoundError(f"Directory not found: {path}")

        matches, truncated = self.globber.glob(root, pattern)
        if not matches:
            return "No files matched."

        lines = [f"[FILE] {self.sandbox.to_logical(m)}" for m in matches]
        if truncated:
            lines.append(f"... (showing first {self.config.glob_max_results} matches)")
        return "\n".join(lines)

    def run(self, command: str, timeout_s: int | None = None) -> str:
        """Run a shell command in the box root with pool aliases translated."""
        if not command or not command.strip():
            raise ToolInputError("command must not be empty")

        translated, env = translate_command(command, self.registry.pools(), self.shell.dialect)
        timeout = timeout_s or self.config.run_timeout_s
        logger.debug("Running command in box %s: %s", self.box_id, translated)

        result = self.provider.execute(translated, self.shell, timeout, self.sandbox.root, env)
        self._audit("run", "bash", None, {
            "command": command,
            "exit_code": result.exit_code,
            "duration_ms": result.duration_ms,
        })
        return self._format_result(result.stdout, result.stderr, result.exit_code)

    def shell_instructions(self) -> str:
        """Short description of the shell environment for the agent's prompt."""
        lines = [
            f"- Shell: {self.shell.name} ({self.shell.dialect.value})",
            "- Commands run in the working directory root and must not be interactive.",
        ]
        pools = self.registry.pools()
        if pools:
            example = pools[0]
            lines.append(
                f"- Pool aliases are exported as environment variables, e.g. {example.alias} "
                f"is available as {self.shell.dialect.env_reference(example.env_name)}."
            )
        return "\n".join(lines)

    def _format_result(self, stdout: str, stderr: str, exit_code: int) -> str:
        parts = []
        if stdout:
            parts.append(stdout.rstrip("\n"))
        if stderr:
            parts.append("[stderr]\n" + stderr.rstrip("\n"))
        body = "\n".join(parts) if parts else "(no output)"

        limit = self.config.run_output_max_chars
        if len(body) > limit:
            body = body[:limit] + f"\n... (output truncated, {len(body) - limit} more characters)"
        return f"{body}\n[exit code: {exit_code}]"

    def _snapshot(self, physical: Path, logical: str) -> None:
        if physical.is_file():
            self.undo_records[logical] = physical.read_bytes()
        else:
            # a new file has nothing to restore, older records are stale
            self.undo_records.pop(logical, None)

    def _audit(self, kind: str, tool: str, path: str | None, detail: dict) -> None:
        if self.audit_sink is None:
            return
        self.audit_sink.log(AuditEvent(
            ts=datetime.now(), kind=kind, box=self.box_id, tool=tool, path=path, detail=detail,
        ))


def _lf(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _match_line_endings(content: str, old: str, new: str) -> tuple[str, str]:
    """Convert old/new to the line ending style content predominantly uses."""
    if "\r\n" in content:
        return _lf(old).replace("\n", "\r\n"), _lf(new).replace("\n", "\r\n")
    return _lf(old), _lf(new)
