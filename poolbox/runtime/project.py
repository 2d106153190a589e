"""Project notes kept in the box root: the task list and the guidelines file.

Both files live at fixed names in the working directory. When the project
has a ``.gitignore``, the files are added to it so they stay out of commits.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from poolbox.models import AuditEvent
from poolbox.observability.audit import AuditSink
from poolbox.resources.resolver import PathSandbox
from poolbox.resources.writer import atomic_write_text

logger = logging.getLogger(__name__)

TODO_FILE = "TODO.md"
GUIDELINES_FILE = "CLAUDE.md"
INITIAL_TODO = "# TODO\n\n- [ ] Initial task identified\n"


@dataclass(frozen=True)
class StackProfile:
    """Build and test commands for a project recognized by a marker file."""
    marker: str
    name: str
    commands: tuple[str, ...]


STACK_PROFILES: tuple[StackProfile, ...] = (
    StackProfile("pom.xml", "Java/Maven", (
        "Build: `mvn clean compile`",
        "Test all: `mvn test`",
        "Test single class: `mvn test -Dtest=ClassName`",
    )),
    StackProfile("package.json", "Node.js", (
        "Install dependencies: `npm install`",
        "Build: `npm run build`",
        "Test all: `npm test`",
    )),
    StackProfile("go.mod", "Go", (
        "Build: `go build ./...`",
        "Test all: `go test ./...`",
        "Test single package: `go test ./path/to/pkg`",
    )),
    StackProfile("pyproject.toml", "Python", (
        "Install: `pip install -e .`",
        "Test all: `pytest`",
        "Test single file: `pytest tests/test_module.py`",
    )),
)
GENERIC_COMMANDS = (
    "Build: [Specify build command]",
    "Test: [Specify test command]",
)
GUIDELINES = (
    "**Read-Before-Edit**: Always read the full file content before applying any changes.",
    "**Atomic Changes**: Implement one logical change at a time and verify immediately.",
    "**Test-Driven**: Run relevant test commands from this file after every modification.",
    "**Path Usage**: Use relative paths only (no './' prefix or absolute paths).",
    "**Code Style**: Follow the existing project patterns.",
)


class ProjectNotes:
    """todoread, todowrite and code_init for one box.

    Example:
        >>> notes = ProjectNotes(sandbox)
        >>> notes.todo_write("- [/] Rename getCwd (in_progress)")
        >>> print(notes.todo_read())
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        audit_sink: AuditSink | None = None,
        box_id: str = "default",
    ):
        self.sandbox = sandbox
        self.audit_sink = audit_sink
        self.box_id = box_id

    def todo_read(self) -> str:
        """Return the task list, or a hint when there is none yet."""
        path = self.sandbox.resolve(TODO_FILE)
        if not path.is_file():
            return "[] (The task list is empty. For a task with several steps, create a plan with todowrite.)"
        return path.read_bytes().decode("utf-8", errors="replace")

    def todo_write(self, todos: str) -> str:
        """Replace the task list with todos, a Markdown checklist."""
        content = f"# TODO\n\n{todos.strip()}\n"
        self._write(TODO_FILE, content, "todowrite")
        self._ensure_ignored(TODO_FILE)
        return f"{TODO_FILE} updated. Stay focused on the item marked in_progress."

    def code_init(self) -> str:
        """Detect the project's stack and write the guidelines file.

        An existing guidelines file is regenerated. The task list is created
        with a starter item only when it does not exist yet.
        """
        existed = self.sandbox.resolve(GUIDELINES_FILE).is_file()
        profile = self.detect_stack()
        self._ensure_ignored(GUIDELINES_FILE)
        self._ensure_ignored(TODO_FILE)

        self._write(GUIDELINES_FILE, self.render_guidelines(profile), "code_init")
        if not self.sandbox.resolve(TODO_FILE).exists():
            self._write(TODO_FILE, INITIAL_TODO, "code_init")

        status = "Updated" if existed else "Initialized"
        stack = profile.name if profile else "General"
        logger.info("%s %s in box %s (%s)", status, GUIDELINES_FILE, self.box_id, stack)
        return (
            f"{status} {GUIDELINES_FILE} for {stack} project.\n"
            f"[Instruction]: Please read {GUIDELINES_FILE} to synchronize project rules."
        )

    def detect_stack(self) -> StackProfile | None:
        """First profile whose marker file exists in the box root."""
        for profile in STACK_PROFILES:
            if self.sandbox.resolve(profile.marker).exists():
                return profile
        return None

    def render_guidelines(self, profile: StackProfile | None) -> str:
        commands = profile.commands if profile else GENERIC_COMMANDS
        lines = [
            f"# {GUIDELINES_FILE}",
            "",
            "This file contains project-specific build, test, and style guidelines.",
            "AI assistants must consult this file before making any changes.",
            "",
            "## Build and Test Commands",
            "",
            *(f"- {c}" for c in commands),
            "",
            "## Guidelines",
            "",
            *(f"- {g}" for g in GUIDELINES),
        ]
        return "\n".join(lines) + "\n"

    def _write(self, name: str, content: str, tool: str) -> None:
        path = self.sandbox.resolve(name, write=True)
        atomic_write_text(path, content)
        if self.audit_sink is not None:
            self.audit_sink.log(AuditEvent(
                ts=datetime.now(), kind="write", box=self.box_id, tool=tool, path=name,
                detail={"bytes": len(content.encode("utf-8"))},
            ))

    def _ensure_ignored(self, name: str) -> None:
        gitignore = self.sandbox.resolve(".gitignore", write=True)
        if not gitignore.is_file():
            return
        content = gitignore.read_bytes().decode("utf-8")
        if name in (line.strip() for line in content.splitlines()):
            return
        separator = "" if not content or content.endswith("\n") else "\n"
        atomic_write_text(gitignore, f"{content}{separator}{name}\n")
