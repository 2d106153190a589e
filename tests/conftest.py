"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from poolbox.config import BoxConfig
from poolbox.exec.sandbox import SandboxProvider
from poolbox.exec.shell import ShellDialect, ShellSpec
from poolbox.models import ExecutionResult
from poolbox.observability.audit import MemoryAuditSink
from poolbox.runtime.box import Box, BoxManager

POSIX_SHELL = ShellSpec(ShellDialect.POSIX, ("/bin/sh",), ".sh")


class RecordingProvider(SandboxProvider):
    """Sandbox that records commands instead of running them."""

    def __init__(self, exit_code: int = 0, stdout: str = "", stderr: str = ""):
        self.calls = []
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    def execute(self, command, shell, timeout_s, workdir, env):
        self.calls.append({
            "command": command,
            "shell": shell,
            "timeout_s": timeout_s,
            "workdir": workdir,
            "env": env,
        })
        return ExecutionResult(
            exit_code=self.exit_code,
            stdout=self.stdout,
            stderr=self.stderr,
            duration_ms=1,
        )


def write_manifest(directory: Path, description: str | None = None, body: str = "") -> Path:
    """Create a capability directory with a SKILL.md."""
    directory.mkdir(parents=True, exist_ok=True)
    front = f"---\ndescription: {description}\n---\n" if description is not None else ""
    manifest = directory / "SKILL.md"
    manifest.write_text(front + body, encoding="utf-8")
    return manifest


@pytest.fixture
def box_root(tmp_path: Path) -> Path:
    """Working directory of the box under test."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def pool_root(tmp_path: Path) -> Path:
    """A pool holding two capabilities."""
    root = tmp_path / "shared"
    write_manifest(root / "video", "Cut and merge video clips", "# Video\n\nUse ffmpeg.\n")
    write_manifest(root / "pdf", "Extract text from PDF files", "# PDF\n")
    (root / "video" / "scripts").mkdir()
    (root / "video" / "scripts" / "cut.sh").write_text("echo cut\n")
    return root


@pytest.fixture
def audit() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider(stdout="ok\n")


@pytest.fixture
def box(box_root: Path, audit: MemoryAuditSink, provider: RecordingProvider) -> Box:
    """A box with a recording command provider and a POSIX shell."""
    return Box("test", box_root, config=BoxConfig(), audit_sink=audit, provider=provider, shell=POSIX_SHELL)


@pytest.fixture
def manager(box_root: Path, audit: MemoryAuditSink, provider: RecordingProvider) -> BoxManager:
    config = BoxConfig(work_dir=str(box_root))
    return BoxManager(config, audit_sink=audit, provider=provider, shell=POSIX_SHELL)


@pytest.fixture
def make_manifest():
    """Factory creating capability directories."""
    return write_manifest
