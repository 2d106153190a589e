"""Tests for command execution through ToolSurface and LocalShellSandbox."""

import os
import sys
import tempfile

import pytest

from poolbox.exceptions import CommandTimeoutError, ToolInputError
from poolbox.exec.local_sandbox import LocalShellSandbox
from poolbox.exec.shell import detect_shell


class TestSurfaceRun:
    """run() with a recording provider."""

    def test_translates_aliases_and_runs_in_root(self, box, provider, pool_root, box_root):
        box.register_pool("@shared", pool_root)

        out = box.surface.run("ls @shared/video")

        call = provider.calls[0]
        assert call["command"] == 'ls "${SHARED}"/video'
        assert call["env"] == {"SHARED": str(pool_root.resolve())}
        assert call["workdir"] == box_root.resolve()
        assert call["timeout_s"] == 120
        assert out == "ok\n[exit code: 0]"

    def test_stderr_and_exit_code(self, box, provider):
        provider.stdout, provider.stderr, provider.exit_code = "", "boom\n", 2

        assert box.surface.run("false") == "[stderr]\nboom\n[exit code: 2]"

    def test_no_output(self, box, provider):
        provider.stdout = ""

        assert box.surface.run("true") == "(no output)\n[exit code: 0]"

    def test_output_capped(self, box, provider):
        box.config.run_output_max_chars = 10
        provider.stdout = "x" * 25

        out = box.surface.run("yes")

        assert out.startswith("x" * 10 + "\n... (output truncated, 15 more characters)")

    def test_empty_command(self, box):
        with pytest.raises(ToolInputError):
            box.surface.run("  ")

    def test_run_audited(self, box, audit):
        box.surface.run("echo hi")

        event = audit.events[-1]
        assert event.kind == "run"
        assert event.detail["command"] == "echo hi"
        assert event.detail["exit_code"] == 0

    def test_shell_instructions(self, box, pool_root):
        box.register_pool("@shared", pool_root)

        out = box.surface.shell_instructions()

        assert "- Shell: sh (posix)" in out
        assert "@shared is available as $SHARED" in out


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell required")
class TestLocalShellSandbox:
    """Real subprocess execution."""

    def test_env_and_workdir(self, tmp_path):
        result = LocalShellSandbox().execute(
            'echo "$POOL_DIR"\npwd',
            detect_shell(),
            timeout_s=30,
            workdir=tmp_path,
            env={"POOL_DIR": "/srv/pool"},
        )

        lines = result.stdout.splitlines()
        assert result.exit_code == 0
        assert lines[0] == "/srv/pool"
        assert os.path.realpath(lines[1]) == os.path.realpath(tmp_path)
        assert result.meta["sandbox"] == "local_shell"

    def test_exit_code_and_stderr(self, tmp_path):
        result = LocalShellSandbox().execute("echo err >&2; exit 3", detect_shell(), 30, tmp_path, {})

        assert result.exit_code == 3
        assert result.stderr.strip() == "err"

    def test_timeout(self, tmp_path):
        with pytest.raises(CommandTimeoutError, match="timeout"):
            LocalShellSandbox().execute("sleep 3", detect_shell(), 1, tmp_path, {})

    def test_script_removed(self, tmp_path, monkeypatch):
        scripts = tmp_path / "scripts"
        scripts.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(scripts))

        LocalShellSandbox().execute("echo hi", detect_shell(), 30, tmp_path, {})

        assert os.listdir(scripts) == []
