"""Execution module for shell detection and command sandboxes."""

from poolbox.exec.shell import ShellDialect, ShellSpec, detect_shell, translate_command
from poolbox.exec.sandbox import SandboxProvider
from poolbox.exec.local_sandbox import LocalShellSandbox

__all__ = [
    "ShellDialect",
    "ShellSpec",
    "detect_shell",
    "translate_command",
    "SandboxProvider",
    "LocalShellSandbox",
]
