"""Sandbox provider interface for shell command execution.

Different providers (local subprocess, container, remote runner) can be
plugged into a ToolSurface by implementing SandboxProvider.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from poolbox.exec.shell import ShellSpec
from poolbox.models import ExecutionResult


class SandboxProvider(ABC):
    """Abstract interface for running a shell command.

    The provider is responsible for:
    - Running the command with the given shell
    - Capturing stdout and stderr
    - Enforcing the timeout
    - Measuring execution duration
    """

    @abstractmethod
    def execute(
        self,
        command: str,
        shell: ShellSpec,
        timeout_s: int,
        workdir: Path,
        env: dict[str, str],
    ) -> ExecutionResult:
        """Execute a command.

        Args:
            command: Command text, already translated for the shell dialect
            shell: Shell to run the command with
            timeout_s: Maximum execution time in seconds
            workdir: Working directory
            env: Variables added to the inherited environment

        Returns:
            ExecutionResult with exit code, output and duration

        Raises:
            CommandTimeoutError: If the command exceeds timeout_s
        """
        pass
