"""Local subprocess sandbox implementation.

Security Note:
    LocalShellSandbox provides no isolation beyond a separate process. The
    command runs with the user's permissions; containment comes only from
    path checks, alias translation and the command gate upstream.
"""

import contextlib
import logging
import os
import subprocess
import tempfile
import time
from pathlib import Path

from poolbox.exceptions import CommandTimeoutError
from poolbox.exec.sandbox import SandboxProvider
from poolbox.exec.shell import ShellDialect, ShellSpec
from poolbox.models import ExecutionResult

logger = logging.getLogger(__name__)


class LocalShellSandbox(SandboxProvider):
    """Run commands as local subprocesses through a temporary script file.

    Writing the command to a script lets multi-line commands and shell
    syntax reach the interpreter unchanged.

    Example:
        >>> sandbox = LocalShellSandbox()
        >>> result = sandbox.execute(
        ...     command="echo $DOCS",
        ...     shell=detect_shell(),
        ...     timeout_s=30,
        ...     workdir=Path("/work"),
        ...     env={"DOCS": "/srv/docs"},
        ... )
        >>> print(result.stdout)
        /srv/docs
    """

    def execute(
        self,
        command: str,
        shell: ShellSpec,
        timeout_s: int,
        workdir: Path,
        env: dict[str, str],
    ) -> ExecutionResult:
        """Execute command as a local subprocess.

        Args:
            command: Command text, already translated for the shell dialect
            shell: Shell to run the command with
            timeout_s: Maximum execution time in seconds
            workdir: Working directory
            env: Variables added to the inherited environment

        Returns:
            ExecutionResult; output is decoded as UTF-8 with replacement

        Raises:
            CommandTimeoutError: If the command exceeds timeout_s
        """
        fd, script = tempfile.mkstemp(prefix="poolbox_", suffix=shell.extension)
        try:
            encoding = "utf-8-sig" if shell.dialect is ShellDialect.POWERSHELL else "utf-8"
            with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
                f.write(command)
                if not command.endswith("\n"):
                    f.write("\n")

            start_time = time.time()
            try:
                result = subprocess.run(
                    [*shell.argv, script],
                    stdin=subprocess.DEVNULL,
                    capture_output=True,
                    timeout=timeout_s,
                    cwd=str(workdir),
                    env={**os.environ, **env},
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                stdout = e.stdout.decode("utf-8", errors="replace") if e.stdout else ""
                raise CommandTimeoutError(
                    f"Command exceeded {timeout_s}s timeout. "
                    f"Partial output: {stdout[-500:]}"
                ) from e

            duration_ms = int((time.time() - start_time) * 1000)
            logger.debug("Command finished with exit code %d in %d ms", result.returncode, duration_ms)

            return ExecutionResult(
                exit_code=result.returncode,
                stdout=result.stdout.decode("utf-8", errors="replace"),
                stderr=result.stderr.decode("utf-8", errors="replace"),
                duration_ms=duration_ms,
                meta={"sandbox": "local_shell", "shell": shell.name},
            )
        finally:
            with contextlib.suppress(OSError):
                os.unlink(script)
