"""Shell dialect detection and pool alias translation for commands."""

import logging
import os
import re
import shutil
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from poolbox.models import Pool

logger = logging.getLogger(__name__)


class ShellDialect(Enum):
    """Shell family commands are written for."""
    POSIX = "posix"
    CMD = "cmd"
    POWERSHELL = "powershell"

    def env_reference(self, name: str) -> str:
        """How a command refers to environment variable name."""
        if self is ShellDialect.CMD:
            return f"%{name}%"
        if self is ShellDialect.POWERSHELL:
            return f"$env:{name}"
        return f"${name}"


@dataclass(frozen=True)
class ShellSpec:
    """A concrete shell: dialect, launcher and script extension."""
    dialect: ShellDialect
    argv: tuple[str, ...]  # launcher, the script path is appended
    extension: str

    @property
    def name(self) -> str:
        return os.path.basename(self.argv[0])


def detect_shell() -> ShellSpec:
    """Probe the host for the shell to run commands with.

    On Windows, COMSPEC decides between PowerShell and cmd. Elsewhere bash is
    preferred when it is on PATH, with /bin/sh as the fallback.
    """
    if os.name == "nt":
        comspec = os.environ.get("COMSPEC", "cmd.exe")
        if "powershell" in comspec.lower():
            return ShellSpec(
                ShellDialect.POWERSHELL,
                (comspec, "-NoProfile", "-ExecutionPolicy", "Bypass", "-File"),
                ".ps1",
            )
        return ShellSpec(ShellDialect.CMD, (comspec, "/c"), ".bat")

    bash = shutil.which("bash")
    if bash:
        return ShellSpec(ShellDialect.POSIX, (bash,), ".sh")
    logger.debug("bash not found on PATH, using /bin/sh")
    return ShellSpec(ShellDialect.POSIX, ("/bin/sh",), ".sh")


def _quote_at(command: str, pos: int) -> str | None:
    """Return the POSIX quote character open at pos, or None."""
    quote = None
    index = 0
    while index < pos:
        char = command[index]
        if quote == "'":
            if char == "'":
                quote = None
        elif char == "\\":
            index += 1
        elif char == quote:
            quote = None
        elif quote is None and char in ("'", '"'):
            quote = char
        index += 1
    return quote


def _posix_reference(name: str, quote: str | None) -> str:
    # the expansion is always double quoted so roots with spaces stay one word
    if quote == '"':
        return f"${{{name}}}"
    if quote == "'":
        return f"'\"${{{name}}}\"'"
    return f"\"${{{name}}}\""


def translate_command(
    command: str,
    pools: Iterable[Pool],
    dialect: ShellDialect,
) -> tuple[str, dict[str, str]]:
    """Replace pool aliases in a command with environment variable references.

    Every pool root is exported through its environment variable, whether
    or not the command mentions it. Longer aliases are replaced first so
    "@data" never clobbers "@data_raw". POSIX references are double quoted
    according to the quoting in effect where the alias appears.

    Args:
        command: Command text as written by the agent
        pools: Registered pools
        dialect: Target shell dialect

    Returns:
        Tuple of (translated command, environment additions)

    Example:
        >>> translate_command("ls @docs/api", [Pool("@docs", Path("/srv/docs"))], ShellDialect.POSIX)
        ('ls "${DOCS}"/api', {'DOCS': '/srv/docs'})
    """
    env: dict[str, str] = {}
    for pool in sorted(pools, key=lambda p: len(p.alias), reverse=True):
        env[pool.env_name] = str(pool.root)
        pattern = re.compile(r"(?<![\w@])" + re.escape(pool.alias) + r"(?![\w-])")
        if dialect is ShellDialect.POSIX:
            name = pool.env_name
            command = pattern.sub(lambda m: _posix_reference(name, _quote_at(m.string, m.start())), command)
        else:
            reference = dialect.env_reference(pool.env_name)
            command = pattern.sub(lambda _m: reference, command)
    return command, env
