"""Heuristic danger classifier for shell commands.

The gate is an ordered table of (rule, reason) pairs evaluated first match
wins. Anything no rule matches is allowed. False negatives are expected;
the gate guards against naive misuse by a cooperating model, not against
an adversary.
"""

import re
import shlex
from dataclasses import dataclass
from typing import Callable

PRIVILEGE_VERBS = frozenset({
    "sudo", "su", "chown", "chmod", "chgrp", "passwd", "visudo", "alias", "unalias",
})
PROCESS_VERBS = frozenset({
    "kill", "pkill", "killall", "xargs", "nohup", "disown",
    "reboot", "shutdown", "init", "systemctl", "service",
})
SENSITIVE_PATHS = (
    "/etc/", "/var/", "/root/", "/proc/", "/sys/",
    "~/.ssh", "~/.bashrc", "~/.zshrc", "~/.aws",
)
ENV_MODIFIER_TOOLS = frozenset({
    "apt", "apt-get", "yum", "dnf", "npm", "pnpm", "yarn", "pip", "pip3",
    "docker", "kubectl", "git", "brew", "cargo",
})
MODIFYING_SUBCOMMANDS = frozenset({
    "install", "i", "add", "remove", "rm", "uninstall", "publish", "push",
    "commit", "checkout", "reset", "update", "upgrade", "stop", "prune",
    "build", "config", "set",
})
NETWORK_TOOLS = frozenset({
    "curl", "wget", "ssh", "scp", "sftp", "ftp", "nc", "ncat", "netcat",
    "telnet", "dig", "nslookup", "ping", "rsync",
})
INFO_FLAGS = frozenset({"--help", "--version", "-V"})
PIPE_WHITELIST = frozenset({
    "grep", "egrep", "fgrep", "head", "tail", "awk", "sort", "uniq", "wc",
    "jq", "column", "less", "sed", "xxd", "cut", "tr",
})
BROAD_TARGETS = frozenset({".", "./", "..", "../", "~", "~/", "/", "/*"})
SHELLS = frozenset({"sh", "bash", "zsh", "dash", "ksh"})
COMMAND_SEPARATORS = frozenset({"|", "||", ";", "&", "&&", "("})
MAX_NESTING = 3


def tokenize(command: str) -> list[str]:
    """Split a command into words and shell operators.

    Falls back to splitting on whitespace and operator characters when the
    command has unbalanced quotes.
    """
    lexer = shlex.shlex(command, posix=True, punctuation_chars=";&|()<>")
    lexer.whitespace_split = True
    try:
        return list(lexer)
    except ValueError:
        return [t for t in re.split(r"\s+|([;&|()<>]+)", command) if t]


def command_words(tokens: list[str], depth: int = 0) -> list[str]:
    """Normalize tokens for the verb rules.

    A path in command position counts by its basename, and the script given
    to a shell with ``-c`` is tokenized and spliced in after the flag.
    """
    words: list[str] = []
    at_command = True
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in COMMAND_SEPARATORS:
            words.append(token)
            at_command = True
            index += 1
            continue

        if at_command and "/" in token.rstrip("/"):
            token = token.rstrip("/").rsplit("/", 1)[1]
        words.append(token)

        script = tokens[index + 2] if index + 2 < len(tokens) else None
        if at_command and token in SHELLS and tokens[index + 1:index + 2] == ["-c"] and script is not None:
            words.append("-c")
            if depth < MAX_NESTING:
                words.extend(command_words(tokenize(script), depth + 1))
            else:
                words.append(script)
            index += 3
        else:
            index += 1
        at_command = False
    return words


def _has_injection(command: str, tokens: list[str]) -> bool:
    return "`" in command or "$(" in command or "/dev/" in command


def _has_privileged_verb(command: str, tokens: list[str]) -> bool:
    return any(t in PRIVILEGE_VERBS or t in PROCESS_VERBS for t in tokens)


def _touches_sensitive_path(command: str, tokens: list[str]) -> bool:
    if "../" in command or "..\\" in command:
        return True
    return any(p in command for p in SENSITIVE_PATHS)


def _modifies_environment(command: str, tokens: list[str]) -> bool:
    for index, token in enumerate(tokens):
        if token in ENV_MODIFIER_TOOLS:
            if any(t in MODIFYING_SUBCOMMANDS for t in tokens[index + 1:]):
                return True
    return False


def _uses_network(command: str, tokens: list[str]) -> bool:
    if not any(t in NETWORK_TOOLS for t in tokens):
        return False
    return not any(t in INFO_FLAGS for t in tokens)


def _chains_commands(command: str, tokens: list[str]) -> bool:
    if ";" in command or "&" in command or "||" in command:
        return True
    if "|" not in tokens:
        return False

    stages: list[list[str]] = [[]]
    for token in tokens:
        if token == "|":
            stages.append([])
        else:
            stages[-1].append(token)
    return any(not stage or stage[0] not in PIPE_WHITELIST for stage in stages[1:])


def _is_recursive_flag(flag: str) -> bool:
    if flag == "--recursive":
        return True
    return not flag.startswith("--") and ("r" in flag or "R" in flag)


def _is_broad_target(target: str) -> bool:
    return target in BROAD_TARGETS or "*" in target or "?" in target


def _broad_delete_or_move(command: str, tokens: list[str]) -> bool:
    for index, token in enumerate(tokens):
        if token not in ("rm", "mv"):
            continue
        args = []
        for arg in tokens[index + 1:]:
            if arg in ("|", ";", "&", "&&", "||"):
                break
            args.append(arg)
        flags = [a for a in args if a.startswith("-") and a != "-"]
        targets = [a for a in args if not a.startswith("-")]
        if not any(_is_broad_target(t) for t in targets):
            continue
        if token == "mv" or any(_is_recursive_flag(f) for f in flags):
            return True
    return False


@dataclass(frozen=True)
class GateRule:
    """One row of the classification table."""
    name: str
    check: Callable[[str, list[str]], bool]
    reason: str


DEFAULT_RULES: tuple[GateRule, ...] = (
    GateRule(
        "injection", _has_injection,
        "Command substitution or raw device access detected.",
    ),
    GateRule(
        "privilege", _has_privileged_verb,
        "System privilege or process control command detected.",
    ),
    GateRule(
        "sensitive_path", _touches_sensitive_path,
        "Path traversal or access to a sensitive system path detected.",
    ),
    GateRule(
        "environment", _modifies_environment,
        "Package manager or environment-modifying operation detected.",
    ),
    GateRule(
        "network", _uses_network,
        "Outbound network access detected.",
    ),
    GateRule(
        "chaining", _chains_commands,
        "Chained commands or a pipe into a non read-only tool detected; run one command at a time.",
    ),
    GateRule(
        "broad_delete", _broad_delete_or_move,
        "Recursive delete or move over a wildcard or directory-wide target detected.",
    ),
)


class CommandGate:
    """Classifies shell commands as safe or needing approval.

    Example:
        >>> gate = CommandGate()
        >>> gate.evaluate("git status") is None
        True
        >>> gate.evaluate("git push")
        'Package manager or environment-modifying operation detected.'
    """

    def __init__(self, rules: tuple[GateRule, ...] = DEFAULT_RULES):
        self.rules = rules

    def match(self, command: str | None) -> GateRule | None:
        """Return the first rule that flags command, or None."""
        if command is None or not command.strip():
            return None
        command = command.strip()
        tokens = command_words(tokenize(command))
        for rule in self.rules:
            if rule.check(command, tokens):
                return rule
        return None

    def evaluate(self, command: str | None) -> str | None:
        """Return the reason approval is needed, or None if the command is safe."""
        rule = self.match(command)
        return rule.reason if rule else None
