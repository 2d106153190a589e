"""Command-line interface for poolbox.

Runs the same tools an agent gets against a working directory, so pools,
patches and the command gate can be tried without an agent loop.

Commands:
    ls: List a directory (or a tree with --recursive)
    read: Read a window of a file
    grep: Literal search
    glob: Find files by pattern
    patch: Apply a patch from a file or stdin
    gate: Classify a shell command
    skills: List discovered capabilities
    search: Search capabilities by keywords
    explain: Show a capability's instructions
    prompt: Render the instructions an agent would receive
    run: Run a shell command (asks for confirmation with --hitl)

Example:
    $ poolbox --pool @shared=/opt/skills skills
    $ poolbox read src/app.py --start-line 100
    $ git diff | poolbox patch -
    $ poolbox --hitl run "git push"
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from poolbox.approval.gate import CommandGate
from poolbox.config import BoxConfig, PoolConfig, load_config
from poolbox.exceptions import PoolboxError
from poolbox.models import ToolResponse
from poolbox.observability.audit import JSONLAuditSink
from poolbox.runtime.box import DEFAULT_SESSION, BoxManager
from poolbox.runtime.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)


def _pool_mount(value: str) -> tuple[str, str]:
    """Parse "@alias=DIR"."""
    alias, sep, path = value.partition("=")
    if not sep or not alias or not path:
        raise argparse.ArgumentTypeError(f"expected @alias=DIR, got {value!r}")
    return alias, path


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="poolbox",
        description="Sandboxed file and shell tools for coding agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--work-dir", help="Working directory of the box (default: config or .)")
    parser.add_argument(
        "--pool",
        type=_pool_mount,
        action="append",
        default=[],
        metavar="@ALIAS=DIR",
        help="Mount a read-only pool (can be specified multiple times)",
    )
    parser.add_argument(
        "--writable-pool",
        type=_pool_mount,
        action="append",
        default=[],
        metavar="@ALIAS=DIR",
        help="Mount a writable pool (can be specified multiple times)",
    )
    parser.add_argument("--hitl", action="store_true", help="Ask before running flagged commands")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ls_parser = subparsers.add_parser("ls", help="List a directory")
    ls_parser.add_argument("path", nargs="?", default=".")
    ls_parser.add_argument("-r", "--recursive", action="store_true", help="Render a tree")
    ls_parser.add_argument("-a", "--all", dest="show_hidden", action="store_true", help="Show hidden entries")

    read_parser = subparsers.add_parser("read", help="Read a file window")
    read_parser.add_argument("path")
    read_parser.add_argument("--start-line", type=int)
    read_parser.add_argument("--end-line", type=int)

    grep_parser = subparsers.add_parser("grep", help="Search files for literal text")
    grep_parser.add_argument("query")
    grep_parser.add_argument("path", nargs="?", default=".")

    glob_parser = subparsers.add_parser("glob", help="Find files by glob pattern")
    glob_parser.add_argument("pattern")
    glob_parser.add_argument("path", nargs="?", default=".")

    patch_parser = subparsers.add_parser("patch", help="Apply a patch")
    patch_parser.add_argument("file", nargs="?", default="-", help="Patch file, or - for stdin (default)")

    gate_parser = subparsers.add_parser("gate", help="Check whether a command needs approval")
    gate_parser.add_argument("shell_command")

    subparsers.add_parser("skills", help="List discovered capabilities")

    search_parser = subparsers.add_parser("search", help="Search capabilities")
    search_parser.add_argument("query")

    explain_parser = subparsers.add_parser("explain", help="Show a capability's instructions")
    explain_parser.add_argument("path", help="Capability path, e.g. @shared/video")

    subparsers.add_parser("prompt", help="Render the agent instructions for the box")

    run_parser = subparsers.add_parser("run", help="Run a shell command in the box")
    run_parser.add_argument("shell_command")

    return parser


def build_dispatcher(args: argparse.Namespace) -> ToolDispatcher:
    """Build the dispatcher from the config file and command-line overrides."""
    config = load_config(args.config) if args.config else BoxConfig()
    if args.work_dir:
        config.work_dir = args.work_dir
    for alias, path in args.pool:
        config.pools[alias] = PoolConfig(path=path)
    for alias, path in args.writable_pool:
        config.pools[alias] = PoolConfig(path=path, writable=True)
    if args.hitl:
        config.enable_hitl = True

    audit_sink = JSONLAuditSink(Path(config.audit_log)) if config.audit_log else None
    manager = BoxManager(config, audit_sink=audit_sink)
    gate = CommandGate() if config.enable_hitl else None
    return ToolDispatcher(manager, gate=gate)


def _print_response(response: ToolResponse) -> int:
    if response.ok:
        print(response.content)
        return 0
    print(response.content, file=sys.stderr)
    return 1


def _read_patch(file: str) -> str:
    if file == "-":
        return sys.stdin.read()
    path = Path(file)
    if not path.is_file():
        raise PoolboxError(f"Patch file not found: {file}")
    return path.read_text(encoding="utf-8")


def cmd_tool(dispatcher: ToolDispatcher, args: argparse.Namespace) -> int:
    """Execute a command that maps directly onto one tool.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if args.command == "ls":
        call = ("ls", {"path": args.path, "recursive": args.recursive, "show_hidden": args.show_hidden})
    elif args.command == "read":
        call = ("read", {"path": args.path, "start_line": args.start_line, "end_line": args.end_line})
    elif args.command == "grep":
        call = ("grep", {"query": args.query, "path": args.path})
    elif args.command == "glob":
        call = ("glob", {"pattern": args.pattern, "path": args.path})
    elif args.command == "patch":
        call = ("apply_patch", {"patch_text": _read_patch(args.file)})
    elif args.command == "skills":
        call = ("list_skills", {})
    elif args.command == "search":
        call = ("search_skills", {"query": args.query})
    else:
        call = ("explain_skill", {"path": args.path})

    tool, tool_args = call
    return _print_response(dispatcher.call(DEFAULT_SESSION, tool, tool_args))


def cmd_gate(args: argparse.Namespace) -> int:
    """Classify a command.

    Returns:
        0 when no approval is needed, 2 when the command would be flagged
    """
    reason = CommandGate().evaluate(args.shell_command)
    if reason is None:
        print("No approval needed.")
        return 0
    print(f"Approval required: {reason}")
    return 2


def cmd_prompt(dispatcher: ToolDispatcher) -> int:
    print(dispatcher.manager.get_box(DEFAULT_SESSION).render_instructions())
    return 0


def cmd_run(dispatcher: ToolDispatcher, args: argparse.Namespace) -> int:
    """Run a command, asking on stdin when the gate flags it.

    Returns:
        Exit code (0 for success, 1 for error or rejection)
    """
    response = dispatcher.call(DEFAULT_SESSION, "bash", {"command": args.shell_command})
    if response.type == "approval_required":
        station = dispatcher.manager.get_box(DEFAULT_SESSION).station
        print(response.content)
        print(f"Command: {args.shell_command}")
        choice = input("Approve? (y/n) ").strip().lower()
        if choice in ("y", "yes"):
            station.approve()
        else:
            station.reject(note="declined on the command line")
        response = dispatcher.resume(DEFAULT_SESSION)
    return _print_response(response)


def main() -> NoReturn:
    """Main entry point for the CLI.

    Parses command-line arguments, configures logging and dispatches to the
    command handler.
    """
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "gate":
            exit_code = cmd_gate(args)
        else:
            dispatcher = build_dispatcher(args)
            if args.command == "run":
                exit_code = cmd_run(dispatcher, args)
            elif args.command == "prompt":
                exit_code = cmd_prompt(dispatcher)
            else:
                exit_code = cmd_tool(dispatcher, args)
    except PoolboxError as e:
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
