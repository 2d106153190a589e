"""Directory listings for the agent, flat or as a bounded tree."""

import os
from pathlib import Path

from poolbox.discovery.scanner import find_manifest_file
from poolbox.exceptions import PathNotFoundError
from poolbox.resources.resolver import is_hidden, is_ignored


def format_size(size: int) -> str:
    """Human readable file size."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


class DirectoryLister:
    """Renders directory contents, skipping ignored and (optionally) hidden entries.

    Flat listing:

        [DIR]  docs/
        [DIR]  video/ [SKILL]
        [FILE] README.md (1.2 KB)

    Tree listing (depth-capped):

        project/
        ├── src/
        │   └── app.py
        └── README.md
    """

    def __init__(self, tree_depth: int = 3):
        self.tree_depth = tree_depth

    def render(self, path: Path, display: str, recursive: bool = False, show_hidden: bool = False) -> str:
        """List a directory.

        Args:
            path: Physical directory
            display: Logical path used as the tree's root label
            recursive: Render a tree instead of a flat list
            show_hidden: Include dot-prefixed entries

        Returns:
            Rendered listing, or "(empty directory)"

        Raises:
            PathNotFoundError: If the path does not exist
        """
        if not path.exists():
            raise PathNotFoundError(f"Path not found: {display}")
        if path.is_file():
            return f"[FILE] {path.name} ({format_size(path.stat().st_size)})"

        if recursive:
            lines = [f"{display.rstrip('/')}/"]
            self._tree(path, "", 1, show_hidden, lines)
            if len(lines) == 1:
                return "(empty directory)"
            return "\n".join(lines)

        lines = []
        for entry in self._entries(path, show_hidden):
            if entry.is_dir():
                marker = " [SKILL]" if find_manifest_file(entry) else ""
                lines.append(f"[DIR]  {entry.name}/{marker}")
            else:
                lines.append(f"[FILE] {entry.name} ({format_size(entry.stat().st_size)})")
        return "\n".join(lines) if lines else "(empty directory)"

    def _entries(self, path: Path, show_hidden: bool) -> list[Path]:
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                if is_ignored(entry.name):
                    continue
                if not show_hidden and is_hidden(entry.name):
                    continue
                entries.append(Path(entry.path))
        return sorted(entries, key=lambda p: p.name)

    def _tree(self, path: Path, prefix: str, depth: int, show_hidden: bool, lines: list[str]) -> None:
        entries = self._entries(path, show_hidden)
        # directories first
        entries.sort(key=lambda p: (not p.is_dir(), p.name))
        for index, entry in enumerate(entries):
            last = index == len(entries) - 1
            connector = "└── " if last else "├── "
            if entry.is_dir():
                marker = " [SKILL]" if find_manifest_file(entry) else ""
                lines.append(f"{prefix}{connector}{entry.name}/{marker}")
                if depth < self.tree_depth:
                    extension = "    " if last else "│   "
                    self._tree(entry, prefix + extension, depth + 1, show_hidden, lines)
            else:
                lines.append(f"{prefix}{connector}{entry.name}")
