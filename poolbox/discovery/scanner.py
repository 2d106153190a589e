"""Filesystem scanning for capability manifests."""

import logging
import os
from pathlib import Path

from poolbox.resources.resolver import is_hidden, is_ignored

logger = logging.getLogger(__name__)

MANIFEST_NAME = "skill.md"


def find_manifest_file(directory: Path) -> Path | None:
    """Return the manifest file of a directory, matching its name case-insensitively.

    When several spellings exist (SKILL.md and skill.md) the first in sorted
    order wins.
    """
    try:
        with os.scandir(directory) as it:
            names = sorted(
                entry.name for entry in it
                if entry.name.lower() == MANIFEST_NAME and entry.is_file()
            )
    except (FileNotFoundError, NotADirectoryError):
        return None
    return Path(directory) / names[0] if names else None


class ManifestScanner:
    """Scans a pool root for capability directories.

    A capability directory is one that contains a manifest file (SKILL.md,
    any case). The root counts as level 0; directories down to level
    ``max_depth - 1`` are inspected. Scanning does not descend into a
    matched directory, so nested manifests are never reported.
    """

    def __init__(self, max_depth: int = 3):
        """Initialize the scanner.

        Args:
            max_depth: Depth bound of the walk, the root being level 0
        """
        self.max_depth = max_depth

    def scan(self, root: Path) -> list[Path]:
        """Find all capability directories under root.

        Args:
            root: Directory to scan

        Returns:
            Sorted list of directories containing a manifest

        Example:
            >>> scanner = ManifestScanner()
            >>> dirs = scanner.scan(Path("/opt/skills"))
            >>> print(f"Found {len(dirs)} capabilities")
        """
        root = Path(root)
        if not root.is_dir():
            logger.debug("Pool root %s is not a directory, nothing to scan", root)
            return []

        found: list[Path] = []
        self._visit(root, 0, found)
        return found

    def _visit(self, directory: Path, level: int, found: list[Path]) -> None:
        if find_manifest_file(directory) is not None:
            found.append(directory)
            return
        if level + 1 >= self.max_depth:
            return

        try:
            with os.scandir(directory) as it:
                children = sorted(
                    entry.name for entry in it
                    if entry.is_dir() and not is_hidden(entry.name) and not is_ignored(entry.name)
                )
        except PermissionError as e:
            logger.warning("Cannot scan %s: %s", directory, e)
            return

        for name in children:
            self._visit(directory / name, level + 1, found)
