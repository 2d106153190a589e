"""Logical path resolution and containment for a box."""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterable, Protocol

from poolbox.exceptions import PathEscapeError, ReadOnlyPoolError, UnknownPoolError
from poolbox.models import Pool

logger = logging.getLogger(__name__)

# Directory and file names skipped by listing and search. A filter, not a boundary.
IGNORED_NAMES = frozenset({
    ".git", ".svn", ".hg",
    "node_modules", "__pycache__", ".venv", "venv",
    ".mypy_cache", ".pytest_cache", ".tox",
    "dist", "build", "target",
    ".idea", ".DS_Store", ".system",
})


def is_ignored(name: str) -> bool:
    """Return True if a directory entry name belongs to the ignore set."""
    return name in IGNORED_NAMES


def is_hidden(name: str) -> bool:
    """Return True for dot-prefixed names."""
    return name.startswith(".")


class PoolLookup(Protocol):
    """What PathSandbox needs from a pool registry."""

    def get(self, alias: str) -> Pool | None: ...

    def pools(self) -> Iterable[Pool]: ...


class PathSandbox:
    """Resolves logical paths to physical paths inside a box.

    A logical path is either relative to the box root ("src/app.py") or
    qualified by a pool alias ("@docs/readme.md"). Normalization is lexical;
    the box root itself is resolved once at construction.
    """

    def __init__(self, root: Path, pools: PoolLookup):
        """Initialize with box root and pool lookup.

        Args:
            root: The box root directory
            pools: Registry used to resolve "@alias" prefixes
        """
        self.root = Path(root).resolve()
        self.pools = pools

    def resolve(self, path: str | None, write: bool = False) -> Path:
        """Resolve a logical path and validate containment.

        This method ensures that:
        1. Empty paths and "." map to the box root
        2. "@alias/..." paths resolve inside a registered pool
        3. Write intent against a read-only pool is refused
        4. Any other path is relative and stays under the box root

        Args:
            path: Logical path (e.g., "src/main.py" or "@docs/readme.md")
            write: Whether the caller intends to modify the target

        Returns:
            Absolute physical Path

        Raises:
            UnknownPoolError: If the alias is not registered
            ReadOnlyPoolError: If write intent targets a read-only pool
            PathEscapeError: If the path is absolute or normalizes outside its root
        """
        logical = self._clean(path)
        if not logical:
            return self.root

        if logical.startswith("@"):
            alias, _, rest = logical.partition("/")
            pool = self.pools.get(alias)
            if pool is None:
                raise UnknownPoolError(f"unknown pool alias: {alias}")
            if write and not pool.writable:
                raise ReadOnlyPoolError(f"read-only pool: {alias}")
            return self._contain(Path(pool.root), rest, path)

        if PurePosixPath(logical).is_absolute() or Path(logical).is_absolute() or _has_drive(logical):
            raise PathEscapeError(f"path escape: absolute paths are not allowed: {path}")

        return self._contain(self.root, logical, path)

    def to_logical(self, physical: Path) -> str:
        """Render a physical path in its logical, display form.

        Args:
            physical: Absolute path inside the box root or a pool

        Returns:
            Box-relative POSIX path ("." for the root) or "@alias/rel"

        Raises:
            PathEscapeError: If the path lies outside every known root
        """
        physical = Path(os.path.normpath(physical))
        candidates: list[tuple[Path, str | None]] = [(self.root, None)]
        candidates.extend((Path(pool.root), pool.alias) for pool in self.pools.pools())
        # most specific root wins when a pool is mounted inside the box
        candidates.sort(key=lambda item: len(item[0].parts), reverse=True)

        for root, alias in candidates:
            try:
                rel = physical.relative_to(root)
            except ValueError:
                continue
            rel_str = rel.as_posix()
            if alias is None:
                return rel_str
            return alias if rel_str == "." else f"{alias}/{rel_str}"

        raise PathEscapeError(f"path escape: {physical.name} is outside the box")

    def _clean(self, path: str | None) -> str:
        if path is None:
            return ""
        logical = path.strip().replace("\\", "/")
        while logical.startswith("./"):
            logical = logical[2:]
        if logical == ".":
            return ""
        return logical

    def _contain(self, root: Path, rel: str, original: str | None) -> Path:
        candidate = Path(os.path.normpath(os.path.join(root, rel))) if rel else root
        try:
            candidate.relative_to(root)
        except ValueError:
            logger.debug("Rejected path %r normalizing to outside of its root", original)
            raise PathEscapeError(f"path escape: {original}")
        return candidate


def _has_drive(path: str) -> bool:
    return len(path) >= 2 and path[1] == ":" and path[0].isalpha()
