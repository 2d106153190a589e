"""Pool registration and the capability manifest cache of a box."""

import logging
import threading
from datetime import datetime
from pathlib import Path

from poolbox.discovery.index import ManifestIndexer
from poolbox.discovery.scanner import ManifestScanner
from poolbox.exceptions import DuplicatePoolError, PoolboxError
from poolbox.models import AuditEvent, CapabilityManifest, Pool
from poolbox.observability.audit import AuditSink

logger = logging.getLogger(__name__)


def normalize_alias(alias: str) -> str:
    """Return alias with exactly one leading '@'.

    Raises:
        PoolboxError: If the alias is empty or contains a path separator
    """
    name = alias.strip().lstrip("@")
    if not name or "/" in name or "\\" in name:
        raise PoolboxError(f"Invalid pool alias: {alias!r}")
    return f"@{name}"


class PoolRegistry:
    """Maps pool aliases to roots and caches the manifests found under them.

    Each box owns its own registry; nothing is shared between boxes.

    Example:
        >>> registry = PoolRegistry()
        >>> registry.register_pool("@shared", Path("/opt/skills"))
        >>> [m.alias_path for m in registry.manifests()]
        ['@shared/video', '@shared/pdf']
    """

    def __init__(
        self,
        scan_depth: int = 3,
        description_max_chars: int = 150,
        audit_sink: AuditSink | None = None,
        box_id: str = "default",
    ):
        """Initialize an empty registry.

        Args:
            scan_depth: Depth bound for manifest scanning (root is level 0)
            description_max_chars: Truncation length for descriptions
            audit_sink: Optional sink receiving "scan" events
            box_id: Box identifier used in audit events
        """
        self.scanner = ManifestScanner(max_depth=scan_depth)
        self.indexer = ManifestIndexer(description_max_chars=description_max_chars)
        self.audit_sink = audit_sink
        self.box_id = box_id
        self._pools: dict[str, Pool] = {}
        self._manifests: dict[str, CapabilityManifest] = {}
        self._lock = threading.RLock()

    def register_pool(self, alias: str, root: Path, writable: bool = False) -> Pool:
        """Register a pool and scan it for manifests.

        Args:
            alias: Pool alias, with or without the leading '@'
            root: Physical root directory (need not exist yet)
            writable: Whether write intent is allowed inside the pool

        Returns:
            The registered Pool

        Raises:
            DuplicatePoolError: If the alias is already registered
        """
        alias = normalize_alias(alias)
        pool = Pool(alias=alias, root=Path(root).expanduser().resolve(), writable=writable)

        with self._lock:
            if alias in self._pools:
                raise DuplicatePoolError(f"Pool alias already registered: {alias}")
            self._pools[alias] = pool
            found = self._scan(pool)

        logger.info("Registered pool %s (%d manifests, writable=%s)", alias, found, writable)
        return pool

    def unregister_pool(self, alias: str) -> bool:
        """Remove a pool and its manifests. Returns False if it was not registered."""
        alias = normalize_alias(alias)
        with self._lock:
            if self._pools.pop(alias, None) is None:
                return False
            self._manifests = {
                key: m for key, m in self._manifests.items()
                if key != alias and not key.startswith(alias + "/")
            }
        return True

    def get(self, alias: str) -> Pool | None:
        """Look up a pool by exact alias."""
        with self._lock:
            return self._pools.get(alias)

    def pools(self) -> list[Pool]:
        """Registered pools in registration order."""
        with self._lock:
            return list(self._pools.values())

    def manifests(self) -> list[CapabilityManifest]:
        """Snapshot of all cached manifests, sorted by alias path."""
        with self._lock:
            return [self._manifests[key] for key in sorted(self._manifests)]

    def manifest(self, alias_path: str) -> CapabilityManifest | None:
        """Look up a cached manifest by alias-qualified path."""
        with self._lock:
            return self._manifests.get(alias_path.rstrip("/"))

    def refresh(self) -> int:
        """Drop the manifest cache and rescan every pool.

        Returns:
            Number of manifests found
        """
        with self._lock:
            self._manifests = {}
            for pool in self._pools.values():
                self._scan(pool)
            return len(self._manifests)

    def env_vars(self) -> dict[str, str]:
        """Environment variables exposing each pool root to child processes."""
        with self._lock:
            return {pool.env_name: str(pool.root) for pool in self._pools.values()}

    def _scan(self, pool: Pool) -> int:
        directories = self.scanner.scan(pool.root)
        manifests = self.indexer.index(pool, directories)
        for manifest in manifests:
            self._manifests[manifest.alias_path] = manifest

        if self.audit_sink is not None:
            self.audit_sink.log(AuditEvent(
                ts=datetime.now(),
                kind="scan",
                box=self.box_id,
                path=pool.alias,
                detail={"manifests": len(manifests)},
            ))
        return len(manifests)
