"""Boxes: the per-session isolation unit, and the manager that creates them."""

import logging
import threading
from pathlib import Path

from poolbox.approval.station import ApprovalStation
from poolbox.config import BoxConfig
from poolbox.discovery.pools import PoolRegistry
from poolbox.discovery.tiers import CapabilityDiscovery
from poolbox.exec.sandbox import SandboxProvider
from poolbox.exec.shell import ShellSpec
from poolbox.observability.audit import AuditSink
from poolbox.patch.engine import PatchEngine
from poolbox.resources.resolver import PathSandbox
from poolbox.runtime.project import ProjectNotes
from poolbox.runtime.surface import ToolSurface

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "cli"


class Box:
    """One session's working context.

    A box owns its pool registry, undo records and approval station. The
    tool surface, patch engine, capability discovery and project notes are
    built on first use.

    Attributes:
        session_id: Session the box belongs to
        root: Effective working directory
        config: Limits shared with the manager
        registry: This box's pools and manifest cache
        sandbox: Path resolver bound to root and registry
        station: Approval slot of the session
        undo_records: logical path -> previous bytes
    """

    def __init__(
        self,
        session_id: str,
        root: Path,
        config: BoxConfig | None = None,
        audit_sink: AuditSink | None = None,
        provider: SandboxProvider | None = None,
        shell: ShellSpec | None = None,
    ):
        self.session_id = session_id
        self.config = config or BoxConfig()
        self.audit_sink = audit_sink
        self.registry = PoolRegistry(
            scan_depth=self.config.scan_depth,
            description_max_chars=self.config.description_max_chars,
            audit_sink=audit_sink,
            box_id=session_id,
        )
        self.sandbox = PathSandbox(Path(root), self.registry)
        self.root = self.sandbox.root
        self.station = ApprovalStation(session_id, audit_sink=audit_sink)
        self.undo_records: dict[str, bytes] = {}
        self._provider = provider
        self._shell = shell
        self._surface: ToolSurface | None = None
        self._patch_engine: PatchEngine | None = None
        self._discovery: CapabilityDiscovery | None = None
        self._notes: ProjectNotes | None = None
        self._lock = threading.Lock()

    @property
    def surface(self) -> ToolSurface:
        with self._lock:
            if self._surface is None:
                self._surface = ToolSurface(
                    self.sandbox,
                    self.registry,
                    config=self.config,
                    undo_records=self.undo_records,
                    provider=self._provider,
                    shell=self._shell,
                    audit_sink=self.audit_sink,
                    box_id=self.session_id,
                )
            return self._surface

    @property
    def patch_engine(self) -> PatchEngine:
        with self._lock:
            if self._patch_engine is None:
                self._patch_engine = PatchEngine(
                    self.sandbox, audit_sink=self.audit_sink, box_id=self.session_id,
                )
            return self._patch_engine

    @property
    def discovery(self) -> CapabilityDiscovery:
        with self._lock:
            if self._discovery is None:
                self._discovery = CapabilityDiscovery(
                    self.registry,
                    self.sandbox,
                    dynamic_threshold=self.config.dynamic_threshold,
                    search_threshold=self.config.search_threshold,
                    search_limit=self.config.search_limit,
                )
            return self._discovery

    @property
    def notes(self) -> ProjectNotes:
        with self._lock:
            if self._notes is None:
                self._notes = ProjectNotes(self.sandbox, audit_sink=self.audit_sink, box_id=self.session_id)
            return self._notes

    def register_pool(self, alias: str, root: Path, writable: bool = False):
        """Mount a pool into this box."""
        return self.registry.register_pool(alias, root, writable=writable)

    def render_instructions(self) -> str:
        """Environment and capability sections for the agent's prompt."""
        sections = [self.surface.shell_instructions()]
        capabilities = self.discovery.render_instructions()
        if capabilities:
            sections.append(capabilities)
        return "\n\n".join(sections)


class BoxManager:
    """Creates boxes lazily, one per session id.

    Every new box gets the pools declared in the config. Boxes are never
    destroyed by the manager; their lifetime follows the session store.

    Example:
        >>> manager = BoxManager(BoxConfig(work_dir="./project"))
        >>> box = manager.get_box("cli")
        >>> print(box.surface.list_dir("."))
    """

    def __init__(
        self,
        config: BoxConfig | None = None,
        audit_sink: AuditSink | None = None,
        provider: SandboxProvider | None = None,
        shell: ShellSpec | None = None,
    ):
        self.config = config or BoxConfig()
        self.audit_sink = audit_sink
        self.provider = provider
        self.shell = shell
        self._boxes: dict[str, Box] = {}
        self._lock = threading.Lock()

    def get_box(self, session_id: str = DEFAULT_SESSION, cwd: str | Path | None = None) -> Box:
        """Return the session's box, creating it on first use.

        Args:
            session_id: Session identifier
            cwd: Effective working directory, used only when the box is created

        Returns:
            The session's Box
        """
        with self._lock:
            box = self._boxes.get(session_id)
            if box is None:
                root = Path(cwd) if cwd else Path(self.config.work_dir)
                box = Box(
                    session_id,
                    root.expanduser(),
                    config=self.config,
                    audit_sink=self.audit_sink,
                    provider=self.provider,
                    shell=self.shell,
                )
                for alias, pool in self.config.pools.items():
                    box.register_pool(alias, Path(pool.path), writable=pool.writable)
                self._boxes[session_id] = box
                logger.debug("Created box for session %s at %s", session_id, box.root)
            return box

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._boxes)
