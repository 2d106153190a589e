"""poolbox - the execution substrate between a coding agent and the host.

This library gives an agent a sandboxed tool surface over a working directory
and mounted capability pools, a multi-file SEARCH/REPLACE patch engine,
adaptive disclosure of capability manifests, and a command gate that parks
destructive shell commands until a human approves them.
"""

from poolbox.exceptions import (
    PoolboxError,
    SecurityViolation,
    PathEscapeError,
    ReadOnlyPoolError,
    UnknownPoolError,
    PathNotFoundError,
    LineRangeError,
    EditError,
    PatchError,
    PatchMismatchError,
    PartialPatchFailure,
    ApprovalStateError,
)

from poolbox.models import (
    Pool,
    CapabilityManifest,
    PatchSummary,
    ExecutionResult,
    AuditEvent,
    ToolResponse,
    ApprovalState,
    PendingApproval,
    DisclosureTier,
)

from poolbox.config import BoxConfig, PoolConfig, load_config
from poolbox.observability import AuditSink, JSONLAuditSink, StdoutAuditSink
from poolbox.approval import ApprovalStation, CommandGate
from poolbox.runtime import Box, BoxManager, ToolDispatcher, ToolRegistry, build_default_registry
from poolbox.agent import InteractiveDriver, TurnOutcome

__version__ = "0.1.0"

__all__ = [
    # Exceptions
    "PoolboxError",
    "SecurityViolation",
    "PathEscapeError",
    "ReadOnlyPoolError",
    "UnknownPoolError",
    "PathNotFoundError",
    "LineRangeError",
    "EditError",
    "PatchError",
    "PatchMismatchError",
    "PartialPatchFailure",
    "ApprovalStateError",
    # Models
    "Pool",
    "CapabilityManifest",
    "PatchSummary",
    "ExecutionResult",
    "AuditEvent",
    "ToolResponse",
    "ApprovalState",
    "PendingApproval",
    "DisclosureTier",
    # Configuration
    "BoxConfig",
    "PoolConfig",
    "load_config",
    # Observability
    "AuditSink",
    "JSONLAuditSink",
    "StdoutAuditSink",
    # Approval
    "ApprovalStation",
    "CommandGate",
    # Runtime
    "Box",
    "BoxManager",
    "ToolDispatcher",
    "ToolRegistry",
    "build_default_registry",
    # Interactive driver
    "InteractiveDriver",
    "TurnOutcome",
]
