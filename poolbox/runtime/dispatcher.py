"""The call boundary between an agent loop and the boxes.

``call`` routes a named tool call to the session's box. Calls to gated
tools are first classified by the CommandGate; flagged calls are parked in
the session's ApprovalStation and answered with an "approval_required"
response instead of running. After a human decision, ``resume`` either
runs the parked call or returns a "rejected" response.
"""

import logging
from typing import Any

from poolbox.adapters.tool_response import build_approval_response, build_rejected_response
from poolbox.approval.gate import CommandGate
from poolbox.exceptions import ApprovalStateError, ToolNotFoundError
from poolbox.models import ApprovalState, ToolResponse
from poolbox.runtime.box import DEFAULT_SESSION, BoxManager
from poolbox.runtime.registry import ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)

CWD_ARG = "__cwd"


class ToolDispatcher:
    """Dispatches tool calls for many sessions.

    Example:
        >>> dispatcher = ToolDispatcher(BoxManager(config), gate=CommandGate())
        >>> response = dispatcher.call("s1", "bash", {"command": "git push"})
        >>> response.type
        'approval_required'
        >>> _ = dispatcher.manager.get_box("s1").station.approve()
        >>> dispatcher.resume("s1").type
        'result'
    """

    def __init__(
        self,
        manager: BoxManager,
        registry: ToolRegistry | None = None,
        gate: CommandGate | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            manager: Creates and holds the boxes
            registry: Tool table; defaults to build_default_registry()
            gate: Command classifier; None disables approval entirely
        """
        self.manager = manager
        self.registry = registry or build_default_registry()
        self.gate = gate

    def call(
        self,
        session_id: str | None,
        tool: str,
        args: dict[str, Any] | None = None,
    ) -> ToolResponse:
        """Run one tool call.

        Args:
            session_id: Session the call belongs to (default "cli")
            tool: Tool name
            args: Named arguments; ``__cwd`` sets the working directory of a
                  box created by this call and is never passed to the tool

        Returns:
            ToolResponse of type result, error or approval_required
        """
        args = dict(args or {})
        cwd = args.pop(CWD_ARG, None)
        box = self.manager.get_box(session_id or DEFAULT_SESSION, cwd=cwd)

        reason = self._needs_approval(tool, args)
        if reason is not None:
            approval = box.station.suspend(tool, args, reason)
            logger.info("Session %s: %s call suspended: %s", box.session_id, tool, reason)
            return build_approval_response(approval)

        return self.registry.invoke(box, tool, args)

    def resume(self, session_id: str | None) -> ToolResponse:
        """Finish a parked call after the human decided.

        Returns:
            The tool's response when approved, a "rejected" response otherwise

        Raises:
            ApprovalStateError: If the session has no decided approval
        """
        box = self.manager.get_box(session_id or DEFAULT_SESSION)
        approval = box.station.release()
        if approval.decision is ApprovalState.REJECTED:
            return build_rejected_response(approval)
        if approval.decision is not ApprovalState.APPROVED:
            raise ApprovalStateError(f"Unexpected approval decision {approval.decision.value}")
        return self.registry.invoke(box, approval.tool_name, approval.args)

    def pending(self, session_id: str | None):
        """The session's parked approval, if any."""
        return self.manager.get_box(session_id or DEFAULT_SESSION).station.pending

    def _needs_approval(self, tool: str, args: dict[str, Any]) -> str | None:
        if self.gate is None:
            return None
        try:
            spec = self.registry.get(tool)
        except ToolNotFoundError:
            return None
        if not spec.gated:
            return None
        command = args.get("command")
        if not isinstance(command, str):
            return None
        return self.gate.evaluate(command)
