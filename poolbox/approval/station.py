"""Per-session approval state machine.

States move NONE -> PENDING -> APPROVED | REJECTED -> NONE. A flagged tool
call is parked in the station while PENDING; one decision resolves it and
``release`` hands the decided record back to the dispatcher.

Callers must not dispatch a second flagged call while one is pending. The
station logs such a call and keeps only the newer record.
"""

import logging
import threading
from datetime import datetime
from typing import Any

from poolbox.exceptions import ApprovalStateError
from poolbox.models import ApprovalState, AuditEvent, PendingApproval
from poolbox.observability.audit import AuditSink

logger = logging.getLogger(__name__)


class ApprovalStation:
    """Holds at most one pending approval for a session.

    All methods are thread-safe; an interactive driver polls ``state`` from
    another thread while the agent's turn runs.
    """

    def __init__(self, session_id: str, audit_sink: AuditSink | None = None):
        self.session_id = session_id
        self.audit_sink = audit_sink
        self._lock = threading.Lock()
        self._record: PendingApproval | None = None

    @property
    def state(self) -> ApprovalState:
        """Current state of the session's approval slot."""
        with self._lock:
            return self._record.decision if self._record else ApprovalState.NONE

    @property
    def pending(self) -> PendingApproval | None:
        """The parked record, whatever its decision."""
        with self._lock:
            return self._record

    def is_pending(self) -> bool:
        return self.state is ApprovalState.PENDING

    def suspend(self, tool_name: str, args: dict[str, Any], reason: str) -> PendingApproval:
        """Park a flagged tool call.

        Args:
            tool_name: Name of the suspended tool
            args: Arguments it was called with
            reason: Why the command gate flagged it

        Returns:
            The new PendingApproval
        """
        record = PendingApproval(
            session_id=self.session_id,
            tool_name=tool_name,
            args=dict(args),
            reason=reason,
        )
        with self._lock:
            if self._record is not None:
                logger.warning(
                    "Session %s already has a %s approval for %s; replacing it",
                    self.session_id, self._record.decision.value, self._record.tool_name,
                )
            self._record = record
        self._audit("suspend", record)
        return record

    def approve(self, note: str | None = None) -> PendingApproval:
        """Approve the pending call.

        Raises:
            ApprovalStateError: If nothing is pending
        """
        return self._decide(ApprovalState.APPROVED, note)

    def reject(self, note: str | None = None) -> PendingApproval:
        """Reject the pending call.

        Raises:
            ApprovalStateError: If nothing is pending
        """
        return self._decide(ApprovalState.REJECTED, note)

    def release(self) -> PendingApproval:
        """Take the decided record and reset the station to NONE.

        Raises:
            ApprovalStateError: If no decision has been made
        """
        with self._lock:
            record = self._record
            if record is None or record.decision is ApprovalState.PENDING:
                state = record.decision.value if record else ApprovalState.NONE.value
                raise ApprovalStateError(
                    f"Cannot release approval for session {self.session_id} in state {state}"
                )
            self._record = None
        return record

    def clear(self) -> None:
        """Drop any record, e.g. when the user cancels the turn."""
        with self._lock:
            self._record = None

    def _decide(self, decision: ApprovalState, note: str | None) -> PendingApproval:
        with self._lock:
            record = self._record
            if record is None or record.decision is not ApprovalState.PENDING:
                state = record.decision.value if record else ApprovalState.NONE.value
                raise ApprovalStateError(
                    f"No pending approval for session {self.session_id} (state {state})"
                )
            record.decision = decision
            record.note = note
        logger.info("Session %s: %s %s", self.session_id, decision.value, record.tool_name)
        self._audit(decision.value, record)
        return record

    def _audit(self, action: str, record: PendingApproval) -> None:
        if self.audit_sink is None:
            return
        self.audit_sink.log(AuditEvent(
            ts=datetime.now(),
            kind="approval",
            box=self.session_id,
            tool=record.tool_name,
            detail={"action": action, "reason": record.reason, "note": record.note},
        ))
