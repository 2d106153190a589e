"""Approval module: command classification and the per-session approval state."""

from poolbox.approval.gate import CommandGate, GateRule, DEFAULT_RULES
from poolbox.approval.station import ApprovalStation

__all__ = ["CommandGate", "GateRule", "DEFAULT_RULES", "ApprovalStation"]
