"""Observability module for audit logging."""

from poolbox.observability.audit import (
    AuditSink,
    JSONLAuditSink,
    LoggingAuditSink,
    MemoryAuditSink,
    StdoutAuditSink,
)

__all__ = ["AuditSink", "JSONLAuditSink", "LoggingAuditSink", "MemoryAuditSink", "StdoutAuditSink"]
