"""Audit sinks recording what happened inside a box.

Every mutating operation (write, edit, undo, run, patch), pool scans and
approval decisions are reported through an AuditSink.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from poolbox.models import AuditEvent


class AuditSink(ABC):
    """Abstract interface for audit logging."""

    @abstractmethod
    def log(self, event: AuditEvent) -> None:
        """Record an audit event.

        Args:
            event: The AuditEvent to record
        """
        pass


class JSONLAuditSink(AuditSink):
    """Appends audit events to a JSONL (JSON Lines) file.

    Example log file content:
        {"ts":"2024-01-01T12:00:00","kind":"write","box":"cli","tool":"write","path":"a.txt",...}
        {"ts":"2024-01-01T12:00:01","kind":"run","box":"cli","tool":"bash","path":null,...}
    """

    def __init__(self, log_path: Path):
        """Initialize JSONLAuditSink with log file path.

        Args:
            log_path: Path to the JSONL log file. Parent directories are
                      created if they don't exist.
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def log(self, event: AuditEvent) -> None:
        """Append audit event as a JSON line to the log file."""
        json_line = json.dumps(event.to_dict(), separators=(",", ":"))
        with self._lock:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json_line + "\n")


class StdoutAuditSink(AuditSink):
    """Prints audit events to stdout as JSON lines."""

    def log(self, event: AuditEvent) -> None:
        print(json.dumps(event.to_dict(), separators=(",", ":")))


class LoggingAuditSink(AuditSink):
    """Forwards audit events to a standard library logger."""

    def __init__(self, logger_name: str = "poolbox.audit", level: int = logging.INFO):
        self.logger = logging.getLogger(logger_name)
        self.level = level

    def log(self, event: AuditEvent) -> None:
        self.logger.log(
            self.level,
            "%s box=%s tool=%s path=%s %s",
            event.kind, event.box, event.tool, event.path,
            json.dumps(event.detail, default=str),
        )


class MemoryAuditSink(AuditSink):
    """Keeps events in a list; used by tests and embedding applications."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]
