"""Bounded audit trail of ingestion attempts."""
from __future__ import annotations

from collections import deque
from threading import Lock

import structlog

from sensor_ingest_service.domain.enums import LogStatus
from sensor_ingest_service.domain.models import ConnectionLogEntry

logger = structlog.get_logger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_RECENT = 50

_LEVELS = {
    LogStatus.SUCCESS: "info",
    LogStatus.INFO: "info",
    LogStatus.WARNING: "warning",
    LogStatus.ERROR: "error",
}


class ConnectionLog:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._lock = Lock()
        self._entries: deque[ConnectionLogEntry] = deque(maxlen=capacity)

    def record(self, entry: ConnectionLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)
        getattr(logger, _LEVELS[entry.status])(
            "connection_log",
            status=entry.status.value,
            message=entry.message,
            ip=entry.ip,
        )

    def recent(self, n: int = DEFAULT_RECENT) -> list[ConnectionLogEntry]:
        """Last ``n`` entries, newest first."""
        if n <= 0:
            return []
        with self._lock:
            tail = list(self._entries)[-n:]
        tail.reverse()
        return tail

    def count(self) -> int:
        with self._lock:
            return len(self._entries)
