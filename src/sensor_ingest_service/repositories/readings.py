"""In-memory reading store."""
from __future__ import annotations

from collections import deque
from datetime import datetime
from threading import Lock
from typing import Deque

from sensor_ingest_service.domain.dto import ReadingPage
from sensor_ingest_service.domain.models import Reading
from sensor_ingest_service.repositories.base import (
    DEFAULT_PAGE_LIMIT,
    ReadingStore,
    clamp_page,
)

DEFAULT_CAPACITY = 1000


class InMemoryReadingStore(ReadingStore):
    """Bounded FIFO buffer; the oldest reading is evicted once capacity is exceeded."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._lock = Lock()
        self._buffer: Deque[Reading] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    async def append(self, reading: Reading) -> None:
        with self._lock:
            self._buffer.append(reading)
            while len(self._buffer) > self._capacity:
                self._buffer.popleft()

    async def query(
        self,
        device_id: str | None = None,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> ReadingPage:
        offset, limit = clamp_page(offset, limit)
        with self._lock:
            if device_id is not None:
                matches = [r for r in self._buffer if r.device_id == device_id]
            else:
                matches = list(self._buffer)
        page = matches[offset : offset + limit]
        page.reverse()
        return ReadingPage(total=len(matches), offset=offset, limit=limit, items=page)

    async def cleanup_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [r for r in self._buffer if r.received_at >= cutoff]
            removed = len(self._buffer) - len(kept)
            self._buffer = deque(kept)
        return removed

    async def count(self) -> int:
        with self._lock:
            return len(self._buffer)

    async def count_received_since(self, since: datetime) -> int:
        with self._lock:
            return sum(1 for r in self._buffer if r.received_at > since)

    async def latest(self) -> Reading | None:
        with self._lock:
            return self._buffer[-1] if self._buffer else None
