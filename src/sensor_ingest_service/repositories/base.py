"""Reading storage interface."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from sensor_ingest_service.domain.dto import ReadingPage
from sensor_ingest_service.domain.models import Reading

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 500


def clamp_page(offset: int, limit: int) -> tuple[int, int]:
    """Normalize pagination input: non-negative offset, limit within [0, MAX_PAGE_LIMIT]."""
    return max(offset, 0), min(max(limit, 0), MAX_PAGE_LIMIT)


class ReadingStore(ABC):
    """Insertion-ordered storage of readings.

    Pages are taken from the oldest end of the (optionally filtered) set and
    returned newest first.
    """

    @abstractmethod
    async def append(self, reading: Reading) -> None: ...

    @abstractmethod
    async def query(
        self,
        device_id: str | None = None,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> ReadingPage: ...

    @abstractmethod
    async def cleanup_older_than(self, cutoff: datetime) -> int:
        """Remove readings received strictly before ``cutoff``; return how many."""

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def count_received_since(self, since: datetime) -> int:
        """Count readings received strictly after ``since``."""

    @abstractmethod
    async def latest(self) -> Reading | None:
        """Return the most recently inserted reading."""
