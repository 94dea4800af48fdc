"""Read-side service: readings, devices, logs, statistics and cleanup."""
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

from sensor_ingest_service.domain.dto import CleanupResult, ReadingPage, Statistics
from sensor_ingest_service.domain.models import ConnectionLogEntry, Device
from sensor_ingest_service.repositories import ConnectionLog, DeviceRegistry, ReadingStore
from sensor_ingest_service.repositories.base import DEFAULT_PAGE_LIMIT
from sensor_ingest_service.repositories.connection_log import DEFAULT_RECENT

DEFAULT_CLEANUP_DAYS = 7
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class QueryEngine:
    def __init__(
        self,
        registry: DeviceRegistry,
        store: ReadingStore,
        connection_log: ConnectionLog,
    ):
        self._registry = registry
        self._store = store
        self._log = connection_log
        self._started = time.monotonic()

    def list_devices(self) -> tuple[int, dict[str, Device]]:
        devices = self._registry.all()
        return len(devices), devices

    async def list_readings(
        self,
        device_id: str | None = None,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> ReadingPage:
        return await self._store.query(device_id, offset=offset, limit=limit)

    def recent_logs(self, n: int = DEFAULT_RECENT) -> tuple[int, list[ConnectionLogEntry]]:
        """Return the number of retained entries and the last ``n``, newest first."""
        return self._log.count(), self._log.recent(n)

    async def statistics(self, now: datetime | None = None) -> Statistics:
        now = now or datetime.now(timezone.utc)
        return Statistics(
            total_devices=self._registry.count(),
            total_data_points=await self._store.count(),
            data_last_hour=await self._store.count_received_since(now - timedelta(hours=1)),
            data_last_24h=await self._store.count_received_since(now - timedelta(hours=24)),
            latest_entry=await self._store.latest(),
            server_uptime=round(time.monotonic() - self._started, 3),
        )

    async def cleanup(
        self,
        days: int = DEFAULT_CLEANUP_DAYS,
        now: datetime | None = None,
    ) -> CleanupResult:
        if days < 0:
            raise ValueError("days must be non-negative")
        now = now or datetime.now(timezone.utc)
        try:
            cutoff = now - timedelta(days=days)
        except OverflowError:
            # reaches past year 1: every reading is newer than the cutoff
            cutoff = _EARLIEST
        removed = await self._store.cleanup_older_than(cutoff)
        return CleanupResult(days=days, removed=removed, remaining=await self._store.count())
