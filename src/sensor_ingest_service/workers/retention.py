"""Periodic removal of old readings."""
from __future__ import annotations

from datetime import datetime

from backend_common.worker import BackgroundWorker, WorkerTask
from sensor_ingest_service.services.queries import QueryEngine

TASK_NAME = "reading_retention"


def make_retention_task(queries: QueryEngine, days: int) -> WorkerTask:
    async def purge(now: datetime) -> str | None:
        result = await queries.cleanup(days, now=now)
        if not result.removed:
            return None
        return f"removed={result.removed} remaining={result.remaining}"

    return WorkerTask(name=TASK_NAME, fn=purge)


def build_retention_worker(
    queries: QueryEngine,
    *,
    days: int,
    interval_seconds: float,
) -> BackgroundWorker:
    return BackgroundWorker(
        interval_seconds=interval_seconds,
        tasks=[make_retention_task(queries, days)],
    )
