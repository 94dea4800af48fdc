"""PostgreSQL-backed reading store."""
from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator

import asyncpg  # type: ignore[import-untyped]
import structlog

from backend_common.db.pool import close_pool, create_pool
from sensor_ingest_service.core.exceptions import StorageError
from sensor_ingest_service.domain.dto import ReadingPage
from sensor_ingest_service.domain.models import Device, Reading
from sensor_ingest_service.repositories.base import (
    DEFAULT_PAGE_LIMIT,
    ReadingStore,
    clamp_page,
)

logger = structlog.get_logger(__name__)

_STORE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sensor_readings (
    seq bigserial PRIMARY KEY,
    id text NOT NULL UNIQUE,
    device_id text NOT NULL,
    device_meta jsonb NOT NULL,
    sensor text NOT NULL,
    temperature double precision NOT NULL,
    humidity double precision NOT NULL,
    timestamp timestamptz NOT NULL,
    received_at timestamptz NOT NULL,
    client_ip text
);
CREATE INDEX IF NOT EXISTS sensor_readings_device_seq_idx
    ON sensor_readings (device_id, seq);
CREATE INDEX IF NOT EXISTS sensor_readings_received_at_idx
    ON sensor_readings (received_at);
"""

_COLUMNS = """
    id, device_id, device_meta, sensor, temperature, humidity,
    timestamp, received_at, client_ip
"""


class ExternalReadingStore(ReadingStore):
    """Stores readings in the ``sensor_readings`` table.

    Insertion order is the ``seq`` column. With ``capacity`` set, rows beyond
    it are trimmed oldest-first after each insert. Every database failure is
    raised as :class:`StorageError`.
    """

    def __init__(
        self,
        *,
        database_url: str | None = None,
        pool_size: int = 10,
        capacity: int | None = None,
        pool: asyncpg.Pool | None = None,
    ):
        self._database_url = database_url
        self._pool_size = pool_size
        self._capacity = capacity
        self._pool = pool
        self._owns_pool = False

    async def open(self, _app: Any = None) -> None:
        """Create the pool (unless one was injected) and ensure the table exists."""
        if self._pool is None:
            if not self._database_url:
                raise StorageError("Storage misconfigured", "database_url is required")
            try:
                self._pool = await create_pool(self._database_url, self._pool_size)
            except _STORE_ERRORS as exc:
                raise StorageError("Storage unavailable", str(exc)) from exc
            self._owns_pool = True
        async with self._connection() as conn:
            await conn.execute(SCHEMA_SQL)

    async def close(self, _app: Any = None) -> None:
        if self._owns_pool:
            await close_pool(self._pool)
            self._pool = None
            self._owns_pool = False

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise StorageError("Storage unavailable", "Reading store is not connected")
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except _STORE_ERRORS as exc:
            logger.error(
                "reading_store_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise StorageError("Storage failure", str(exc)) from exc

    @staticmethod
    def _to_model(record: Any) -> Reading:
        meta = record["device_meta"]
        if isinstance(meta, str):
            meta = json.loads(meta)
        return Reading(
            id=record["id"],
            device_id=record["device_id"],
            device_meta=Device.model_validate({**meta, "device_id": record["device_id"]}),
            sensor=record["sensor"],
            temperature=record["temperature"],
            humidity=record["humidity"],
            timestamp=record["timestamp"],
            received_at=record["received_at"],
            client_ip=record["client_ip"],
        )

    async def append(self, reading: Reading) -> None:
        query = """
            INSERT INTO sensor_readings (
                id,
                device_id,
                device_meta,
                sensor,
                temperature,
                humidity,
                timestamp,
                received_at,
                client_ip
            )
            VALUES ($1, $2, $3::jsonb, $4, $5, $6, $7, $8, $9)
        """
        async with self._connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    query,
                    reading.id,
                    reading.device_id,
                    json.dumps(reading.device_meta.model_dump(mode="json")),
                    reading.sensor,
                    reading.temperature,
                    reading.humidity,
                    reading.timestamp,
                    reading.received_at,
                    reading.client_ip,
                )
                if self._capacity is not None:
                    await conn.execute(
                        """
                        DELETE FROM sensor_readings
                        WHERE seq <= (
                            SELECT seq FROM sensor_readings
                            ORDER BY seq DESC
                            OFFSET $1 LIMIT 1
                        )
                        """,
                        self._capacity,
                    )

    async def query(
        self,
        device_id: str | None = None,
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> ReadingPage:
        offset, limit = clamp_page(offset, limit)
        conditions: list[str] = []
        params: list[Any] = []
        if device_id is not None:
            conditions.append("device_id = $1")
            params.append(device_id)
        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        idx = len(params) + 1
        async with self._connection() as conn:
            total = await conn.fetchval(
                f"SELECT count(*) FROM sensor_readings {where_clause}", *params
            )
            rows = await conn.fetch(
                f"""
                SELECT {_COLUMNS}
                FROM sensor_readings
                {where_clause}
                ORDER BY seq ASC
                OFFSET ${idx} LIMIT ${idx + 1}
                """,
                *params,
                offset,
                limit,
            )
        items = [self._to_model(row) for row in rows]
        items.reverse()
        return ReadingPage(total=int(total or 0), offset=offset, limit=limit, items=items)

    async def cleanup_older_than(self, cutoff: datetime) -> int:
        async with self._connection() as conn:
            status = await conn.execute(
                "DELETE FROM sensor_readings WHERE received_at < $1", cutoff
            )
        # asyncpg returns the command tag, e.g. "DELETE 12"
        return int(status.split()[-1])

    async def count(self) -> int:
        async with self._connection() as conn:
            value = await conn.fetchval("SELECT count(*) FROM sensor_readings")
        return int(value or 0)

    async def count_received_since(self, since: datetime) -> int:
        async with self._connection() as conn:
            value = await conn.fetchval(
                "SELECT count(*) FROM sensor_readings WHERE received_at > $1", since
            )
        return int(value or 0)

    async def latest(self) -> Reading | None:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM sensor_readings ORDER BY seq DESC LIMIT 1"
            )
        return self._to_model(row) if row is not None else None
