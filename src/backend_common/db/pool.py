"""Asyncpg connection pool helpers."""
from __future__ import annotations

import asyncpg  # type: ignore[import-untyped]
import structlog

logger = structlog.get_logger(__name__)


async def create_pool(database_url: str, pool_size: int) -> asyncpg.Pool:
    """Open an asyncpg pool. The caller owns it and must close it."""
    pool = await asyncpg.create_pool(
        dsn=database_url,
        min_size=1,
        max_size=pool_size,
    )
    logger.info("Database pool opened", max_size=pool_size)
    return pool


async def close_pool(pool: asyncpg.Pool | None) -> None:
    """Close pool on shutdown."""
    if pool is not None:
        await pool.close()
        logger.info("Database pool closed")
