"""Aggregate statistics endpoint."""
from __future__ import annotations

from aiohttp import web

from sensor_ingest_service.services.dependencies import get_query_engine

routes = web.RouteTableDef()


@routes.get("/api/stats")
async def statistics(request: web.Request) -> web.Response:
    stats = await get_query_engine(request).statistics()
    return web.json_response(
        {"success": True, "statistics": stats.model_dump(mode="json", by_alias=True)}
    )
