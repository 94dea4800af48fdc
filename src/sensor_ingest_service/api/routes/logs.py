"""Connection log endpoint."""
from __future__ import annotations

from aiohttp import web

from sensor_ingest_service.services.dependencies import get_query_engine

routes = web.RouteTableDef()


@routes.get("/api/logs")
async def recent_logs(request: web.Request) -> web.Response:
    """Last 50 ingestion attempts, newest first."""
    count, entries = get_query_engine(request).recent_logs()
    return web.json_response(
        {
            "success": True,
            "count": count,
            "logs": [entry.model_dump(mode="json", by_alias=True) for entry in entries],
        }
    )
