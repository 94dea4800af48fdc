"""Service info endpoint."""
from __future__ import annotations

from datetime import datetime, timezone

from aiohttp import web

from backend_common.aiohttp_app import app_uptime_seconds
from sensor_ingest_service.services.dependencies import get_container

routes = web.RouteTableDef()

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "POST /api/data",
    "GET /api/data",
    "DELETE /api/data/cleanup",
    "GET /api/devices",
    "GET /api/logs",
    "GET /api/stats",
]


@routes.get("/")
async def service_info(request: web.Request) -> web.Response:
    settings = get_container(request.app).settings
    return web.json_response(
        {
            "service": settings.app_name,
            "status": "running",
            "version": settings.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": app_uptime_seconds(request.app),
            "auth": "open" if not settings.api_key else "api_key",
            "endpoints": AVAILABLE_ENDPOINTS,
        }
    )
