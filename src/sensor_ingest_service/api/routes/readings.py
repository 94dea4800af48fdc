"""Reading ingest, listing and cleanup endpoints."""
from __future__ import annotations

from aiohttp import web

from backend_common.aiohttp_app import read_json_or_none
from sensor_ingest_service.api.middleware import API_KEY_HEADER
from sensor_ingest_service.api.utils import (
    error_response,
    pagination_params,
    parse_non_negative_int,
)
from sensor_ingest_service.repositories.base import DEFAULT_PAGE_LIMIT
from sensor_ingest_service.services.dependencies import get_ingest_pipeline, get_query_engine
from sensor_ingest_service.services.queries import DEFAULT_CLEANUP_DAYS

routes = web.RouteTableDef()


@routes.post("/api/data")
async def submit_reading(request: web.Request) -> web.Response:
    """Ingest endpoint called by sensor nodes."""
    body = await read_json_or_none(request)
    pipeline = get_ingest_pipeline(request)
    outcome = await pipeline.submit(
        request.headers.get(API_KEY_HEADER),
        body,
        client_addr=request.remote,
        user_agent=request.headers.get("User-Agent"),
    )
    if outcome.error is not None:
        return error_response(outcome.error)
    result = outcome.result
    return web.json_response(
        {
            "success": True,
            "message": "Data received successfully",
            "entry_id": result.entry_id,
            "device_id": result.device_id,
            "timestamp": result.received_at.isoformat(),
        }
    )


@routes.get("/api/data")
async def list_readings(request: web.Request) -> web.Response:
    limit, offset = pagination_params(request, default_limit=DEFAULT_PAGE_LIMIT)
    device_id = request.rel_url.query.get("device_id") or None
    page = await get_query_engine(request).list_readings(device_id, offset=offset, limit=limit)
    return web.json_response(
        {
            "success": True,
            "total": page.total,
            "returned": len(page.items),
            "offset": page.offset,
            "limit": page.limit,
            "data": [item.model_dump(mode="json", by_alias=True) for item in page.items],
        }
    )


@routes.delete("/api/data/cleanup")
async def cleanup_readings(request: web.Request) -> web.Response:
    days = parse_non_negative_int(
        request.rel_url.query.get("days"), default=DEFAULT_CLEANUP_DAYS, label="days"
    )
    result = await get_query_engine(request).cleanup(days)
    return web.json_response(
        {
            "success": True,
            "message": f"Deleted {result.removed} entries older than {result.days} days",
            "remaining": result.remaining,
        }
    )
