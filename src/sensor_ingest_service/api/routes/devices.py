"""Device registry endpoint."""
from __future__ import annotations

from aiohttp import web

from sensor_ingest_service.services.dependencies import get_query_engine

routes = web.RouteTableDef()


@routes.get("/api/devices")
async def list_devices(request: web.Request) -> web.Response:
    count, devices = get_query_engine(request).list_devices()
    return web.json_response(
        {
            "success": True,
            "count": count,
            "devices": {
                device_id: device.model_dump(mode="json", by_alias=True)
                for device_id, device in devices.items()
            },
        }
    )
