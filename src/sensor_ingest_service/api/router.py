"""Route registration."""
from __future__ import annotations

from aiohttp import web

from sensor_ingest_service.api.routes.devices import routes as devices_routes
from sensor_ingest_service.api.routes.info import routes as info_routes
from sensor_ingest_service.api.routes.logs import routes as logs_routes
from sensor_ingest_service.api.routes.readings import routes as readings_routes
from sensor_ingest_service.api.routes.stats import routes as stats_routes


def setup_routes(app: web.Application) -> None:
    app.add_routes(info_routes)
    app.add_routes(readings_routes)
    app.add_routes(devices_routes)
    app.add_routes(logs_routes)
    app.add_routes(stats_routes)
