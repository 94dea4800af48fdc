"""aiohttp application entrypoint."""
from __future__ import annotations

import structlog
from aiohttp import web

from backend_common.aiohttp_app import (
    add_cors_to_routes,
    add_healthcheck,
    create_base_app,
)
from backend_common.logging_config import configure_logging
from sensor_ingest_service.api.middleware import error_middleware
from sensor_ingest_service.api.router import setup_routes
from sensor_ingest_service.repositories import ExternalReadingStore, ReadingStore
from sensor_ingest_service.services.dependencies import attach_container, build_container
from sensor_ingest_service.settings import Settings, get_settings
from sensor_ingest_service.workers.retention import build_retention_worker

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    store: ReadingStore | None = None,
) -> web.Application:
    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())

    app, cors = create_base_app(settings, middlewares=(error_middleware,))

    container = build_container(settings, store=store)
    attach_container(app, container)

    if container.pipeline.open_mode:
        logger.warning(
            "API_KEY is not set; accepting readings from any client",
            security="open_mode",
        )

    add_healthcheck(app, settings)
    setup_routes(app)

    if isinstance(container.store, ExternalReadingStore):
        app.on_startup.append(container.store.open)
        app.on_cleanup.append(container.store.close)

    if settings.retention_days is not None:
        worker = build_retention_worker(
            container.queries,
            days=settings.retention_days,
            interval_seconds=settings.worker_interval_seconds,
        )
        app.on_startup.append(worker.start)
        app.on_cleanup.append(worker.stop)

    add_cors_to_routes(app, cors)

    logger.info(
        "app_created",
        storage_backend=settings.storage_backend.value,
        devices=container.registry.count(),
    )
    return app


def main() -> None:
    settings = get_settings()
    web.run_app(create_app(settings), host=settings.host, port=settings.port, access_log=None)


if __name__ == "__main__":
    main()
