"""Shared dependency providers for aiohttp handlers."""
from __future__ import annotations

from dataclasses import dataclass

from aiohttp import web

from sensor_ingest_service.domain.enums import StorageBackend
from sensor_ingest_service.repositories import (
    ConnectionLog,
    DeviceRegistry,
    ExternalReadingStore,
    InMemoryReadingStore,
    ReadingStore,
)
from sensor_ingest_service.services.ingest import IngestPipeline
from sensor_ingest_service.services.queries import QueryEngine
from sensor_ingest_service.settings import Settings

_CONTAINER_KEY = "sensor_ingest_container"


@dataclass
class ServiceContainer:
    """State owned by one application instance."""

    settings: Settings
    registry: DeviceRegistry
    store: ReadingStore
    connection_log: ConnectionLog
    pipeline: IngestPipeline
    queries: QueryEngine


def build_store(settings: Settings) -> ReadingStore:
    if settings.storage_backend is StorageBackend.POSTGRES:
        return ExternalReadingStore(
            database_url=str(settings.database_url),
            pool_size=settings.db_pool_size,
            capacity=settings.postgres_reading_capacity,
        )
    return InMemoryReadingStore(capacity=settings.reading_capacity)


def build_container(settings: Settings, *, store: ReadingStore | None = None) -> ServiceContainer:
    registry = DeviceRegistry()
    registry.seed(settings.seed_devices)
    store = store if store is not None else build_store(settings)
    connection_log = ConnectionLog(capacity=settings.connection_log_capacity)
    return ServiceContainer(
        settings=settings,
        registry=registry,
        store=store,
        connection_log=connection_log,
        pipeline=IngestPipeline(registry, store, connection_log, api_key=settings.api_key),
        queries=QueryEngine(registry, store, connection_log),
    )


def attach_container(app: web.Application, container: ServiceContainer) -> None:
    app[_CONTAINER_KEY] = container


def get_container(app: web.Application) -> ServiceContainer:
    return app[_CONTAINER_KEY]


def get_ingest_pipeline(request: web.Request) -> IngestPipeline:
    return get_container(request.app).pipeline


def get_query_engine(request: web.Request) -> QueryEngine:
    return get_container(request.app).queries


def get_connection_log(request: web.Request) -> ConnectionLog:
    return get_container(request.app).connection_log
