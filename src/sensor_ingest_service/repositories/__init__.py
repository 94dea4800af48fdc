"""Repository package exports."""

from sensor_ingest_service.repositories.base import ReadingStore
from sensor_ingest_service.repositories.connection_log import ConnectionLog
from sensor_ingest_service.repositories.devices import DeviceRegistry
from sensor_ingest_service.repositories.external_readings import ExternalReadingStore
from sensor_ingest_service.repositories.readings import InMemoryReadingStore

__all__ = [
    "ConnectionLog",
    "DeviceRegistry",
    "ExternalReadingStore",
    "InMemoryReadingStore",
    "ReadingStore",
]
