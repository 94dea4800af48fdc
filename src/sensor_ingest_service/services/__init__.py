"""Service layer exports."""

from sensor_ingest_service.services.ingest import IngestPipeline
from sensor_ingest_service.services.queries import QueryEngine

__all__ = [
    "IngestPipeline",
    "QueryEngine",
]
