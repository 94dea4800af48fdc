"""Domain enums."""
from __future__ import annotations

from enum import Enum


class LogStatus(str, Enum):
    """Outcome recorded for each ingestion attempt."""

    SUCCESS = "SUCCESS"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ErrorKind(str, Enum):
    """Failure categories surfaced to API clients."""

    UNAUTHENTICATED = "Unauthenticated"
    INVALID_PAYLOAD = "InvalidPayload"
    NOT_FOUND = "NotFound"
    INTERNAL_ERROR = "InternalError"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INVALID_PAYLOAD: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INTERNAL_ERROR: 500,
}


class StorageBackend(str, Enum):
    """Where readings are kept."""

    MEMORY = "memory"
    POSTGRES = "postgres"
