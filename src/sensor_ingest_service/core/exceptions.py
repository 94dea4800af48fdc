"""Common exceptions for domain and repository layers."""
from __future__ import annotations

from typing import Any

from sensor_ingest_service.domain.enums import ErrorKind


class SensorIngestError(Exception):
    """Base error for service layer.

    ``error`` is the short label returned to clients, ``message`` the
    human-readable explanation and ``details`` any extra response fields.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(
        self,
        error: str,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(error)
        self.error = error
        self.message = message or error
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": False,
            "kind": self.kind.value,
            "error": self.error,
            "message": self.message,
            **self.details,
        }


class UnauthenticatedError(SensorIngestError):
    """Raised when the shared secret is missing or wrong."""

    kind = ErrorKind.UNAUTHENTICATED


class InvalidPayloadError(SensorIngestError):
    """Raised when a submitted reading is incomplete or malformed."""

    kind = ErrorKind.INVALID_PAYLOAD


class NotFoundError(SensorIngestError):
    """Raised when no route matches the request."""

    kind = ErrorKind.NOT_FOUND


class InternalError(SensorIngestError):
    """Raised for unexpected failures."""

    kind = ErrorKind.INTERNAL_ERROR


class StorageError(InternalError):
    """Raised when the external reading store fails."""
