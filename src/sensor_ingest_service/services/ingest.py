"""Reading ingestion business logic."""
from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from uuid import uuid4

import structlog

from sensor_ingest_service.core.exceptions import (
    InternalError,
    SensorIngestError,
    UnauthenticatedError,
)
from sensor_ingest_service.domain.dto import IngestOutcome, IngestResult, ReadingSubmissionDTO
from sensor_ingest_service.domain.enums import LogStatus
from sensor_ingest_service.domain.models import ConnectionLogEntry, Device, Reading
from sensor_ingest_service.repositories import ConnectionLog, DeviceRegistry, ReadingStore
from sensor_ingest_service.repositories.devices import UNKNOWN_LOCATION
from sensor_ingest_service.services.validation import out_of_range, parse_submission

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _RequestContext:
    client_addr: str | None
    user_agent: str
    credential_present: bool


class IngestPipeline:
    """Authenticates, validates, registers and stores submitted readings.

    ``submit`` never raises: every failure is returned inside the outcome and
    mirrored into the connection log.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        store: ReadingStore,
        connection_log: ConnectionLog,
        *,
        api_key: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._registry = registry
        self._store = store
        self._log = connection_log
        self._api_key = api_key or None
        self._clock = clock

    @property
    def open_mode(self) -> bool:
        return self._api_key is None

    async def submit(
        self,
        credential: str | None,
        payload: Mapping[str, Any] | None,
        *,
        client_addr: str | None = None,
        user_agent: str | None = None,
    ) -> IngestOutcome:
        ctx = _RequestContext(
            client_addr=client_addr,
            user_agent=user_agent or "Unknown",
            credential_present=bool(credential),
        )
        try:
            self._authenticate(credential)
            submission = parse_submission(payload)
            result = await self._store_reading(ctx, submission)
        except SensorIngestError as exc:
            self._record(ctx, LogStatus.ERROR, exc.error)
            return IngestOutcome(error=exc)
        except Exception as exc:
            logger.exception("ingest_failed", error_type=type(exc).__name__)
            self._record(ctx, LogStatus.ERROR, f"Server error: {exc}")
            return IngestOutcome(
                error=InternalError("Internal server error", "Please try again later")
            )
        return IngestOutcome(result=result)

    def _authenticate(self, credential: str | None) -> None:
        if self._api_key is None:
            return
        if not credential:
            raise UnauthenticatedError(
                "Missing API key", "Include X-API-Key header with your request"
            )
        if not hmac.compare_digest(credential.encode("utf-8"), self._api_key.encode("utf-8")):
            raise UnauthenticatedError(
                "Invalid API key", "The provided API key is not valid"
            )

    async def _store_reading(
        self, ctx: _RequestContext, submission: ReadingSubmissionDTO
    ) -> IngestResult:
        if out_of_range(submission):
            self._record(ctx, LogStatus.WARNING, "Data outside expected ranges")

        received_at = self._clock()
        device = self._registry.lookup(submission.device_id)
        is_new_device = device is None
        if device is None:
            # Registered after the append succeeds; a storage failure must leave
            # the registry untouched.
            device = Device(
                device_id=submission.device_id,
                name=submission.device_name or f"Device-{submission.device_id}",
                location=UNKNOWN_LOCATION,
                registered_at=received_at,
                auto_registered=True,
            )

        reading = Reading(
            id=str(uuid4()),
            device_id=submission.device_id,
            device_meta=device.model_copy(),
            sensor=submission.sensor,
            temperature=submission.temperature,
            humidity=submission.humidity,
            timestamp=submission.ts or received_at,
            received_at=received_at,
            client_ip=ctx.client_addr,
        )
        await self._store.append(reading)

        if is_new_device:
            self._registry.register(
                device.device_id,
                device.name,
                device.location,
                auto_registered=True,
                registered_at=device.registered_at,
            )
            self._record(ctx, LogStatus.INFO, f"New device registered: {device.device_id}")

        self._record(ctx, LogStatus.SUCCESS, f"Data received from {submission.device_id}")
        return IngestResult(
            entry_id=reading.id,
            device_id=reading.device_id,
            received_at=reading.received_at,
        )

    def _record(self, ctx: _RequestContext, status: LogStatus, message: str) -> None:
        self._log.record(
            ConnectionLogEntry(
                timestamp=self._clock(),
                ip=ctx.client_addr,
                user_agent=ctx.user_agent,
                status=status,
                message=message,
                api_key_present=ctx.credential_present,
            )
        )
