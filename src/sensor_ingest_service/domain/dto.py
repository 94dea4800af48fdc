"""Pydantic DTOs for service/API layers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sensor_ingest_service.core.exceptions import SensorIngestError
from sensor_ingest_service.domain.models import Reading


class ReadingSubmissionDTO(BaseModel):
    """A validated ``POST /api/data`` body."""

    # Firmware often sends extra diagnostic keys; they are ignored.
    model_config = ConfigDict(extra="ignore", frozen=True)

    device_id: str = Field(min_length=1)
    device_name: str | None = None
    sensor: str = Field(min_length=1)
    temperature: float = Field(allow_inf_nan=False)
    humidity: float = Field(allow_inf_nan=False)
    ts: datetime | None = None

    @field_validator("device_id", "device_name", "sensor", mode="before")
    @classmethod
    def _stringify_numeric_labels(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("temperature", "humidity", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("ts")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class DeviceSeed(BaseModel):
    """A device registered at startup."""

    model_config = ConfigDict(extra="forbid")

    device_id: str = Field(min_length=1)
    name: str
    location: str = "Unknown"


class IngestResult(BaseModel):
    entry_id: str
    device_id: str
    received_at: datetime


class IngestOutcome(BaseModel):
    """Either a result or the error that stopped the submission."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    result: IngestResult | None = None
    error: SensorIngestError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReadingPage(BaseModel):
    total: int
    offset: int
    limit: int
    items: list[Reading] = Field(default_factory=list)


class Statistics(BaseModel):
    total_devices: int
    total_data_points: int
    data_last_hour: int
    data_last_24h: int
    latest_entry: Reading | None = None
    server_uptime: float


class CleanupResult(BaseModel):
    days: int
    removed: int
    remaining: int
