"""Pydantic models representing key domain entities."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from sensor_ingest_service.domain.enums import LogStatus


class Device(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Keyed externally; not repeated inside listings or reading snapshots
    device_id: str = Field(exclude=True)
    name: str
    location: str
    registered_at: datetime = Field(serialization_alias="registeredAt")
    auto_registered: bool = Field(default=False, serialization_alias="autoRegistered")


class Reading(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    device_id: str
    device_meta: Device
    sensor: str
    temperature: float
    humidity: float
    timestamp: datetime
    received_at: datetime
    client_ip: str | None = None


class ConnectionLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    ip: str | None = None
    user_agent: str = Field(default="Unknown", serialization_alias="userAgent")
    status: LogStatus
    message: str
    api_key_present: bool = Field(default=False, serialization_alias="apiKey")

    @field_serializer("api_key_present")
    def _serialize_api_key_present(self, value: bool) -> str:
        return "Present" if value else "Missing"
