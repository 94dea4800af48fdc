from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sensor_ingest_service.domain.enums import StorageBackend
from sensor_ingest_service.domain.models import Device, Reading
from sensor_ingest_service.settings import Settings

BASE_TIME = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_device(device_id: str = "DEV1", *, auto_registered: bool = False) -> Device:
    return Device(
        device_id=device_id,
        name=f"Device-{device_id}",
        location="Unknown",
        registered_at=BASE_TIME,
        auto_registered=auto_registered,
    )


def make_reading(
    device_id: str = "DEV1",
    *,
    received_at: datetime = BASE_TIME,
    temperature: float = 22.5,
    humidity: float = 45.0,
    reading_id: str | None = None,
) -> Reading:
    return Reading(
        id=reading_id or str(uuid4()),
        device_id=device_id,
        device_meta=make_device(device_id),
        sensor="DHT22",
        temperature=temperature,
        humidity=humidity,
        timestamp=received_at,
        received_at=received_at,
        client_ip="127.0.0.1",
    )


def valid_payload(device_id: str = "DEV1", **overrides) -> dict:
    payload = {
        "device_id": device_id,
        "sensor": "DHT22",
        "temperature": 22.5,
        "humidity": 45.0,
    }
    payload.update(overrides)
    return payload


class FrozenClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


API_KEY = "secret123"


def build_settings(**overrides) -> Settings:
    values = {
        "api_key": API_KEY,
        "storage_backend": StorageBackend.MEMORY,
        "retention_days": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
