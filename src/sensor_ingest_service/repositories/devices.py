"""In-memory device registry."""
from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Iterable

from sensor_ingest_service.domain.dto import DeviceSeed
from sensor_ingest_service.domain.models import Device

UNKNOWN_LOCATION = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceRegistry:
    """Maps device ids to metadata. Entries are never updated or removed."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = Lock()
        self._devices: dict[str, Device] = {}

    def lookup(self, device_id: str) -> Device | None:
        with self._lock:
            return self._devices.get(device_id)

    def register(
        self,
        device_id: str,
        name: str | None = None,
        location: str | None = None,
        *,
        auto_registered: bool = False,
        registered_at: datetime | None = None,
    ) -> Device:
        """Return the device for ``device_id``, creating it if unknown.

        Registration is idempotent: a known id keeps its original metadata
        whatever arguments are passed.
        """
        with self._lock:
            existing = self._devices.get(device_id)
            if existing is not None:
                return existing
            device = Device(
                device_id=device_id,
                name=name or f"Device-{device_id}",
                location=location or UNKNOWN_LOCATION,
                registered_at=registered_at or self._clock(),
                auto_registered=auto_registered,
            )
            self._devices[device_id] = device
            return device

    def seed(self, seeds: Iterable[DeviceSeed]) -> None:
        for item in seeds:
            self.register(item.device_id, item.name, item.location)

    def all(self) -> dict[str, Device]:
        with self._lock:
            return dict(self._devices)

    def count(self) -> int:
        with self._lock:
            return len(self._devices)
