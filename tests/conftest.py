"""Pytest configuration and fixtures."""
from __future__ import annotations

import pytest

from sensor_ingest_service.main import create_app
from sensor_ingest_service.repositories import ConnectionLog, DeviceRegistry, InMemoryReadingStore
from sensor_ingest_service.settings import Settings
from tests.utils import FrozenClock, build_settings


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def registry(clock) -> DeviceRegistry:
    return DeviceRegistry(clock=clock)


@pytest.fixture
def store() -> InMemoryReadingStore:
    return InMemoryReadingStore(capacity=1000)


@pytest.fixture
def connection_log() -> ConnectionLog:
    return ConnectionLog(capacity=100)


@pytest.fixture
async def service_client(aiohttp_client, settings):
    """Client bound to a freshly built application."""
    app = create_app(settings)
    return await aiohttp_client(app)


@pytest.fixture
async def open_client(aiohttp_client):
    """Client for an application started without an API key."""
    app = create_app(build_settings(api_key=None))
    return await aiohttp_client(app)
