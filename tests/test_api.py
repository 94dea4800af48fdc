from __future__ import annotations

import uuid

from backend_common.worker import BackgroundWorker
from sensor_ingest_service.core.exceptions import StorageError
from sensor_ingest_service.domain.enums import StorageBackend
from sensor_ingest_service.main import create_app
from sensor_ingest_service.repositories import ExternalReadingStore, InMemoryReadingStore
from sensor_ingest_service.services.dependencies import get_container
from tests.utils import API_KEY, build_settings, valid_payload

HEADERS = {"X-API-Key": API_KEY}


class _BrokenStore(InMemoryReadingStore):
    async def query(self, device_id=None, *, offset=0, limit=50):
        raise RuntimeError("query exploded")

    async def count(self):
        raise StorageError("Storage failure", "connection reset")


async def test_submit_and_read_back(service_client):
    resp = await service_client.post(
        "/api/data",
        json=valid_payload("DEV1", temperature=22.5, humidity=45.0),
        headers=HEADERS,
    )
    assert resp.status == 200
    body = await resp.json()
    assert body["success"] is True
    assert body["message"] == "Data received successfully"
    assert body["device_id"] == "DEV1"
    entry_id = body["entry_id"]
    assert uuid.UUID(entry_id).version == 4

    resp = await service_client.get("/api/data", params={"device_id": "DEV1"})
    assert resp.status == 200
    listing = await resp.json()
    assert listing["total"] == 1
    assert listing["returned"] == 1
    assert listing["offset"] == 0
    assert listing["limit"] == 50
    item = listing["data"][0]
    assert item["id"] == entry_id
    assert item["temperature"] == 22.5
    assert item["humidity"] == 45.0
    assert item["client_ip"] == "127.0.0.1"
    assert item["device_meta"]["autoRegistered"] is True


async def test_api_key_is_enforced(service_client):
    missing = await service_client.post("/api/data", json=valid_payload())
    assert missing.status == 401
    body = await missing.json()
    assert body["success"] is False
    assert body["kind"] == "Unauthenticated"
    assert body["error"] == "Missing API key"

    wrong = await service_client.post(
        "/api/data", json=valid_payload(), headers={"X-API-Key": "nope"}
    )
    assert wrong.status == 401
    assert (await wrong.json())["error"] == "Invalid API key"

    listing = await (await service_client.get("/api/data")).json()
    assert listing["total"] == 0


async def test_open_mode_accepts_without_key(open_client):
    resp = await open_client.post("/api/data", json=valid_payload())
    assert resp.status == 200

    info = await (await open_client.get("/")).json()
    assert info["auth"] == "open"


async def test_invalid_payloads_are_bad_requests(service_client):
    resp = await service_client.post(
        "/api/data", json={"device_id": "DEV1"}, headers=HEADERS
    )
    assert resp.status == 400
    body = await resp.json()
    assert body["error"] == "Missing required fields"
    assert body["missing"] == ["sensor", "temperature", "humidity"]

    resp = await service_client.post(
        "/api/data", json=valid_payload(temperature="abc"), headers=HEADERS
    )
    assert resp.status == 400
    assert (await resp.json())["error"] == "Invalid data types"

    resp = await service_client.post(
        "/api/data",
        data="{not json",
        headers={**HEADERS, "Content-Type": "application/json"},
    )
    assert resp.status == 400
    assert (await resp.json())["error"] == "Missing required fields"


async def test_new_device_is_listed_as_auto_registered(service_client):
    resp = await service_client.get("/api/devices")
    before = await resp.json()
    assert before["count"] == 2
    assert before["devices"]["DEADBEEF0001"]["autoRegistered"] is False

    await service_client.post("/api/data", json=valid_payload("NEWDEV01"), headers=HEADERS)

    after = await (await service_client.get("/api/devices")).json()
    assert after["count"] == 3
    device = after["devices"]["NEWDEV01"]
    assert device["autoRegistered"] is True
    assert device["name"] == "Device-NEWDEV01"
    assert device["location"] == "Unknown"


async def test_zero_readings_are_accepted(service_client):
    resp = await service_client.post(
        "/api/data", json=valid_payload(temperature=0, humidity=0), headers=HEADERS
    )
    assert resp.status == 200

    item = (await (await service_client.get("/api/data")).json())["data"][0]
    assert item["temperature"] == 0
    assert item["humidity"] == 0


async def test_pagination_params(service_client):
    for _ in range(5):
        await service_client.post("/api/data", json=valid_payload(), headers=HEADERS)

    page = await (await service_client.get("/api/data", params={"limit": "2", "offset": "1"})).json()
    assert page["total"] == 5
    assert page["returned"] == 2
    assert page["limit"] == 2
    assert page["offset"] == 1

    for params in ({"limit": "abc"}, {"offset": "-1"}):
        resp = await service_client.get("/api/data", params=params)
        assert resp.status == 400
        body = await resp.json()
        assert body["kind"] == "InvalidPayload"

    past_end = await (await service_client.get("/api/data", params={"offset": "5"})).json()
    assert past_end["total"] == 5
    assert past_end["returned"] == 0
    assert past_end["data"] == []


async def test_logs_record_attempts_newest_first(service_client):
    await service_client.post(
        "/api/data",
        json=valid_payload(),
        headers={"X-API-Key": "wrong", "User-Agent": "ESP32HTTPClient"},
    )
    await service_client.post("/api/data", json=valid_payload("DEADBEEF0001"), headers=HEADERS)

    body = await (await service_client.get("/api/logs")).json()

    assert body["count"] == 2
    newest, oldest = body["logs"]
    assert newest["status"] == "SUCCESS"
    assert newest["message"] == "Data received from DEADBEEF0001"
    assert oldest["status"] == "ERROR"
    assert oldest["userAgent"] == "ESP32HTTPClient"
    assert oldest["apiKey"] == "Present"
    assert oldest["ip"] == "127.0.0.1"


async def test_stats(service_client):
    await service_client.post("/api/data", json=valid_payload("DEADBEEF0001"), headers=HEADERS)
    await service_client.post("/api/data", json=valid_payload("NEWDEV02"), headers=HEADERS)

    body = await (await service_client.get("/api/stats")).json()

    stats = body["statistics"]
    assert body["success"] is True
    assert stats["total_devices"] == 3
    assert stats["total_data_points"] == 2
    assert stats["data_last_hour"] == 2
    assert stats["data_last_24h"] == 2
    assert stats["latest_entry"]["device_id"] == "NEWDEV02"
    assert stats["server_uptime"] >= 0


async def test_cleanup_endpoint(service_client):
    await service_client.post("/api/data", json=valid_payload(), headers=HEADERS)

    resp = await service_client.delete("/api/data/cleanup", params={"days": "7"})
    assert resp.status == 200
    body = await resp.json()
    assert body == {
        "success": True,
        "message": "Deleted 0 entries older than 7 days",
        "remaining": 1,
    }

    resp = await service_client.delete("/api/data/cleanup", params={"days": "soon"})
    assert resp.status == 400

    resp = await service_client.delete("/api/data/cleanup", params={"days": "1000000000"})
    assert resp.status == 200
    assert (await resp.json())["remaining"] == 1


async def test_unknown_routes_list_endpoints(service_client):
    resp = await service_client.get("/api/unknown")
    assert resp.status == 404
    body = await resp.json()
    assert body["success"] is False
    assert "POST /api/data" in body["available_endpoints"]

    resp = await service_client.put("/api/data", json={})
    assert resp.status == 404


async def test_info_and_health(service_client):
    info = await (await service_client.get("/")).json()
    assert info["service"] == "sensor-ingest-service"
    assert info["status"] == "running"
    assert info["auth"] == "api_key"
    assert "GET /api/stats" in info["endpoints"]

    resp = await service_client.get("/health")
    assert resp.status == 200
    health = await resp.json()
    assert health["status"] == "ok"
    assert health["env"] == "development"
    assert health["uptime"] >= 0


async def test_trace_ids_are_echoed(service_client):
    trace_id = str(uuid.uuid4())

    resp = await service_client.get("/health", headers={"X-Trace-Id": trace_id})

    assert resp.headers["X-Trace-Id"] == trace_id
    assert uuid.UUID(resp.headers["X-Request-Id"])


async def test_unexpected_errors_become_500(aiohttp_client):
    app = create_app(build_settings(), store=_BrokenStore())
    client = await aiohttp_client(app)

    resp = await client.get("/api/data")
    assert resp.status == 500
    body = await resp.json()
    assert body["kind"] == "InternalError"
    assert body["message"] == "Something went wrong on our end"

    resp = await client.get("/api/stats")
    assert resp.status == 500
    assert (await resp.json())["error"] == "Storage failure"

    logs = await (await client.get("/api/logs")).json()
    assert [entry["status"] for entry in logs["logs"]] == ["ERROR", "ERROR"]
    assert logs["logs"][1]["message"] == "Unhandled error: query exploded"


def test_postgres_backend_registers_pool_lifecycle():
    app = create_app(build_settings(storage_backend=StorageBackend.POSTGRES))

    store = get_container(app).store
    assert isinstance(store, ExternalReadingStore)
    assert store.open in app.on_startup
    assert store.close in app.on_cleanup


def test_retention_worker_is_registered_when_enabled():
    def _workers(app):
        return [cb for cb in app.on_startup if isinstance(getattr(cb, "__self__", None), BackgroundWorker)]

    assert _workers(create_app(build_settings())) == []
    assert len(_workers(create_app(build_settings(retention_days=7)))) == 1
