"""Helper utilities for API handlers."""
from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from sensor_ingest_service.core.exceptions import SensorIngestError
from sensor_ingest_service.domain.enums import ErrorKind


def error_response(exc: SensorIngestError) -> web.Response:
    return web.json_response(exc.to_payload(), status=exc.kind.http_status)


def bad_request(message: str, **details: Any) -> web.HTTPBadRequest:
    payload = {
        "success": False,
        "kind": ErrorKind.INVALID_PAYLOAD.value,
        "error": "Invalid query parameter",
        "message": message,
        **details,
    }
    return web.HTTPBadRequest(text=json.dumps(payload), content_type="application/json")


def parse_non_negative_int(value: str | None, *, default: int, label: str) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise bad_request(f"{label} must be an integer", received=value) from exc
    if parsed < 0:
        raise bad_request(f"{label} must not be negative", received=value)
    return parsed


def pagination_params(
    request: web.Request,
    *,
    default_limit: int,
) -> tuple[int, int]:
    query = request.rel_url.query
    limit = parse_non_negative_int(query.get("limit"), default=default_limit, label="limit")
    offset = parse_non_negative_int(query.get("offset"), default=0, label="offset")
    return limit, offset
