"""Error translation middleware."""
from __future__ import annotations

from datetime import datetime, timezone

import structlog
from aiohttp import web

from sensor_ingest_service.api.routes.info import AVAILABLE_ENDPOINTS
from sensor_ingest_service.api.utils import error_response
from sensor_ingest_service.core.exceptions import InternalError, NotFoundError, SensorIngestError
from sensor_ingest_service.domain.enums import LogStatus
from sensor_ingest_service.domain.models import ConnectionLogEntry
from sensor_ingest_service.services.dependencies import get_connection_log

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "X-API-Key"


def not_found_response() -> web.Response:
    return error_response(
        NotFoundError(
            "Not Found",
            "The requested endpoint does not exist",
            details={"available_endpoints": AVAILABLE_ENDPOINTS},
        )
    )


def _audit_failure(request: web.Request, message: str) -> None:
    get_connection_log(request).record(
        ConnectionLogEntry(
            timestamp=datetime.now(timezone.utc),
            ip=request.remote,
            user_agent=request.headers.get("User-Agent", "Unknown"),
            status=LogStatus.ERROR,
            message=message,
            api_key_present=bool(request.headers.get(API_KEY_HEADER)),
        )
    )


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Turn routing misses and unexpected failures into JSON bodies."""
    try:
        return await handler(request)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return not_found_response()
    except web.HTTPException:
        raise
    except SensorIngestError as exc:
        _audit_failure(request, f"Server error: {exc.message}")
        return error_response(exc)
    except Exception as exc:
        logger.exception("Unhandled error", error_type=type(exc).__name__)
        _audit_failure(request, f"Unhandled error: {exc}")
        return error_response(
            InternalError("Internal server error", "Something went wrong on our end")
        )
