"""Shared aiohttp application helpers."""
from __future__ import annotations

import time
from typing import Any, Literal, Protocol

from aiohttp import web
from aiohttp_cors import CorsConfig, ResourceOptions, setup as cors_setup

from backend_common.middleware.trace import create_trace_middleware

# aiohttp_cors expects a sequence of strings (or "*"), NOT a comma-separated string.
_ALLOWED_HEADERS = (
    "Accept",
    "Content-Type",
    "Authorization",
    "X-API-Key",
    "X-Trace-Id",
    "X-Request-Id",
)

_ALLOWED_METHODS = (
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "OPTIONS",
)

_EXPOSED_HEADERS = (
    "X-Trace-Id",
    "X-Request-Id",
)

_STARTED_AT_KEY = "__started_at_monotonic__"


class SettingsProtocol(Protocol):
    """Protocol for settings objects used by the app helpers."""

    app_name: str
    env: Literal["development", "staging", "production"]
    cors_allowed_origins: list[str]


def create_base_app(
    settings: SettingsProtocol,
    *,
    middlewares: tuple[Any, ...] = (),
) -> tuple[web.Application, CorsConfig]:
    """Create a base aiohttp app with tracing middleware and CORS configured.

    Extra middlewares run inside the trace middleware, in the given order.
    """
    app = web.Application(
        middlewares=[create_trace_middleware(settings.app_name), *middlewares]
    )
    app[_STARTED_AT_KEY] = time.monotonic()

    cors = cors_setup(
        app,
        defaults={
            origin: ResourceOptions(
                # credentials cannot be combined with a wildcard origin
                allow_credentials=origin != "*",
                expose_headers=_EXPOSED_HEADERS,
                allow_headers=_ALLOWED_HEADERS,
                allow_methods=_ALLOWED_METHODS,
            )
            for origin in settings.cors_allowed_origins
        },
    )

    return app, cors


def app_uptime_seconds(app: web.Application) -> float:
    """Seconds since :func:`create_base_app` built the application."""
    return round(time.monotonic() - app[_STARTED_AT_KEY], 3)


def add_healthcheck(app: web.Application, settings: SettingsProtocol) -> None:
    """Register a standard health check endpoint."""

    async def healthcheck(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "status": "ok",
                "service": settings.app_name,
                "env": settings.env,
                "uptime": app_uptime_seconds(request.app),
            }
        )

    app.router.add_get("/health", healthcheck)


def add_cors_to_routes(app: web.Application, cors: CorsConfig) -> None:
    """Apply CORS configuration to all routes in the app."""
    for route in list(app.router.routes()):
        cors.add(route)


async def read_json_or_none(request: web.Request) -> dict[str, Any] | None:
    """Parse a JSON object body, returning None when it is absent or malformed."""
    if not request.can_read_body:
        return None
    try:
        data = await request.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data
