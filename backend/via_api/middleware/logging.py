"""
VIA Backend — Access Log Middleware
=====================================

What:  One log line per request: method, path, status, duration, request ID.
How:   Severity follows the status code so 5xx responses surface as errors
       and 4xx as warnings in whatever collects stdout.

Example line:
    2026-01-15T12:00:00 [INFO] via.access: POST /api/v1/routes 201 41.7ms [a1b2c3d4] from 10.0.0.7

Request bodies are never logged: they hold GPS traces and emails.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from via_api.middleware.request_id import request_id_var

logger = logging.getLogger("via.access")

# Probed every few seconds by Docker and load balancers.
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access line once the response status is known."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            elapsed_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
