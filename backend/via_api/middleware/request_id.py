"""
VIA Backend — Request ID Middleware
=====================================

What:  Tags each request with a short correlation ID and echoes it back in
       the X-Request-ID response header.
Why:   Error envelopes carry `request_id`, so a client reporting a failure can
       hand over the ID and the matching server log lines are found directly.
How:   The ID is taken from an incoming X-Request-ID header when the client
       supplies one, otherwise generated. It lives in a ContextVar so exception
       handlers and loggers can read it without the Request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    """Eight hex characters; enough to correlate, short enough to read in logs."""
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID before any other processing happens."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
