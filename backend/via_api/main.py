"""
VIA Backend — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn via_api.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:   Request ID → Access Log → GZip → CORS     │
    │                                                          │
    │  Routers:      /api/v1/routes   /api/v1/users            │
    │                /api/v1/auth     /  and  /health          │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ValidationError → 400   AuthError    → 401            │
    │    NotFoundError   → 404   StorageError → 500            │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, ready banner
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from via_api import __version__
from via_api.config import settings
from via_api.database import dispose_engine
from via_api.exceptions import (
    AuthError,
    NotFoundError,
    StorageError,
    ValidationError,
    ViaError,
)
from via_api.middleware.logging import RequestLoggingMiddleware
from via_api.middleware.request_id import RequestIDMiddleware, request_id_var
from via_api.routes import auth, health, routes, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2026-01-15T12:00:00 [INFO] via_api.services.route_service: ...
    Output goes to stdout, which Docker captures.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-statement chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("VIA API %s starting up...", __version__)

    # Keep serving /health even when misconfigured; authenticated calls
    # will answer 401 until the secret is set.
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", e)

    logger.info("Feed limit: %d routes", settings.feed_limit)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("VIA API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Routing-level errors raised by Starlette itself
HTTP_ERROR_LABELS = {
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
}


def error_body(error: str, message: str, details=None) -> dict:
    """The JSON error envelope shared by every handler."""
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return content


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and the error envelope.

    Handler table:
        ValidationError (+ MissingFields, InvalidField)  → 400 validation_error
        RequestValidationError (malformed JSON / types)  → 400 validation_error
        AuthError                                        → 401 unauthorized
        NotFoundError                                    → 404 not_found
        StarletteHTTPException (unknown path, method)    → its own status
        StorageError                                     → 500 storage_error
        ViaError / Exception                             → 500 internal_server_error

    Raw storage text is returned only with EXPOSE_ERROR_DETAILS=true; it is
    always logged.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), errors)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", "Request body or parameters are malformed", {"errors": errors}),
        )

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=401,
            content=error_body("unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        rid = request_id_var.get("")
        logger.error("[%s] Storage error: %s | Context: %s", rid, exc.message, exc.context)
        details = {"details": exc.details} if settings.expose_error_details and exc.details else None
        return JSONResponse(
            status_code=500,
            content=error_body("storage_error", exc.message, details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(HTTP_ERROR_LABELS.get(exc.status_code, "http_error"), str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ViaError)
    async def handle_via_error(request: Request, exc: ViaError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=error_body("internal_server_error", "An unexpected error occurred."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            exc,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble a fresh application; tests build their own with overrides."""
    app = FastAPI(
        title="VIA API",
        description=(
            "Route sharing for students: upload GPS traces, browse a ranked feed "
            "of community routes, and vote on safety, efficiency and scenery."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: Request ID → Access Log → GZip → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(routes.router)
    app.include_router(users.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


app = create_app()
