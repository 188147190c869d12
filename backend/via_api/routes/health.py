"""
VIA Backend — Service Probes
==============================

What:  `GET /` liveness message and `GET /health` readiness check.
Who:   Docker health checks, load balancers and uptime monitors.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from via_api import __version__
from via_api.database import engine
from via_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", summary="Liveness message")
async def root() -> dict:
    return {"message": "VIA API"}


async def database_reachable() -> bool:
    """SELECT 1 against the pool; cheap enough to run on every probe."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", e)
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    reachable = await database_reachable()
    body = HealthResponse(
        status="healthy" if reachable else "unhealthy",
        version=__version__,
        database="connected" if reachable else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not reachable:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
