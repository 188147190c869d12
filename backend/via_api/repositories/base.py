"""
VIA Backend — Repository Helpers
==================================

What:  Shared plumbing for the storage collaborators.
Why:   Every repository method must turn driver/ORM failures into StorageError
       with the raw text preserved for operators. Doing that in one place keeps
       the query code readable.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from geoalchemy2 import Geometry
from geoalchemy2.elements import WKTElement
from sqlalchemy import cast, func
from sqlalchemy.exc import SQLAlchemyError

from via_api.exceptions import StorageError

logger = logging.getLogger(__name__)

SRID_WGS84 = 4326


@asynccontextmanager
async def storage_call(operation: str) -> AsyncIterator[None]:
    """
    Wrap a block of storage work, translating failures into StorageError.

    OSError covers connection-level failures the driver raises before
    SQLAlchemy gets a chance to wrap them.
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Storage operation '%s' failed: %s", operation, exc)
        raise StorageError(
            message="A database error occurred. Please try again later.",
            details=str(exc),
            context={"operation": operation},
        ) from exc


def geography_point(lng: float, lat: float) -> WKTElement:
    """Build a WGS84 point for a Geography column. PostGIS order is (lng, lat)."""
    return WKTElement(f"POINT({lng!r} {lat!r})", srid=SRID_WGS84)


def latitude_of(column):
    """SQL expression decoding a geography point column to its latitude."""
    return func.ST_Y(cast(column, Geometry))


def longitude_of(column):
    return func.ST_X(cast(column, Geometry))
