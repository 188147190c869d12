"""
VIA Backend — Route, RoutePoint and Tag Models
================================================

What:  ORM models for user-submitted routes, their GPS traces and tags.
How:   SQLAlchemy 2.0 declarative mapping; geographic columns use GeoAlchemy2's
       `Geography(POINT, 4326)` so PostGIS computes spherical distances and
       builds GiST indexes for them.

Table Design:
    routes          one row per submitted trip; start/end anchors are derived
                    from the first/last point in sequence order
    route_points    the full trace, unique (route_id, sequence)
    tags            global vocabulary ("shade", "quiet", ...)
    route_tags      many-to-many join

Soft delete:
    `routes.is_active = false` hides a route from every read path. Rows are
    never physically deleted by the API.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from geoalchemy2 import Geography
from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from via_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Route(Base):
    """
    A shared trip between two labelled places.

    Derived columns:
        duration_seconds = end_time - start_time, truncated toward zero
        distance_meters  = Σ haversine over points ordered by sequence
    """

    __tablename__ = "routes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    # Nullable: routes survive deletion of the creator's profile
    creator_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_label: Mapped[str] = mapped_column(String(255), nullable=False)
    end_label: Mapped[str] = mapped_column(String(255), nullable=False)

    start_point: Mapped[object] = mapped_column(
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        nullable=False,
    )
    end_point: Mapped[object] = mapped_column(
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    distance_meters: Mapped[float] = mapped_column(Float, nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    points: Mapped[List["RoutePoint"]] = relationship(
        back_populates="route",
        order_by="RoutePoint.sequence",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[List["Tag"]] = relationship(secondary="route_tags", viewonly=True)

    # Feed query: WHERE is_active ORDER BY created_at DESC LIMIT 100
    __table_args__ = (
        Index("idx_routes_active_created_at", "is_active", created_at.desc()),
        Index("idx_routes_creator_id", "creator_id"),
        Index("idx_routes_start_point", "start_point", postgresql_using="gist"),
        Index("idx_routes_end_point", "end_point", postgresql_using="gist"),
    )

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, title='{self.title}', active={self.is_active})>"


class RoutePoint(Base):
    """A single GPS fix of a route trace. Immutable once written."""

    __tablename__ = "route_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    route_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("routes.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[object] = mapped_column(
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        nullable=False,
    )
    accuracy_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    route: Mapped[Route] = relationship(back_populates="points")

    __table_args__ = (
        UniqueConstraint("route_id", "sequence", name="uq_route_points_route_sequence"),
        Index("idx_route_points_location", "location", postgresql_using="gist"),
    )


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class RouteTag(Base):
    __tablename__ = "route_tags"

    route_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("routes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )
