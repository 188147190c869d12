"""
VIA Backend — Route Storage Collaborator
==========================================

What:  All SQL for routes, points, tags, votes and comments.
Why:   Services stay free of SQLAlchemy; they talk to this class, which a test
       can replace with an in-memory double.
How:   Bound to one AsyncSession per request (see database.get_db_session).
       Geography columns are written as WKT points and read back decoded to
       plain lat/lng with ST_Y/ST_X, so callers never see PostGIS types.

Query plans (feed path):
    list_active_routes       WHERE is_active ORDER BY created_at DESC LIMIT :n
                             → idx_routes_active_created_at
    get_votes_for_routes     WHERE route_id = ANY(:ids)   (one batched call)
    get_tag_names_for_routes route_tags JOIN tags WHERE route_id = ANY(:ids)
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from via_api.models import Comment, Route, RoutePoint, RouteTag, Tag, Vote
from via_api.repositories.base import (
    geography_point,
    latitude_of,
    longitude_of,
    storage_call,
)
from via_api.services.normalizer import TracePoint

logger = logging.getLogger(__name__)


@dataclass
class RouteRecord:
    """A route row with its geography anchors decoded to lat/lng."""

    id: uuid.UUID
    creator_id: Optional[uuid.UUID]
    title: str
    description: Optional[str]
    start_label: str
    end_label: str
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    distance_meters: float
    is_active: bool
    created_at: datetime


@dataclass
class PointRecord:
    sequence: int
    lat: float
    lng: float
    accuracy_meters: Optional[float]
    recorded_at: datetime


@dataclass
class VoteRecord:
    route_id: uuid.UUID
    user_id: uuid.UUID
    vote_type: str
    context: str


@dataclass
class CommentRecord:
    id: uuid.UUID
    route_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime


_ROUTE_COLUMNS = (
    Route.id,
    Route.creator_id,
    Route.title,
    Route.description,
    Route.start_label,
    Route.end_label,
    latitude_of(Route.start_point).label("start_lat"),
    longitude_of(Route.start_point).label("start_lng"),
    latitude_of(Route.end_point).label("end_lat"),
    longitude_of(Route.end_point).label("end_lng"),
    Route.start_time,
    Route.end_time,
    Route.duration_seconds,
    Route.distance_meters,
    Route.is_active,
    Route.created_at,
)


class RouteRepository:
    """Storage operations backing route ingestion, the feed and voting."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_route_with_geography(
        self,
        creator_id: Optional[uuid.UUID],
        title: str,
        description: Optional[str],
        start_label: str,
        end_label: str,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        start_time: datetime,
        end_time: datetime,
        duration_seconds: int,
        distance_meters: float,
    ) -> uuid.UUID:
        """Insert the route row, building both geography anchors. Returns the new id."""
        async with storage_call("create_route_with_geography"):
            route = Route(
                creator_id=creator_id,
                title=title,
                description=description,
                start_label=start_label,
                end_label=end_label,
                start_point=geography_point(start_lng, start_lat),
                end_point=geography_point(end_lng, end_lat),
                start_time=start_time,
                end_time=end_time,
                duration_seconds=duration_seconds,
                distance_meters=distance_meters,
                is_active=True,
            )
            self.session.add(route)
            await self.session.flush()
            return route.id

    async def insert_route_points(
        self, route_id: uuid.UUID, points: Sequence[TracePoint]
    ) -> None:
        """Bulk insert the whole trace in one flush."""
        async with storage_call("insert_route_points"):
            self.session.add_all(
                [
                    RoutePoint(
                        route_id=route_id,
                        sequence=point.sequence,
                        location=geography_point(point.lng, point.lat),
                        accuracy_meters=point.accuracy_meters,
                        recorded_at=point.recorded_at,
                    )
                    for point in points
                ]
            )
            await self.session.flush()

    async def add_route_tags(self, route_id: uuid.UUID, tag_ids: Iterable[uuid.UUID]) -> None:
        """
        Associate tags with a route inside a SAVEPOINT.

        An unknown tag id violates the foreign key; the savepoint rolls back
        only this step and the route and its points stay intact.
        """
        unique_ids = list(dict.fromkeys(tag_ids))
        if not unique_ids:
            return
        async with storage_call("add_route_tags"):
            async with self.session.begin_nested():
                await self.session.execute(
                    pg_insert(RouteTag)
                    .values([{"route_id": route_id, "tag_id": tag_id} for tag_id in unique_ids])
                    .on_conflict_do_nothing()
                )

    async def upsert_vote(
        self, route_id: uuid.UUID, user_id: uuid.UUID, vote_type: str, context: str
    ) -> None:
        """Insert or replace the user's vote on this route (key: route_id, user_id)."""
        async with storage_call("upsert_vote"):
            statement = pg_insert(Vote).values(
                route_id=route_id,
                user_id=user_id,
                vote_type=vote_type,
                context=context,
            )
            statement = statement.on_conflict_do_update(
                index_elements=[Vote.route_id, Vote.user_id],
                set_={
                    "vote_type": statement.excluded.vote_type,
                    "context": statement.excluded.context,
                    "updated_at": func.now(),
                },
            )
            await self.session.execute(statement)

    async def add_comment(
        self, route_id: uuid.UUID, user_id: uuid.UUID, content: str
    ) -> CommentRecord:
        async with storage_call("add_comment"):
            comment = Comment(route_id=route_id, user_id=user_id, content=content)
            self.session.add(comment)
            await self.session.flush()
            return CommentRecord(
                id=comment.id,
                route_id=comment.route_id,
                user_id=comment.user_id,
                content=comment.content,
                created_at=comment.created_at,
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_active_routes(self, limit: int) -> List[RouteRecord]:
        """Newest active routes first, at most `limit` rows."""
        async with storage_call("list_active_routes"):
            result = await self.session.execute(
                select(*_ROUTE_COLUMNS)
                .where(Route.is_active.is_(True))
                .order_by(desc(Route.created_at))
                .limit(limit)
            )
            return [RouteRecord(**row._mapping) for row in result.all()]

    async def get_active_route(self, route_id: uuid.UUID) -> Optional[RouteRecord]:
        """Returns None for both missing and soft-deleted routes."""
        async with storage_call("get_active_route"):
            result = await self.session.execute(
                select(*_ROUTE_COLUMNS).where(
                    Route.id == route_id, Route.is_active.is_(True)
                )
            )
            row = result.one_or_none()
            return RouteRecord(**row._mapping) if row is not None else None

    async def get_route_points(self, route_id: uuid.UUID) -> List[PointRecord]:
        async with storage_call("get_route_points"):
            result = await self.session.execute(
                select(
                    RoutePoint.sequence,
                    latitude_of(RoutePoint.location).label("lat"),
                    longitude_of(RoutePoint.location).label("lng"),
                    RoutePoint.accuracy_meters,
                    RoutePoint.recorded_at,
                )
                .where(RoutePoint.route_id == route_id)
                .order_by(RoutePoint.sequence)
            )
            return [PointRecord(**row._mapping) for row in result.all()]

    async def get_votes_for_routes(self, route_ids: Sequence[uuid.UUID]) -> List[VoteRecord]:
        if not route_ids:
            return []
        async with storage_call("get_votes_for_routes"):
            result = await self.session.execute(
                select(Vote.route_id, Vote.user_id, Vote.vote_type, Vote.context).where(
                    Vote.route_id.in_(list(route_ids))
                )
            )
            return [VoteRecord(**row._mapping) for row in result.all()]

    async def get_tag_names_for_routes(
        self, route_ids: Sequence[uuid.UUID]
    ) -> Dict[uuid.UUID, List[str]]:
        if not route_ids:
            return {}
        async with storage_call("get_tag_names_for_routes"):
            result = await self.session.execute(
                select(RouteTag.route_id, Tag.name)
                .join(Tag, Tag.id == RouteTag.tag_id)
                .where(RouteTag.route_id.in_(list(route_ids)))
                .order_by(Tag.name)
            )
            names: Dict[uuid.UUID, List[str]] = defaultdict(list)
            for route_id, name in result.all():
                names[route_id].append(name)
            return dict(names)
