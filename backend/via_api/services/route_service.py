"""
VIA Backend — Route Service (Ingestion, Feed, Votes, Comments)
================================================================

What:  Business logic for everything under /api/v1/routes.
Why:   Keeps validation, geo math and ranking independent of HTTP and SQL.
How:   Composes the point normalizer, the Haversine calculator and the vote
       aggregator over a storage collaborator passed in at construction.
Who:   Built per request by the route handlers' dependency; tests build it
       around a mock or in-memory repository.

Ingestion Flow (POST /routes):
    ┌───────────┐   ┌────────────┐   ┌──────────────┐   ┌───────────┐   ┌──────────┐
    │ Required  │──▶│ Normalize  │──▶│ Duration &   │──▶│ Route row │──▶│ Points   │──▶ Tags
    │ fields    │   │ trace      │   │ distance     │   │ (anchors) │   │ (bulk)   │   (best-effort)
    └───────────┘   └────────────┘   └──────────────┘   └───────────┘   └──────────┘

    Validation happens entirely before the first storage call. The route row
    and its points share the request transaction; a tag failure is logged and
    swallowed because tags are non-essential metadata.

Feed Flow (GET /routes):
    active routes (≤ limit) → batched votes → aggregate per route → tag names
    → optional tag filter → sort (recent | popular | efficient)
"""

import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from via_api.config import settings
from via_api.exceptions import (
    InvalidFieldError,
    MissingFieldsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from via_api.repositories.route_repository import RouteRecord, RouteRepository, VoteRecord
from via_api.schemas.route import (
    CommentResponse,
    Coordinates,
    FeedFilters,
    RouteDetail,
    RouteListResponse,
    RoutePointOut,
    RouteSummary,
    VoteResponse,
)
from via_api.services.geo import total_distance
from via_api.services.normalizer import normalize_points, parse_timestamp
from via_api.services.votes import VOTE_CONTEXTS, VOTE_TYPES, VoteSummary, aggregate

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("recent", "popular", "efficient")
DEFAULT_SORT = "recent"


def trip_duration_seconds(start_time: datetime, end_time: datetime) -> int:
    """Whole seconds between the two timestamps, truncated toward zero."""
    return math.trunc((end_time - start_time).total_seconds())


def parse_tag_filter(tags_csv: Optional[str]) -> List[str]:
    """'Shade, quiet,,' → ['shade', 'quiet'] (lowercased, blanks dropped, order kept)."""
    if not tags_csv:
        return []
    names = [name.strip().lower() for name in tags_csv.split(",")]
    return list(dict.fromkeys(name for name in names if name))


def rank_routes(routes: Iterable[RouteSummary], sort: str) -> List[RouteSummary]:
    """
    Order feed entries by the requested criterion.

        recent     created_at, newest first
        popular    vote_count, highest first
        efficient  distance_meters, shortest first
    """
    if sort == "popular":
        return sorted(routes, key=lambda route: route.vote_count, reverse=True)
    if sort == "efficient":
        return sorted(routes, key=lambda route: route.distance_meters)
    return sorted(routes, key=lambda route: route.created_at, reverse=True)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RouteService:
    """
    Route ingestion, feed ranking, single-route fetch, voting and comments.

    Error Handling Strategy:
        Input problems raise ValidationError subclasses before any storage
        call. Missing or soft-deleted routes raise NotFoundError. Repository
        failures arrive as StorageError and propagate unchanged, except for
        tag association, which is best-effort.
    """

    def __init__(
        self,
        repository: RouteRepository,
        feed_limit: Optional[int] = None,
        reject_negative_duration: Optional[bool] = None,
    ):
        self.repository = repository
        self.feed_limit = feed_limit if feed_limit is not None else settings.feed_limit
        self.reject_negative_duration = (
            reject_negative_duration
            if reject_negative_duration is not None
            else settings.reject_negative_duration
        )

    # ── Ingestion ─────────────────────────────────────────────────────────

    async def create_route(
        self,
        creator_id: Optional[uuid.UUID],
        title: Optional[str],
        start_label: Optional[str],
        end_label: Optional[str],
        start_time: Any,
        end_time: Any,
        raw_points: Optional[Sequence[Mapping[str, Any]]],
        description: Optional[str] = None,
        tag_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> uuid.UUID:
        """
        Validate a submitted trip and persist route, points and tags.

        Args:
            creator_id: Authenticated user id (may be None for imports)
            title, start_label, end_label: Required, non-blank
            start_time, end_time: datetimes or ISO 8601 strings
            raw_points: Unordered trace, each {seq, lat, lng, acc?, time}
            description: Optional free text
            tag_ids: Tag ids to associate, best-effort

        Returns:
            The new route id.

        Raises:
            MissingFieldsError: listing every absent required field
            ValidationError: malformed points or timestamps, or a negative
                duration when REJECT_NEGATIVE_DURATION is on
            StorageError: route row or point insert failed
        """
        missing = [
            name
            for name, value in (
                ("title", title),
                ("start_label", start_label),
                ("end_label", end_label),
                ("start_time", start_time),
                ("end_time", end_time),
            )
            if _is_blank(value)
        ]
        if not raw_points:
            missing.append("points")
        if missing:
            raise MissingFieldsError(missing)

        trace = normalize_points(raw_points)
        started = parse_timestamp(start_time, field="start_time")
        ended = parse_timestamp(end_time, field="end_time")

        duration_seconds = trip_duration_seconds(started, ended)
        if duration_seconds < 0:
            if self.reject_negative_duration:
                raise ValidationError(
                    message="end_time must not be earlier than start_time",
                    field="end_time",
                    context={"duration_seconds": duration_seconds},
                )
            logger.warning(
                "Accepting route '%s' with negative duration %ds", title, duration_seconds
            )

        distance_meters = total_distance(trace.points)

        route_id = await self.repository.create_route_with_geography(
            creator_id=creator_id,
            title=title.strip(),
            description=description,
            start_label=start_label.strip(),
            end_label=end_label.strip(),
            start_lng=trace.start.lng,
            start_lat=trace.start.lat,
            end_lng=trace.end.lng,
            end_lat=trace.end.lat,
            start_time=started,
            end_time=ended,
            duration_seconds=duration_seconds,
            distance_meters=distance_meters,
        )

        try:
            await self.repository.insert_route_points(route_id, trace.points)
        except StorageError:
            logger.error(
                "Inserting %d points for route %s failed; the request transaction "
                "will be rolled back",
                len(trace.points),
                route_id,
            )
            raise

        if tag_ids:
            try:
                await self.repository.add_route_tags(route_id, tag_ids)
            except StorageError as e:
                logger.warning(
                    "Tag association failed for route %s (tags=%s): %s",
                    route_id,
                    [str(tag_id) for tag_id in tag_ids],
                    e.details or e.message,
                )

        logger.info(
            "Route %s created: %d points, %.1f m, %d s",
            route_id,
            len(trace.points),
            distance_meters,
            duration_seconds,
        )
        return route_id

    # ── Feed ──────────────────────────────────────────────────────────────

    async def list_routes(
        self,
        tags: Optional[str] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> RouteListResponse:
        """
        Build the route feed.

        Args:
            tags: Comma-separated tag names; a route is kept when any of its
                tags matches (case-insensitive)
            sort: 'recent' (default), 'popular' or 'efficient'
            limit: Rows to fetch, capped at FEED_LIMIT

        Raises:
            InvalidFieldError: unknown sort value
            StorageError: any read failed
        """
        sort_key = (sort or DEFAULT_SORT).strip().lower() or DEFAULT_SORT
        if sort_key not in SORT_OPTIONS:
            raise InvalidFieldError("sort", sort, SORT_OPTIONS)

        fetch_limit = min(limit or self.feed_limit, self.feed_limit)
        tag_filter = parse_tag_filter(tags)

        routes = await self.repository.list_active_routes(fetch_limit)
        route_ids = [route.id for route in routes]
        votes = await self.repository.get_votes_for_routes(route_ids) if route_ids else []
        tag_names = (
            await self.repository.get_tag_names_for_routes(route_ids) if route_ids else {}
        )

        votes_by_route: Dict[uuid.UUID, List[VoteRecord]] = defaultdict(list)
        for vote in votes:
            votes_by_route[vote.route_id].append(vote)

        summaries = [
            self._summary(
                route,
                aggregate(votes_by_route.get(route.id, [])),
                tag_names.get(route.id, []),
            )
            for route in routes
        ]

        if tag_filter:
            wanted = set(tag_filter)
            summaries = [
                summary
                for summary in summaries
                if wanted & {name.lower() for name in summary.tags}
            ]

        ranked = rank_routes(summaries, sort_key)
        logger.debug(
            "Feed: %d fetched, %d after tag filter, sort=%s", len(routes), len(ranked), sort_key
        )

        return RouteListResponse(
            data=ranked,
            count=len(ranked),
            filters=FeedFilters(tags=tag_filter or None, sort=sort_key),
        )

    async def get_route(self, route_id: uuid.UUID) -> RouteDetail:
        """
        Full route with votes, tags and points in sequence order.

        Raises:
            NotFoundError: no route with this id, or the route is inactive
        """
        route = await self._require_active_route(route_id)
        points = await self.repository.get_route_points(route_id)
        votes = await self.repository.get_votes_for_routes([route_id])
        tag_names = await self.repository.get_tag_names_for_routes([route_id])

        summary = self._summary(route, aggregate(votes), tag_names.get(route_id, []))
        ordered = sorted(points, key=lambda point: point.sequence)
        return RouteDetail(
            **summary.model_dump(),
            route_points=[
                RoutePointOut(
                    sequence=point.sequence,
                    lat=point.lat,
                    lng=point.lng,
                    accuracy_meters=point.accuracy_meters,
                    recorded_at=point.recorded_at,
                )
                for point in ordered
            ],
        )

    # ── Votes & Comments ──────────────────────────────────────────────────

    async def cast_vote(
        self,
        route_id: uuid.UUID,
        user_id: uuid.UUID,
        vote_type: Optional[str],
        context: Optional[str],
    ) -> VoteResponse:
        """
        Record (or replace) the user's vote and return the refreshed tally.

        The conflict key is (route_id, user_id): a user holds one vote per
        route, and voting again overwrites both vote_type and context.

        Raises:
            InvalidFieldError: vote_type not in {up, down} or context not in
                {safety, efficiency, scenery}; checked before anything else
            NotFoundError: route missing or inactive
        """
        if vote_type not in VOTE_TYPES:
            raise InvalidFieldError("vote_type", vote_type, VOTE_TYPES)
        if context not in VOTE_CONTEXTS:
            raise InvalidFieldError("context", context, VOTE_CONTEXTS)

        await self._require_active_route(route_id)
        await self.repository.upsert_vote(route_id, user_id, vote_type, context)
        summary = aggregate(await self.repository.get_votes_for_routes([route_id]))

        logger.info(
            "Vote %s/%s by %s on route %s (total=%d)",
            vote_type, context, user_id, route_id, summary.total,
        )
        return VoteResponse(
            route_id=route_id,
            vote_type=vote_type,
            context=context,
            vote_count=summary.total,
            upvotes=summary.upvotes,
            downvotes=summary.downvotes,
            avg_rating=summary.avg_rating,
        )

    async def add_comment(
        self, route_id: uuid.UUID, user_id: uuid.UUID, content: Optional[str]
    ) -> CommentResponse:
        if _is_blank(content):
            raise MissingFieldsError(["content"])
        await self._require_active_route(route_id)
        comment = await self.repository.add_comment(route_id, user_id, content.strip())
        return CommentResponse(
            route_id=route_id,
            comment_id=comment.id,
            content=comment.content,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _require_active_route(self, route_id: uuid.UUID) -> RouteRecord:
        route = await self.repository.get_active_route(route_id)
        if route is None:
            raise NotFoundError(resource="route", resource_id=str(route_id))
        return route

    @staticmethod
    def _summary(route: RouteRecord, votes: VoteSummary, tags: List[str]) -> RouteSummary:
        return RouteSummary(
            id=route.id,
            creator_id=route.creator_id,
            title=route.title,
            description=route.description,
            start_label=route.start_label,
            end_label=route.end_label,
            start=Coordinates(lat=route.start_lat, lng=route.start_lng),
            end=Coordinates(lat=route.end_lat, lng=route.end_lng),
            start_time=route.start_time,
            end_time=route.end_time,
            duration_seconds=route.duration_seconds,
            distance_meters=route.distance_meters,
            created_at=route.created_at,
            tags=list(tags),
            vote_count=votes.total,
            upvotes=votes.upvotes,
            downvotes=votes.downvotes,
            avg_rating=votes.avg_rating,
        )
