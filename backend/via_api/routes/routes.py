"""
VIA Backend — Route Handlers (/api/v1/routes)
===============================================

What:  Create, list, fetch, vote on and comment on shared routes.
How:   Parse the request, delegate to RouteService, return the response model.
       Errors are raised as typed exceptions and formatted by the global
       handlers in main.py; no handler catches anything itself.

Endpoint Inventory:
    POST /api/v1/routes                 (auth)  create a route from a GPS trace
    GET  /api/v1/routes                         feed with tag filter and sort
    GET  /api/v1/routes/{id}                    full route incl. route_points
    POST /api/v1/routes/{id}/vote       (auth)  up/down vote with a context
    POST /api/v1/routes/{id}/comments   (auth)  add a comment
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from via_api.auth import AuthenticatedUser, get_current_user
from via_api.dependencies import get_route_service
from via_api.schemas.common import ErrorResponse
from via_api.schemas.route import (
    CommentRequest,
    CommentResponse,
    RouteCreatedResponse,
    RouteCreateRequest,
    RouteDetail,
    RouteListResponse,
    VoteRequest,
    VoteResponse,
)
from via_api.services.route_service import RouteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/routes", tags=["Routes"])


@router.post(
    "",
    status_code=201,
    response_model=RouteCreatedResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Create a route",
    description=(
        "Create a route from a GPS trace. Points may arrive in any order; they are "
        "sorted by `seq`, and duration and Haversine distance are computed server-side."
    ),
)
async def create_route(
    body: RouteCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: RouteService = Depends(get_route_service),
) -> RouteCreatedResponse:
    logger.info(
        "Create route request from %s: %d points",
        user.id,
        len(body.points or []),
    )
    route_id = await service.create_route(
        creator_id=user.id,
        title=body.title,
        description=body.description,
        start_label=body.start_label,
        end_label=body.end_label,
        start_time=body.start_time,
        end_time=body.end_time,
        tag_ids=body.tags or [],
        raw_points=[point.model_dump() for point in body.points or []],
    )
    return RouteCreatedResponse(route_id=route_id)


@router.get(
    "",
    response_model=RouteListResponse,
    responses={
        400: {"description": "Invalid sort value", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Search and feed routes",
    description=(
        "Up to 100 active routes with vote tallies and tags, optionally filtered by "
        "tag names and sorted by recency, popularity or distance. Location parameters "
        "are accepted but proximity filtering is not applied."
    ),
)
async def list_routes(
    lat: Optional[float] = Query(default=None, description="User's current latitude (not applied)"),
    lng: Optional[float] = Query(default=None, description="User's current longitude (not applied)"),
    radius: Optional[float] = Query(default=None, description="Search radius in meters (not applied)"),
    dest_lat: Optional[float] = Query(default=None, description="Destination latitude (not applied)"),
    dest_lng: Optional[float] = Query(default=None, description="Destination longitude (not applied)"),
    tags: Optional[str] = Query(default=None, description="CSV of tag names, e.g. 'shade,quiet'"),
    sort: str = Query(default="recent", description="recent | popular | efficient"),
    service: RouteService = Depends(get_route_service),
) -> RouteListResponse:
    if any(value is not None for value in (lat, lng, radius, dest_lat, dest_lng)):
        logger.debug("Ignoring location parameters on GET /routes")
    return await service.list_routes(tags=tags, sort=sort)


@router.get(
    "/{route_id}",
    response_model=RouteDetail,
    responses={
        404: {"description": "Route not found or inactive", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Get specific route",
)
async def get_route(
    route_id: UUID,
    service: RouteService = Depends(get_route_service),
) -> RouteDetail:
    return await service.get_route(route_id)


@router.post(
    "/{route_id}/vote",
    status_code=201,
    response_model=VoteResponse,
    responses={
        400: {"description": "Invalid vote_type or context", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Route not found or inactive", "model": ErrorResponse},
        500: {"description": "Storage error", "model": ErrorResponse},
    },
    summary="Upvote or downvote a route",
    description=(
        "One vote per user per route. Voting again replaces the previous vote, "
        "including its context."
    ),
)
async def vote_on_route(
    route_id: UUID,
    body: VoteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: RouteService = Depends(get_route_service),
) -> VoteResponse:
    return await service.cast_vote(
        route_id=route_id,
        user_id=user.id,
        vote_type=body.vote_type,
        context=body.context,
    )


@router.post(
    "/{route_id}/comments",
    status_code=201,
    response_model=CommentResponse,
    responses={
        400: {"description": "Missing content", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Route not found or inactive", "model": ErrorResponse},
    },
    summary="Add a comment to a route",
)
async def comment_on_route(
    route_id: UUID,
    body: CommentRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: RouteService = Depends(get_route_service),
) -> CommentResponse:
    return await service.add_comment(route_id=route_id, user_id=user.id, content=body.content)
