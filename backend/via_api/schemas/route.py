"""
VIA Backend — Route Request/Response Schemas
==============================================

What:  Pydantic models defining the JSON contract of /api/v1/routes.
Why:   Automatic serialization and OpenAPI docs; the wire names (`seq`, `acc`,
       `start_label`, `route_points`, ...) are what the mobile client speaks.

Required-field policy:
    Request fields are declared Optional on purpose. Presence checks happen in
    RouteService so that a single 400 can list *every* missing field, instead
    of FastAPI's default 422 which stops at the schema layer.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


def blank_to_none(value):
    """
    Whitespace-only strings count as absent, so an empty timestamp is listed
    with the other missing fields instead of failing datetime parsing.
    """
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RoutePointIn(BaseModel):
    """One raw GPS fix as recorded by the client."""
    seq: Optional[int] = Field(default=None, description="Client-assigned ordering number")
    lat: Optional[float] = Field(default=None, description="Latitude in degrees")
    lng: Optional[float] = Field(default=None, description="Longitude in degrees")
    acc: Optional[float] = Field(default=None, description="Horizontal accuracy in meters")
    time: Optional[datetime] = Field(default=None, description="When the fix was recorded")

    @field_validator("time", mode="before")
    @classmethod
    def blank_time_is_missing(cls, v):
        return blank_to_none(v)


class RouteCreateRequest(BaseModel):
    title: Optional[str] = Field(default=None, examples=["Quickest way to GDC from Jester"])
    description: Optional[str] = Field(default=None, examples=["Avoids the Speedway crowd."])
    start_label: Optional[str] = Field(default=None, examples=["Jester West"])
    end_label: Optional[str] = Field(default=None, examples=["GDC 2.216"])
    start_time: Optional[datetime] = Field(default=None, examples=["2023-10-27T10:00:00Z"])
    end_time: Optional[datetime] = Field(default=None, examples=["2023-10-27T10:15:00Z"])
    tags: Optional[List[uuid.UUID]] = Field(default=None, description="Tag IDs to attach")
    points: Optional[List[RoutePointIn]] = Field(default=None, description="GPS trace")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def blank_times_are_missing(cls, v):
        return blank_to_none(v)


class VoteRequest(BaseModel):
    vote_type: Optional[str] = Field(default=None, examples=["up"])
    context: Optional[str] = Field(default=None, examples=["safety"])


class CommentRequest(BaseModel):
    content: Optional[str] = Field(default=None, examples=["Super cool route Nolan!"])


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RouteCreatedResponse(BaseModel):
    route_id: uuid.UUID


class Coordinates(BaseModel):
    lat: float
    lng: float


class RouteSummary(BaseModel):
    """
    What:  One entry of the route feed.
    Why:   Carries everything the feed sorts on (created_at, vote_count,
           distance_meters) so clients can re-sort locally.
    """
    id: uuid.UUID
    creator_id: Optional[uuid.UUID] = None
    title: str
    description: Optional[str] = None
    start_label: str
    end_label: str
    start: Coordinates
    end: Coordinates
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    distance_meters: float
    created_at: datetime
    tags: List[str] = Field(default_factory=list)
    vote_count: int = 0
    upvotes: int = 0
    downvotes: int = 0
    avg_rating: float = Field(default=0.0, ge=-1.0, le=1.0)


class RoutePointOut(BaseModel):
    sequence: int
    lat: float
    lng: float
    accuracy_meters: Optional[float] = None
    recorded_at: datetime


class RouteDetail(RouteSummary):
    """Full route object; points are ordered by sequence."""
    route_points: List[RoutePointOut] = Field(default_factory=list)


class FeedFilters(BaseModel):
    """
    Filters as applied to the feed.

    Proximity filtering is not implemented: the geo parameters are accepted
    by GET /routes but always reported back as null.
    """
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius: Optional[float] = None
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None
    tags: Optional[List[str]] = None
    sort: str = "recent"


class RouteListResponse(BaseModel):
    data: List[RouteSummary]
    count: int
    filters: FeedFilters


class VoteResponse(BaseModel):
    message: str = "Vote recorded successfully"
    route_id: uuid.UUID
    vote_type: str
    context: str
    vote_count: int
    upvotes: int
    downvotes: int
    avg_rating: float


class CommentResponse(BaseModel):
    message: str = "Comment added successfully"
    route_id: uuid.UUID
    comment_id: uuid.UUID
    content: str
