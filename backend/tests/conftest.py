"""
VIA Backend — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Inventory:
    ├── route_repo:       InMemoryRouteRepository (real behaviour, no database)
    ├── mock_route_repo:  AsyncMock with the RouteRepository interface
    ├── mock_user_repo:   AsyncMock with the UserRepository interface
    ├── make_token:       mints Supabase-style HS256 access tokens
    ├── sample_points:    a three-point trace posted out of order
    └── test_client:      HTTPX AsyncClient against create_app() with the
                          service and auth providers overridden
"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from itertools import count
from types import SimpleNamespace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from unittest.mock import AsyncMock

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before anything imports via_api.config
TEST_JWT_SECRET = "test-jwt-secret-not-real-0123456789abcdef"
os.environ["SUPABASE_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ALLOWED_EMAIL_DOMAINS"] = "@utexas.edu,@my.utexas.edu"

from via_api.auth import SupabaseJWTAuthProvider, get_auth_provider  # noqa: E402
from via_api.dependencies import get_route_service, get_user_service  # noqa: E402
from via_api.exceptions import StorageError  # noqa: E402
from via_api.repositories.route_repository import (  # noqa: E402
    CommentRecord,
    PointRecord,
    RouteRecord,
    VoteRecord,
)
from via_api.services.route_service import RouteService  # noqa: E402
from via_api.services.user_service import UserService  # noqa: E402

BASE_TIME = datetime(2023, 10, 27, 10, 0, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Storage Double
# ══════════════════════════════════════════════════════════════════════════

class InMemoryRouteRepository:
    """
    Dict-backed stand-in for RouteRepository.

    Mirrors the storage rules the services depend on: votes are keyed by
    (route_id, user_id), inactive routes are invisible to reads, and the
    feed comes back newest first. Name a method in `failing` to make it
    raise StorageError.
    """

    def __init__(self):
        self.routes: Dict[uuid.UUID, RouteRecord] = {}
        self.points: Dict[uuid.UUID, List[PointRecord]] = {}
        self.route_tags: Dict[uuid.UUID, List[uuid.UUID]] = {}
        self.tags: Dict[uuid.UUID, str] = {}
        self.votes: Dict[Tuple[uuid.UUID, uuid.UUID], VoteRecord] = {}
        self.comments: List[CommentRecord] = []
        self.failing: Set[str] = set()
        self.calls: List[str] = []
        self._clock = count()

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise StorageError(details=f"simulated failure in {name}", context={"operation": name})

    def add_tag(self, name: str) -> uuid.UUID:
        tag_id = uuid.uuid4()
        self.tags[tag_id] = name
        return tag_id

    def deactivate(self, route_id: uuid.UUID) -> None:
        self.routes[route_id].is_active = False

    async def create_route_with_geography(self, **fields) -> uuid.UUID:
        self._enter("create_route_with_geography")
        route_id = uuid.uuid4()
        self.routes[route_id] = RouteRecord(
            id=route_id,
            is_active=True,
            created_at=BASE_TIME + timedelta(minutes=next(self._clock)),
            **fields,
        )
        return route_id

    async def insert_route_points(self, route_id, points) -> None:
        self._enter("insert_route_points")
        self.points[route_id] = [
            PointRecord(
                sequence=point.sequence,
                lat=point.lat,
                lng=point.lng,
                accuracy_meters=point.accuracy_meters,
                recorded_at=point.recorded_at,
            )
            for point in points
        ]

    async def add_route_tags(self, route_id, tag_ids: Iterable[uuid.UUID]) -> None:
        self._enter("add_route_tags")
        existing = self.route_tags.setdefault(route_id, [])
        for tag_id in tag_ids:
            if tag_id not in existing:
                existing.append(tag_id)

    async def upsert_vote(self, route_id, user_id, vote_type, context) -> None:
        self._enter("upsert_vote")
        self.votes[(route_id, user_id)] = VoteRecord(
            route_id=route_id, user_id=user_id, vote_type=vote_type, context=context
        )

    async def add_comment(self, route_id, user_id, content) -> CommentRecord:
        self._enter("add_comment")
        comment = CommentRecord(
            id=uuid.uuid4(),
            route_id=route_id,
            user_id=user_id,
            content=content,
            created_at=BASE_TIME,
        )
        self.comments.append(comment)
        return comment

    async def list_active_routes(self, limit: int) -> List[RouteRecord]:
        self._enter("list_active_routes")
        active = [route for route in self.routes.values() if route.is_active]
        active.sort(key=lambda route: route.created_at, reverse=True)
        return active[:limit]

    async def get_active_route(self, route_id) -> Optional[RouteRecord]:
        self._enter("get_active_route")
        route = self.routes.get(route_id)
        return route if route is not None and route.is_active else None

    async def get_route_points(self, route_id) -> List[PointRecord]:
        self._enter("get_route_points")
        return list(self.points.get(route_id, []))

    async def get_votes_for_routes(self, route_ids: Sequence[uuid.UUID]) -> List[VoteRecord]:
        self._enter("get_votes_for_routes")
        wanted = set(route_ids)
        return [vote for vote in self.votes.values() if vote.route_id in wanted]

    async def get_tag_names_for_routes(self, route_ids) -> Dict[uuid.UUID, List[str]]:
        self._enter("get_tag_names_for_routes")
        return {
            route_id: [self.tags[tag_id] for tag_id in self.route_tags.get(route_id, [])]
            for route_id in route_ids
            if self.route_tags.get(route_id)
        }


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def route_repo():
    return InMemoryRouteRepository()


@pytest.fixture
def mock_route_repo():
    """
    AsyncMock repository for asserting which storage calls happen.

    Usage:
        mock_route_repo.get_active_route.return_value = None
        with pytest.raises(NotFoundError): ...
        mock_route_repo.upsert_vote.assert_not_called()
    """
    repo = AsyncMock()
    repo.create_route_with_geography.return_value = uuid.uuid4()
    repo.list_active_routes.return_value = []
    repo.get_votes_for_routes.return_value = []
    repo.get_tag_names_for_routes.return_value = {}
    return repo


@pytest.fixture
def mock_user_repo():
    repo = AsyncMock()
    repo.count_routes_created.return_value = 0
    repo.count_route_usage.return_value = 0
    repo.count_friends.return_value = 0
    return repo


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def make_profile():
    def _make(profile_id: uuid.UUID, email: str = "nolan@utexas.edu", full_name: str = "Nolan"):
        return SimpleNamespace(id=profile_id, email=email, full_name=full_name, created_at=BASE_TIME)
    return _make


@pytest.fixture
def make_token():
    """
    Mint an access token shaped like Supabase's.

        token = make_token(user_id)
        token = make_token(user_id, expires_in=-60)   # already expired
    """
    def _make(
        sub: Optional[object] = None,
        email: str = "nolan@utexas.edu",
        expires_in: int = 3600,
        secret: str = TEST_JWT_SECRET,
        audience: str = "authenticated",
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "aud": audience,
            "email": email,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in),
        }
        if sub is not None:
            payload["sub"] = str(sub)
        return jwt.encode(payload, secret, algorithm="HS256")
    return _make


@pytest.fixture
def sample_points():
    """Three fixes across the UT campus, deliberately posted out of order."""
    return [
        {"seq": 3, "lat": 30.2861, "lng": -97.7329, "acc": 4.0, "time": "2023-10-27T10:10:00Z"},
        {"seq": 1, "lat": 30.2849, "lng": -97.7341, "acc": 5.0, "time": "2023-10-27T10:00:00Z"},
        {"seq": 2, "lat": 30.2855, "lng": -97.7335, "acc": 5.0, "time": "2023-10-27T10:05:00Z"},
    ]


@pytest.fixture
def route_payload(sample_points):
    return {
        "title": "Jester to GDC",
        "description": "Shaded most of the way",
        "start_label": "Jester West",
        "end_label": "GDC",
        "start_time": "2023-10-27T10:00:00Z",
        "end_time": "2023-10-27T10:15:00Z",
        "points": sample_points,
    }


@pytest_asyncio.fixture
async def test_client(route_repo, mock_user_repo):
    """
    HTTPX AsyncClient bound to a fresh app over the in-memory repository.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    from via_api.main import create_app

    app = create_app()
    app.dependency_overrides[get_route_service] = lambda: RouteService(
        route_repo, feed_limit=100, reject_negative_duration=False
    )
    app.dependency_overrides[get_user_service] = lambda: UserService(mock_user_repo)
    app.dependency_overrides[get_auth_provider] = lambda: SupabaseJWTAuthProvider(TEST_JWT_SECRET)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
