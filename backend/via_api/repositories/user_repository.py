"""
VIA Backend — User Storage Collaborator
=========================================

Profile lookups, the counters shown on /users/me, and friend requests.
"""

import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from via_api.models import Friend, Profile, Route, RouteUsage
from via_api.repositories.base import storage_call


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_profile(self, user_id: uuid.UUID) -> Optional[Profile]:
        async with storage_call("get_profile"):
            result = await self.session.execute(
                select(Profile).where(Profile.id == user_id)
            )
            return result.scalar_one_or_none()

    async def _count(self, operation: str, statement) -> int:
        """
        Run a COUNT inside a SAVEPOINT.

        A failed counter rolls back to the savepoint only, so the remaining
        counters in the same request transaction still run.
        """
        async with storage_call(operation):
            async with self.session.begin_nested():
                result = await self.session.execute(statement)
                return result.scalar() or 0

    async def count_routes_created(self, user_id: uuid.UUID) -> int:
        """Active routes only; soft-deleted routes do not count."""
        return await self._count(
            "count_routes_created",
            select(func.count(Route.id)).where(
                Route.creator_id == user_id, Route.is_active.is_(True)
            ),
        )

    async def count_route_usage(self, user_id: uuid.UUID) -> int:
        return await self._count(
            "count_route_usage",
            select(func.count(RouteUsage.id)).where(RouteUsage.user_id == user_id),
        )

    async def count_friends(self, user_id: uuid.UUID) -> int:
        """Accepted friendships, whichever side sent the request."""
        return await self._count(
            "count_friends",
            select(func.count(Friend.id)).where(
                or_(Friend.requester_id == user_id, Friend.addressee_id == user_id),
                Friend.status == "accepted",
            ),
        )

    async def create_friend_request(
        self, requester_id: uuid.UUID, addressee_id: uuid.UUID
    ) -> None:
        """Idempotent: repeating a request leaves the existing row untouched."""
        async with storage_call("create_friend_request"):
            await self.session.execute(
                pg_insert(Friend)
                .values(requester_id=requester_id, addressee_id=addressee_id, status="pending")
                .on_conflict_do_nothing(constraint="uq_friends_pair")
            )
