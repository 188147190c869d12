"""
VIA Backend — User Service
============================

What:  Profile with stats for /users/me and friend requests.
How:   Same shape as RouteService: stateless, repository injected.

Stats:
    routes_created  active routes whose creator_id is the user
    routes_saved    rows in route_usage for the user
    friends_count   accepted friendships in either direction

The counters are informational: if one of them fails the profile is still
returned with that counter at 0 and the failure is logged.
"""

import logging
import uuid
from typing import Optional

from via_api.exceptions import MissingFieldsError, NotFoundError, StorageError, ValidationError
from via_api.repositories.user_repository import UserRepository
from via_api.schemas.user import FriendRequestResponse, UserProfileResponse, UserStats

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def get_profile(self, user_id: uuid.UUID) -> UserProfileResponse:
        """
        Raises:
            NotFoundError: the user has no profile row
            StorageError: the profile lookup itself failed
        """
        profile = await self.repository.get_profile(user_id)
        if profile is None:
            raise NotFoundError(resource="user profile", resource_id=str(user_id))

        stats = UserStats(
            routes_created=await self._count("routes_created", self.repository.count_routes_created, user_id),
            routes_saved=await self._count("routes_saved", self.repository.count_route_usage, user_id),
            friends_count=await self._count("friends_count", self.repository.count_friends, user_id),
        )
        return UserProfileResponse(
            id=profile.id,
            email=profile.email,
            display_name=profile.full_name,
            created_at=profile.created_at,
            stats=stats,
        )

    async def send_friend_request(
        self, requester_id: uuid.UUID, friend_id: Optional[uuid.UUID]
    ) -> FriendRequestResponse:
        """
        Raises:
            MissingFieldsError: friend_id absent
            ValidationError: a user cannot befriend themselves
            NotFoundError: no profile for friend_id
        """
        if friend_id is None:
            raise MissingFieldsError(["friend_id"])
        if friend_id == requester_id:
            raise ValidationError(
                message="You cannot send a friend request to yourself",
                field="friend_id",
            )
        if await self.repository.get_profile(friend_id) is None:
            raise NotFoundError(resource="user", resource_id=str(friend_id))

        await self.repository.create_friend_request(requester_id, friend_id)
        logger.info("Friend request %s → %s", requester_id, friend_id)
        return FriendRequestResponse(friend_id=friend_id)

    @staticmethod
    async def _count(name, counter, user_id: uuid.UUID) -> int:
        try:
            return await counter(user_id)
        except StorageError as e:
            logger.error("Could not compute %s for %s: %s", name, user_id, e.details or e.message)
            return 0
