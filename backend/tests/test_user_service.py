"""
VIA Backend — User Service Unit Tests
=======================================

What we test:
    ✅ Profile with stats; missing profile → NotFoundError
    ✅ A failing counter degrades to 0 instead of failing the request
    ✅ Friend requests: missing id, self request, unknown user, success
"""

import uuid

import pytest

from via_api.exceptions import MissingFieldsError, NotFoundError, StorageError, ValidationError
from via_api.services.user_service import UserService


class TestGetProfile:

    @pytest.mark.asyncio
    async def test_profile_with_stats(self, mock_user_repo, make_profile, user_id):
        mock_user_repo.get_profile.return_value = make_profile(user_id)
        mock_user_repo.count_routes_created.return_value = 4
        mock_user_repo.count_route_usage.return_value = 2
        mock_user_repo.count_friends.return_value = 7

        profile = await UserService(mock_user_repo).get_profile(user_id)

        assert profile.id == user_id
        assert profile.email == "nolan@utexas.edu"
        assert profile.display_name == "Nolan"
        assert (profile.stats.routes_created, profile.stats.routes_saved,
                profile.stats.friends_count) == (4, 2, 7)

    @pytest.mark.asyncio
    async def test_missing_profile(self, mock_user_repo, user_id):
        mock_user_repo.get_profile.return_value = None
        with pytest.raises(NotFoundError):
            await UserService(mock_user_repo).get_profile(user_id)

    @pytest.mark.asyncio
    async def test_failing_counter_reports_zero(self, mock_user_repo, make_profile, user_id):
        mock_user_repo.get_profile.return_value = make_profile(user_id)
        mock_user_repo.count_routes_created.return_value = 3
        mock_user_repo.count_friends.side_effect = StorageError(details="timeout")

        profile = await UserService(mock_user_repo).get_profile(user_id)
        assert profile.stats.routes_created == 3
        assert profile.stats.friends_count == 0

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_propagates(self, mock_user_repo, user_id):
        mock_user_repo.get_profile.side_effect = StorageError(details="connection refused")
        with pytest.raises(StorageError):
            await UserService(mock_user_repo).get_profile(user_id)


class TestFriendRequest:

    def setup_method(self):
        self.requester = uuid.uuid4()
        self.friend = uuid.uuid4()

    @pytest.mark.asyncio
    async def test_missing_friend_id(self, mock_user_repo):
        with pytest.raises(MissingFieldsError) as exc_info:
            await UserService(mock_user_repo).send_friend_request(self.requester, None)
        assert exc_info.value.fields == ["friend_id"]

    @pytest.mark.asyncio
    async def test_cannot_befriend_self(self, mock_user_repo):
        with pytest.raises(ValidationError):
            await UserService(mock_user_repo).send_friend_request(self.requester, self.requester)
        mock_user_repo.create_friend_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_friend(self, mock_user_repo):
        mock_user_repo.get_profile.return_value = None
        with pytest.raises(NotFoundError):
            await UserService(mock_user_repo).send_friend_request(self.requester, self.friend)
        mock_user_repo.create_friend_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_sent(self, mock_user_repo, make_profile):
        mock_user_repo.get_profile.return_value = make_profile(self.friend)
        result = await UserService(mock_user_repo).send_friend_request(self.requester, self.friend)
        assert result.message == "Friend request sent"
        assert result.friend_id == self.friend
        mock_user_repo.create_friend_request.assert_awaited_once_with(self.requester, self.friend)
