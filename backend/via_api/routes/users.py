"""
VIA Backend — User Handlers (/api/v1/users)
=============================================
"""

from fastapi import APIRouter, Depends

from via_api.auth import AuthenticatedUser, get_current_user
from via_api.dependencies import get_user_service
from via_api.schemas.common import ErrorResponse
from via_api.schemas.user import FriendRequestCreate, FriendRequestResponse, UserProfileResponse
from via_api.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserProfileResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "No profile for this user", "model": ErrorResponse},
    },
    summary="Get current user profile and stats",
)
async def get_me(
    user: AuthenticatedUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    return await service.get_profile(user.id)


@router.post(
    "/friends/request",
    status_code=201,
    response_model=FriendRequestResponse,
    responses={
        400: {"description": "Missing friend_id or self request", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Unknown user", "model": ErrorResponse},
    },
    summary="Send friend request",
)
async def send_friend_request(
    body: FriendRequestCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> FriendRequestResponse:
    return await service.send_friend_request(requester_id=user.id, friend_id=body.friend_id)
