"""
VIA Backend — User, Friend and Auth Schemas
=============================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserStats(BaseModel):
    routes_created: int = Field(description="Active routes created by the user")
    routes_saved: int = Field(description="Routes the user has followed or saved")
    friends_count: int = Field(description="Accepted friendships")


class UserProfileResponse(BaseModel):
    id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None
    stats: UserStats


class FriendRequestCreate(BaseModel):
    friend_id: Optional[uuid.UUID] = Field(
        default=None, examples=["123e4567-e89b-12d3-a456-426614174000"]
    )


class FriendRequestResponse(BaseModel):
    message: str = "Friend request sent"
    friend_id: uuid.UUID


class EmailVerificationRequest(BaseModel):
    email: Optional[str] = Field(default=None, examples=["student@utexas.edu"])


class EmailVerificationResponse(BaseModel):
    allowed: bool
    message: str
