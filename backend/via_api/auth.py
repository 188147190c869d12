"""
VIA Backend — Authentication
==============================

What:  Resolves the bearer token on a request to the authenticated user.
How:   Supabase Auth issues HS256 JWTs signed with the project's JWT secret.
       The token is verified locally with PyJWT (signature, expiry, audience);
       the `sub` claim is the user id and `email` the address.

FastAPI dependencies:
    - get_auth_provider: the configured token verifier (override in tests)
    - get_current_user:  requires a valid token, returns AuthenticatedUser

Failures raise AuthError, which the global handler maps to HTTP 401.
"""

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, Request

from via_api.config import settings
from via_api.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: uuid.UUID
    email: Optional[str] = None


class SupabaseJWTAuthProvider:
    """Verifies Supabase access tokens and extracts {id, email}."""

    algorithms = ["HS256"]

    def __init__(self, jwt_secret: str, audience: str = "authenticated"):
        self.jwt_secret = jwt_secret
        self.audience = audience

    def verify(self, token: str) -> AuthenticatedUser:
        if not self.jwt_secret:
            logger.error("SUPABASE_JWT_SECRET is not configured; rejecting token")
            raise AuthError(message="Authentication is not configured on this server.")
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=self.algorithms,
                audience=self.audience,
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(message="The provided token has expired.")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            raise AuthError(message="The provided token is invalid or has expired.")

        subject = payload.get("sub")
        if not subject:
            raise AuthError(message="Invalid token: no sub claim")
        try:
            user_id = uuid.UUID(str(subject))
        except ValueError:
            raise AuthError(message="Invalid token: sub claim is not a user id")
        return AuthenticatedUser(id=user_id, email=payload.get("email"))


@lru_cache
def get_auth_provider() -> SupabaseJWTAuthProvider:
    return SupabaseJWTAuthProvider(
        jwt_secret=settings.supabase_jwt_secret,
        audience=settings.supabase_jwt_audience,
    )


def _extract_token(request: Request) -> Optional[str]:
    """Pull the Bearer token from the Authorization header."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        return token or None
    return None


async def get_current_user(
    request: Request,
    provider: SupabaseJWTAuthProvider = Depends(get_auth_provider),
) -> AuthenticatedUser:
    """FastAPI dependency: requires a valid bearer token."""
    token = _extract_token(request)
    if not token:
        raise AuthError(
            message="Missing or malformed Authorization header. Expected: Bearer <token>"
        )
    return provider.verify(token)
