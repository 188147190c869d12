"""
VIA Backend — Service Dependencies
====================================

What:  FastAPI providers that assemble a service around this request's
       database session.
Why:   Handlers never reach for a global storage client; tests replace these
       providers through `app.dependency_overrides`.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from via_api.database import get_db_session
from via_api.repositories import RouteRepository, UserRepository
from via_api.services.route_service import RouteService
from via_api.services.user_service import UserService


def get_route_service(db: AsyncSession = Depends(get_db_session)) -> RouteService:
    return RouteService(RouteRepository(db))


def get_user_service(db: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(UserRepository(db))
