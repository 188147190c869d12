"""
VIA Backend — Storage Collaborators
=====================================

Repository Inventory:
    - RouteRepository: routes, points, tags, votes, comments (PostGIS-aware)
    - UserRepository:  profiles, profile stats, friend requests

Repositories are constructed per request around the request's AsyncSession
and passed into services, never imported as module-level singletons.
"""

from via_api.repositories.route_repository import RouteRepository
from via_api.repositories.user_repository import UserRepository

__all__ = ["RouteRepository", "UserRepository"]
