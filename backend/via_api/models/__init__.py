# Importing every model registers it with Base.metadata (Alembic autogenerate)
from via_api.models.route import Route, RoutePoint, RouteTag, Tag
from via_api.models.social import Comment, Friend, Profile, RouteUsage
from via_api.models.vote import Vote

__all__ = [
    "Comment",
    "Friend",
    "Profile",
    "Route",
    "RoutePoint",
    "RouteTag",
    "RouteUsage",
    "Tag",
    "Vote",
]
