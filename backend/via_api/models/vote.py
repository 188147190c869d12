"""
VIA Backend — Vote Model
==========================

What:  A user's up/down vote on a route, tagged with what it is about
       (safety, efficiency or scenery).

Conflict key:
    UNIQUE (route_id, user_id). A user holds one vote per route across all
    contexts; voting again overwrites both `vote_type` and `context`.
    The repository writes votes with INSERT ... ON CONFLICT (route_id, user_id)
    DO UPDATE, so concurrent re-votes cannot create a second row.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from via_api.database import Base


class Vote(Base):
    __tablename__ = "votes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    route_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("routes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    vote_type: Mapped[str] = mapped_column(String(10), nullable=False)
    context: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("route_id", "user_id", name="uq_votes_route_user"),
        CheckConstraint("vote_type IN ('up', 'down')", name="ck_votes_vote_type"),
        CheckConstraint(
            "context IN ('safety', 'efficiency', 'scenery')", name="ck_votes_context"
        ),
        Index("idx_votes_route_id", "route_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Vote(route_id={self.route_id}, user_id={self.user_id}, "
            f"vote_type='{self.vote_type}', context='{self.context}')>"
        )
