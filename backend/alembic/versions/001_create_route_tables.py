"""Create route sharing tables

Revision ID: 001
Revises: None
Create Date: 2026-01-15 00:00:00.000000+00:00

What:  Creates profiles, routes, route_points, tags, route_tags, votes,
       comments, friends and route_usage, plus the coordinate lookup function.
How:   PostGIS `geography(Point, 4326)` for every location column, GiST
       indexes on them, and `gen_random_uuid()` (pgcrypto) for UUID keys.

Rollback: downgrade() drops everything created here (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from geoalchemy2 import Geography
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _point(name: str) -> sa.Column:
    return sa.Column(
        name,
        Geography(geometry_type="POINT", srid=4326, spatial_index=False),
        nullable=False,
    )


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


# Returns a route's trace with plain lat/lng, ordered for replay on a map.
ROUTE_POINTS_FUNCTION = """
CREATE OR REPLACE FUNCTION get_route_points_with_coords(p_route_id uuid)
RETURNS TABLE (
    sequence integer,
    lat double precision,
    lng double precision,
    accuracy_meters double precision,
    recorded_at timestamptz
)
LANGUAGE sql STABLE AS $$
    SELECT rp.sequence,
           ST_Y(rp.location::geometry),
           ST_X(rp.location::geometry),
           rp.accuracy_meters,
           rp.recorded_at
      FROM route_points rp
     WHERE rp.route_id = p_route_id
     ORDER BY rp.sequence;
$$;
"""


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # ── profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False,
                  comment="Supabase auth user id (JWT sub)"),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
    )

    # ── routes ────────────────────────────────────────────────────────────
    op.create_table(
        "routes",
        _uuid_pk(),
        sa.Column("creator_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_label", sa.String(255), nullable=False),
        sa.Column("end_label", sa.String(255), nullable=False),
        _point("start_point"),
        _point("end_point"),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False,
                  comment="end_time - start_time, truncated toward zero"),
        sa.Column("distance_meters", sa.Float(), nullable=False,
                  comment="Haversine sum over points in sequence order"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False,
                  comment="Soft delete flag; false hides the route from every read"),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_routes"),
        sa.ForeignKeyConstraint(["creator_id"], ["profiles.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "idx_routes_active_created_at",
        "routes",
        ["is_active", sa.text("created_at DESC")],
    )
    op.create_index("idx_routes_creator_id", "routes", ["creator_id"])
    op.create_index("idx_routes_start_point", "routes", ["start_point"], postgresql_using="gist")
    op.create_index("idx_routes_end_point", "routes", ["end_point"], postgresql_using="gist")

    # ── route_points ──────────────────────────────────────────────────────
    op.create_table(
        "route_points",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("route_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        _point("location"),
        sa.Column("accuracy_meters", sa.Float(), nullable=True),
        sa.Column("recorded_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_route_points"),
        sa.ForeignKeyConstraint(["route_id"], ["routes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("route_id", "sequence", name="uq_route_points_route_sequence"),
    )
    op.create_index(
        "idx_route_points_location", "route_points", ["location"], postgresql_using="gist"
    )

    # ── tags / route_tags ─────────────────────────────────────────────────
    op.create_table(
        "tags",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )
    op.create_table(
        "route_tags",
        sa.Column("route_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.PrimaryKeyConstraint("route_id", "tag_id", name="pk_route_tags"),
        sa.ForeignKeyConstraint(["route_id"], ["routes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
    )

    # ── votes ─────────────────────────────────────────────────────────────
    op.create_table(
        "votes",
        _uuid_pk(),
        sa.Column("route_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("vote_type", sa.String(10), nullable=False),
        sa.Column("context", sa.String(20), nullable=False),
        _created_at(),
        _created_at("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_votes"),
        sa.ForeignKeyConstraint(["route_id"], ["routes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("route_id", "user_id", name="uq_votes_route_user"),
        sa.CheckConstraint("vote_type IN ('up', 'down')", name="ck_votes_vote_type"),
        sa.CheckConstraint(
            "context IN ('safety', 'efficiency', 'scenery')", name="ck_votes_context"
        ),
    )
    op.create_index("idx_votes_route_id", "votes", ["route_id"])

    # ── comments ──────────────────────────────────────────────────────────
    op.create_table(
        "comments",
        _uuid_pk(),
        sa.Column("route_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
        sa.ForeignKeyConstraint(["route_id"], ["routes.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_comments_route_id", "comments", ["route_id"])

    # ── friends ───────────────────────────────────────────────────────────
    op.create_table(
        "friends",
        _uuid_pk(),
        sa.Column("requester_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("addressee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(20), server_default=sa.text("'pending'"), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_friends"),
        sa.ForeignKeyConstraint(["requester_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["addressee_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("requester_id", "addressee_id", name="uq_friends_pair"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')", name="ck_friends_status"
        ),
        sa.CheckConstraint("requester_id <> addressee_id", name="ck_friends_not_self"),
    )

    # ── route_usage ───────────────────────────────────────────────────────
    op.create_table(
        "route_usage",
        _uuid_pk(),
        sa.Column("route_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        _created_at("used_at"),
        sa.PrimaryKeyConstraint("id", name="pk_route_usage"),
        sa.ForeignKeyConstraint(["route_id"], ["routes.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_route_usage_user_id", "route_usage", ["user_id"])

    op.execute(ROUTE_POINTS_FUNCTION)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS get_route_points_with_coords(uuid)")
    op.drop_table("route_usage")
    op.drop_table("friends")
    op.drop_table("comments")
    op.drop_table("votes")
    op.drop_table("route_tags")
    op.drop_table("tags")
    op.drop_table("route_points")
    op.drop_table("routes")
    op.drop_table("profiles")
    # Extensions are left installed; other schemas may depend on them.
