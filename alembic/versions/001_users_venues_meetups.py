"""users, venues, meetups 테이블 생성

Revision ID: 001
Revises:
Create Date: 2026-09-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "venues",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=300), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "meetups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_attendees", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("creator_id", sa.String(length=36), nullable=False),
        sa.Column("venue_id", sa.String(length=36), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("price_per_person", sa.Float(), nullable=True),
        sa.Column("is_blind_meet", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="activity"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="UPCOMING"),
        sa.Column("venue_approval_status", sa.String(length=20), nullable=True),
        sa.Column("venue_approved_price", sa.Float(), nullable=True),
        sa.Column("venue_rejection_reason", sa.Text(), nullable=True),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("member_count >= 0", name="check_meetup_member_count_non_negative"),
        sa.CheckConstraint(
            "max_attendees IS NULL OR member_count <= max_attendees",
            name="check_meetup_member_count_lte_max",
        ),
    )
    op.create_index(op.f("ix_meetups_creator_id"), "meetups", ["creator_id"], unique=False)
    op.create_index(op.f("ix_meetups_venue_id"), "meetups", ["venue_id"], unique=False)
    # 목록 기본 조건 (status IN ... ORDER BY start_time)
    op.create_index("ix_meetups_status_start_time", "meetups", ["status", "start_time"], unique=False)
    # 반경 조회 BBox 사전 필터
    op.create_index("ix_meetups_lat_lng", "meetups", ["latitude", "longitude"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_meetups_lat_lng", table_name="meetups")
    op.drop_index("ix_meetups_status_start_time", table_name="meetups")
    op.drop_index(op.f("ix_meetups_venue_id"), table_name="meetups")
    op.drop_index(op.f("ix_meetups_creator_id"), table_name="meetups")
    op.drop_table("meetups")
    op.drop_table("venues")
    op.drop_table("users")
