"""meetup_members 테이블 생성

Revision ID: 002
Revises: 001
Create Date: 2026-09-01 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "meetup_members",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("meetup_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="going"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["meetup_id"], ["meetups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("meetup_id", "user_id", name="uq_meetup_member_user"),
    )
    op.create_index(op.f("ix_meetup_members_meetup_id"), "meetup_members", ["meetup_id"], unique=False)
    op.create_index(op.f("ix_meetup_members_user_id"), "meetup_members", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_meetup_members_user_id"), table_name="meetup_members")
    op.drop_index(op.f("ix_meetup_members_meetup_id"), table_name="meetup_members")
    op.drop_table("meetup_members")
