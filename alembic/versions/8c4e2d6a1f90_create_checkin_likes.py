"""create checkin_likes

Revision ID: 8c4e2d6a1f90
Revises: 3b1f0c9a7d21
Create Date: 2026-10-19

"""
from typing import Sequence, Union
import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8c4e2d6a1f90'
down_revision: Union[str, None] = '3b1f0c9a7d21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "checkin_likes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("checkin_id", sa.Integer(), sa.ForeignKey("checkins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("checkin_id", "user_id", name="uq_checkin_likes_checkin_user"),
    )
    op.create_index("ix_checkin_likes_checkin_id", "checkin_likes", ["checkin_id"])


def downgrade() -> None:
    op.drop_index("ix_checkin_likes_checkin_id", table_name="checkin_likes")
    op.drop_table("checkin_likes")
