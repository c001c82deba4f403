"""create venues and checkins

Revision ID: 3b1f0c9a7d21
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3b1f0c9a7d21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("summary_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("aggregate_scores", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    rating = lambda name: sa.Column(name, sa.Integer(), nullable=False)  # noqa: E731
    op.create_table(
        "checkins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("beer_name", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        rating("taste"),
        rating("bitterness"),
        rating("aroma"),
        rating("smoothness"),
        rating("carbonation"),
        rating("temperature"),
        rating("music"),
        rating("lighting"),
        rating("crowd_vibe"),
        rating("cleanliness"),
        rating("decor"),
        sa.Column("overall", sa.Integer(), nullable=True),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("group_size", sa.Integer(), nullable=False),
        sa.Column("company_type", sa.String(60), nullable=False),
        sa.Column("beers_already", sa.Integer(), nullable=False),
        sa.Column("ai_review", sa.Text(), nullable=True),
        sa.Column("ai_model", sa.String(100), nullable=True),
        sa.Column("image_paths", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_checkins_user_id", "checkins", ["user_id"])
    op.create_index("ix_checkins_venue_id", "checkins", ["venue_id"])
    op.create_index("ix_checkins_created_at", "checkins", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_checkins_created_at", table_name="checkins")
    op.drop_index("ix_checkins_venue_id", table_name="checkins")
    op.drop_index("ix_checkins_user_id", table_name="checkins")
    op.drop_table("checkins")
    op.drop_table("venues")
