"""feed, reactions, comments and challenges

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261018_0002"
down_revision: Union[str, None] = "20261018_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "feed_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("goal_id", sa.Integer(), sa.ForeignKey("goals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("check_in_id", sa.Integer(), sa.ForeignKey("check_ins.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="custom"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hearts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("fires", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_feed_items_id", "feed_items", ["id"], unique=False)
    op.create_index("ix_feed_items_user_id", "feed_items", ["user_id"], unique=False)
    op.create_index("ix_feed_items_goal_id", "feed_items", ["goal_id"], unique=False)
    op.create_index("ix_feed_items_type", "feed_items", ["type"], unique=False)
    op.create_index("ix_feed_items_created_at", "feed_items", ["created_at"], unique=False)

    op.create_table(
        "feed_reactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("feed_item_id", sa.Integer(), sa.ForeignKey("feed_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reaction", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "feed_item_id", "reaction", name="uq_feed_reaction_per_user"),
    )
    op.create_index("ix_feed_reactions_id", "feed_reactions", ["id"], unique=False)
    op.create_index("ix_feed_reactions_user_id", "feed_reactions", ["user_id"], unique=False)
    op.create_index("ix_feed_reactions_feed_item_id", "feed_reactions", ["feed_item_id"], unique=False)
    op.create_index("ix_feed_reactions_created_at", "feed_reactions", ["created_at"], unique=False)

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("feed_item_id", sa.Integer(), sa.ForeignKey("feed_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_comments_id", "comments", ["id"], unique=False)
    op.create_index("ix_comments_user_id", "comments", ["user_id"], unique=False)
    op.create_index("ix_comments_feed_item_id", "comments", ["feed_item_id"], unique=False)

    op.create_table(
        "challenges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("tags_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_challenges_id", "challenges", ["id"], unique=False)
    op.create_index("ix_challenges_creator_id", "challenges", ["creator_id"], unique=False)
    op.create_index("ix_challenges_created_at", "challenges", ["created_at"], unique=False)

    op.create_table(
        "challenge_participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("challenge_id", sa.Integer(), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("goal_id", sa.Integer(), sa.ForeignKey("goals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("joined_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("challenge_id", "user_id", name="uq_challenge_participant"),
    )
    op.create_index("ix_challenge_participants_id", "challenge_participants", ["id"], unique=False)
    op.create_index("ix_challenge_participants_challenge_id", "challenge_participants", ["challenge_id"], unique=False)
    op.create_index("ix_challenge_participants_user_id", "challenge_participants", ["user_id"], unique=False)
    op.create_index("ix_challenge_participants_goal_id", "challenge_participants", ["goal_id"], unique=False)

    op.create_table(
        "challenge_updates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("challenge_id", sa.Integer(), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_challenge_updates_id", "challenge_updates", ["id"], unique=False)
    op.create_index("ix_challenge_updates_challenge_id", "challenge_updates", ["challenge_id"], unique=False)
    op.create_index("ix_challenge_updates_user_id", "challenge_updates", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("challenge_updates")
    op.drop_table("challenge_participants")
    op.drop_table("challenges")
    op.drop_table("comments")
    op.drop_table("feed_reactions")
    op.drop_table("feed_items")
