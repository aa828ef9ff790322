"""Add messages, reaction buckets and the activity log

Revision ID: 002_messages_and_reactions
Revises: 001_initial_tables
Create Date: 2026-10-02

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_messages_and_reactions"
down_revision: Union[str, None] = "001_initial_tables"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "messages",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "channel_id", sa.String(24), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("user_id", sa.String(24), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("message_type", sa.String(20), nullable=False, server_default="text"),
        sa.Column("media_path", sa.String(500), nullable=True),
        sa.Column("media_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    # History pages are read newest first per channel
    op.create_index("ix_messages_channel_created", "messages", ["channel_id", "created_at"])

    op.create_table(
        "message_reactions",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "message_id", sa.String(24), sa.ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("emoji", sa.String(50), nullable=False),
        sa.UniqueConstraint("message_id", "emoji", name="unique_emoji_per_message"),
    )

    op.create_table(
        "message_reaction_users",
        sa.Column(
            "reaction_id",
            sa.String(24),
            sa.ForeignKey("message_reactions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String(24), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("user_id", sa.String(24), nullable=False, index=True),
        sa.Column("business_id", sa.String(24), nullable=True, index=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("endpoint", sa.String(500), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("message_reaction_users")
    op.drop_table("message_reactions")
    op.drop_index("ix_messages_channel_created", table_name="messages")
    op.drop_table("messages")
