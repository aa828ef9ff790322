"""Create users, businesses, memberships, categories and channels

Revision ID: 001_initial_tables
Revises:
Create Date: 2026-09-28

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("username", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(100), server_default="online"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("is_site_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("owner_id", sa.String(24), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "business_memberships",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "business_id", sa.String(24), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("user_id", sa.String(24), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("business_id", "user_id", name="unique_business_member"),
    )

    op.create_table(
        "channel_categories",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "business_id", sa.String(24), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "channels",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "business_id", sa.String(24), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column(
            "category_id", sa.String(24), sa.ForeignKey("channel_categories.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="messages"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("channels")
    op.drop_table("channel_categories")
    op.drop_table("business_memberships")
    op.drop_table("businesses")
    op.drop_table("users")
