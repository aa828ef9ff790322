"""Add channel databases and custom business roles

Revision ID: 003_databases_and_roles
Revises: 002_messages_and_reactions
Create Date: 2026-10-16

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "003_databases_and_roles"
down_revision: Union[str, None] = "002_messages_and_reactions"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "workspace_databases",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "channel_id", sa.String(24), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("author_id", sa.String(24), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "database_columns",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "database_id",
            sa.String(24),
            sa.ForeignKey("workspace_databases.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "database_select_options",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "column_id",
            sa.String(24),
            sa.ForeignKey("database_columns.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("value", sa.String(100), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "database_rows",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "database_id",
            sa.String(24),
            sa.ForeignKey("workspace_databases.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("values", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "business_roles",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column(
            "business_id", sa.String(24), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("business_id", "name", name="unique_role_name_per_business"),
    )


def downgrade() -> None:
    op.drop_table("business_roles")
    op.drop_table("database_rows")
    op.drop_table("database_select_options")
    op.drop_table("database_columns")
    op.drop_table("workspace_databases")
