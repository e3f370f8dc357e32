"""Initial schema with character registrations and bot admins

Revision ID: 001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    # Character registrations, one per Discord username
    op.create_table(
        "characters",
        sa.Column("discord_username", sa.String(length=100), nullable=False),
        sa.Column("character_name", sa.String(length=64), nullable=False),
        sa.Column("server", sa.String(length=100), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("discord_username"),
    )

    # Bot admins
    op.create_table(
        "admins",
        sa.Column("discord_username", sa.String(length=100), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("discord_username"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("admins")
    op.drop_table("characters")
