"""Listens table

Revision ID: 001_listens
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_listens"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the listens table."""
    op.create_table(
        "listens",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("listened_at", sa.BigInteger(), nullable=False),
        sa.Column("track_name", sa.String(500), nullable=False),
        sa.Column("artist_name", sa.String(500), nullable=False),
        sa.Column("release_name", sa.String(500), nullable=True),
        sa.Column("additional_info", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_listens"),
    )
    op.create_index("ix_listens_user_name", "listens", ["user_name"])
    op.create_index("ix_listens_user_listened_at", "listens", ["user_name", "listened_at"])


def downgrade() -> None:
    """Drop the listens table."""
    op.drop_index("ix_listens_user_listened_at", table_name="listens")
    op.drop_index("ix_listens_user_name", table_name="listens")
    op.drop_table("listens")
