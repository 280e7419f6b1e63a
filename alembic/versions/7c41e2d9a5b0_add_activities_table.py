"""add activities table

Revision ID: 7c41e2d9a5b0
Revises:
Create Date: 2026-10-19 09:12:04.118532

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7c41e2d9a5b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", postgresql.UUID(as_uuid=True).with_variant(sa.String(36), "sqlite"), primary_key=True, nullable=False),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("tx_hash", sa.String(length=66), nullable=True),
        sa.Column("ens_name", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.String(length=64), nullable=True),
        sa.Column("metadata", postgresql.JSONB().with_variant(sa.JSON(), "sqlite"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_activities_created", "activities", ["created_at"])
    op.create_index("idx_activities_type_created", "activities", ["type", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_activities_type_created", table_name="activities")
    op.drop_index("idx_activities_created", table_name="activities")
    op.drop_table("activities")
