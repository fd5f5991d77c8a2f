"""Create groups — one row per named group, members as a JSON array.

Revision ID: 001_create_groups
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_create_groups"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("name", sa.Text(), primary_key=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("members", sa.JSON, nullable=False),
        sa.Column("archived", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_groups_archived", "groups", ["archived"])


def downgrade() -> None:
    op.drop_index("ix_groups_archived", table_name="groups")
    op.drop_table("groups")
