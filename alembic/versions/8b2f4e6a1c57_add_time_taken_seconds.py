"""Add time_taken_seconds to guess_states

Revision ID: 8b2f4e6a1c57
Revises: 3d7a91c2e4b0
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8b2f4e6a1c57"
down_revision: Union[str, None] = "3d7a91c2e4b0"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _column_exists(table_name: str, column_name: str) -> bool:
    insp = sa.inspect(op.get_bind())
    return column_name in [c["name"] for c in insp.get_columns(table_name)]


def upgrade() -> None:
    if not _column_exists("guess_states", "time_taken_seconds"):
        op.add_column("guess_states", sa.Column("time_taken_seconds", sa.Integer(), nullable=True))


def downgrade() -> None:
    if _column_exists("guess_states", "time_taken_seconds"):
        op.drop_column("guess_states", "time_taken_seconds")
