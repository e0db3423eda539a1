"""Create Riftle tables

Revision ID: 3d7a91c2e4b0
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3d7a91c2e4b0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("cards"):
        op.create_table(
            "cards",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("set_code", sa.String(), nullable=True),
            sa.Column("collector_number", sa.String(), nullable=True),
            sa.Column("rarity", sa.String(), nullable=True),
            sa.Column("card_type", sa.String(), nullable=True),
            sa.Column("faction", sa.String(), nullable=True),
            sa.Column("energy", sa.Integer(), nullable=True),
            sa.Column("might", sa.Integer(), nullable=True),
            sa.Column("power", sa.Integer(), nullable=True),
            sa.Column("variant", sa.String(), nullable=False, server_default="normal"),
            sa.Column("is_signature", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("image_url", sa.String(), nullable=True),
        )
        op.create_index(op.f("ix_cards_name"), "cards", ["name"])

    if not _table_exists("daily_puzzles"):
        op.create_table(
            "daily_puzzles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("puzzle_date", sa.Date(), nullable=False),
            sa.Column("card_id", sa.String(), sa.ForeignKey("cards.id"), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index(op.f("ix_daily_puzzles_id"), "daily_puzzles", ["id"])
        op.create_index(op.f("ix_daily_puzzles_puzzle_date"), "daily_puzzles", ["puzzle_date"], unique=True)

    if not _table_exists("guess_states"):
        op.create_table(
            "guess_states",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("player_id", sa.String(), nullable=False),
            sa.Column("puzzle_id", sa.Integer(), sa.ForeignKey("daily_puzzles.id"), nullable=False),
            sa.Column("guesses_used", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("solved", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("failed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("solved_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.UniqueConstraint("player_id", "puzzle_id", name="uq_guess_states_player_puzzle"),
            sa.CheckConstraint("NOT (solved AND failed)", name="ck_guess_states_single_outcome"),
            sa.CheckConstraint("guesses_used >= 0", name="ck_guess_states_guesses_used"),
        )
        op.create_index(op.f("ix_guess_states_id"), "guess_states", ["id"])
        op.create_index(op.f("ix_guess_states_player_id"), "guess_states", ["player_id"])
        op.create_index(op.f("ix_guess_states_puzzle_id"), "guess_states", ["puzzle_id"])

    if not _table_exists("guess_entries"):
        op.create_table(
            "guess_entries",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("state_id", sa.Integer(), sa.ForeignKey("guess_states.id"), nullable=False),
            sa.Column("attempt_number", sa.Integer(), nullable=False),
            sa.Column("card_id", sa.String(), sa.ForeignKey("cards.id"), nullable=False),
            sa.Column("card_name", sa.String(), nullable=False),
            sa.Column("is_correct", sa.Boolean(), nullable=False),
            sa.Column("attributes", sa.JSON(), nullable=False),
            sa.Column("feedback", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.UniqueConstraint("state_id", "attempt_number", name="uq_guess_entries_state_attempt"),
        )
        op.create_index(op.f("ix_guess_entries_id"), "guess_entries", ["id"])
        op.create_index(op.f("ix_guess_entries_state_id"), "guess_entries", ["state_id"])


def downgrade() -> None:
    for table in ("guess_entries", "guess_states", "daily_puzzles", "cards"):
        if _table_exists(table):
            op.drop_table(table)
