from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from db import database


class Card(database.Base):
    __tablename__ = "cards"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    set_code = Column(String, nullable=True)
    collector_number = Column(String, nullable=True)
    rarity = Column(String, nullable=True)

    # Gameplay attributes compared by the feedback rules
    card_type = Column(String, nullable=True)
    faction = Column(String, nullable=True)
    energy = Column(Integer, nullable=True)
    might = Column(Integer, nullable=True)
    power = Column(Integer, nullable=True)

    variant = Column(String, nullable=False, default="normal")
    is_signature = Column(Boolean, nullable=False, default=False)
    image_url = Column(String, nullable=True)


class DailyPuzzle(database.Base):
    __tablename__ = "daily_puzzles"

    id = Column(Integer, primary_key=True, index=True)
    puzzle_date = Column(Date, unique=True, index=True, nullable=False)
    card_id = Column(String, ForeignKey("cards.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    card = relationship("Card")


class GuessState(database.Base):
    __tablename__ = "guess_states"
    __table_args__ = (
        UniqueConstraint("player_id", "puzzle_id", name="uq_guess_states_player_puzzle"),
        CheckConstraint("NOT (solved AND failed)", name="ck_guess_states_single_outcome"),
        CheckConstraint("guesses_used >= 0", name="ck_guess_states_guesses_used"),
    )

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(String, nullable=False, index=True)
    puzzle_id = Column(Integer, ForeignKey("daily_puzzles.id"), nullable=False, index=True)
    guesses_used = Column(Integer, nullable=False, default=0)
    solved = Column(Boolean, nullable=False, default=False)
    failed = Column(Boolean, nullable=False, default=False)
    solved_at = Column(DateTime, nullable=True)
    # Client-reported play time, kept once the game is finished
    time_taken_seconds = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    puzzle = relationship("DailyPuzzle")
    guesses = relationship(
        "GuessEntry",
        back_populates="state",
        order_by="GuessEntry.attempt_number",
        cascade="all, delete-orphan",
    )


class GuessEntry(database.Base):
    __tablename__ = "guess_entries"
    __table_args__ = (
        UniqueConstraint("state_id", "attempt_number", name="uq_guess_entries_state_attempt"),
    )

    id = Column(Integer, primary_key=True, index=True)
    state_id = Column(Integer, ForeignKey("guess_states.id"), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)
    card_id = Column(String, ForeignKey("cards.id"), nullable=False)
    card_name = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    attributes = Column(JSON, nullable=False)
    feedback = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    state = relationship("GuessState", back_populates="guesses")
