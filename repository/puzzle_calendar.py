from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from db import models
from utils.errors import PuzzleUnavailable, store_errors


def _as_date(value: date | datetime) -> date:
    # Only the calendar date matters; a timestamp is truncated
    return value.date() if isinstance(value, datetime) else value


def current_puzzle_date(db: Session, today: date | datetime) -> Optional[date]:
    """
    Date of the most recently activated puzzle (puzzle_date <= today), or None
    if no puzzle has ever been activated.
    """
    today = _as_date(today)
    with store_errors(db, "current_puzzle_date"):
        return (
            db.query(func.max(models.DailyPuzzle.puzzle_date))
            .filter(models.DailyPuzzle.puzzle_date <= today)
            .scalar()
        )


def get_puzzle_by_date(db: Session, puzzle_date: date) -> Optional[models.DailyPuzzle]:
    with store_errors(db, "get_puzzle_by_date"):
        return (
            db.query(models.DailyPuzzle)
            .options(joinedload(models.DailyPuzzle.card))
            .filter(models.DailyPuzzle.puzzle_date == puzzle_date)
            .first()
        )


def get_current_puzzle(db: Session, today: date | datetime) -> models.DailyPuzzle:
    puzzle_date = current_puzzle_date(db, today)
    if puzzle_date is None:
        raise PuzzleUnavailable()
    puzzle = get_puzzle_by_date(db, puzzle_date)
    if puzzle is None:
        raise PuzzleUnavailable()
    return puzzle


def get_activated_puzzle(db: Session, puzzle_id: int, today: date | datetime) -> models.DailyPuzzle:
    """Puzzle by id, only if it exists and its date is not in the future."""
    today = _as_date(today)
    with store_errors(db, "get_activated_puzzle"):
        puzzle = (
            db.query(models.DailyPuzzle)
            .options(joinedload(models.DailyPuzzle.card))
            .filter(models.DailyPuzzle.id == puzzle_id)
            .first()
        )
    if puzzle is None or puzzle.puzzle_date > today:
        raise PuzzleUnavailable()
    return puzzle


def activated_puzzles(db: Session, today: date | datetime) -> list[models.DailyPuzzle]:
    """All activated puzzles, earliest first. Position in this list is the day index."""
    today = _as_date(today)
    with store_errors(db, "activated_puzzles"):
        return (
            db.query(models.DailyPuzzle)
            .filter(models.DailyPuzzle.puzzle_date <= today)
            .order_by(models.DailyPuzzle.puzzle_date.asc())
            .all()
        )
