import hashlib
import logging
from datetime import date, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from db import models
from repository import card_catalog, puzzle_calendar
from utils.errors import store_errors

logger = logging.getLogger(__name__)


def pick_card_for_date(candidates: list[models.Card], target_date: date) -> models.Card:
    """
    Deterministic pick: candidates sorted by id, index taken from a hash of
    the ISO date.
    """
    if not candidates:
        raise ValueError("No eligible cards available")
    ordered = sorted(candidates, key=lambda card: card.id)
    seed_int = int(hashlib.sha256(target_date.isoformat().encode("utf-8")).hexdigest(), 16)
    return ordered[seed_int % len(ordered)]


def _recently_used_card_ids(db: Session, target_date: date, exclude_days: int) -> set[str]:
    window_start = target_date - timedelta(days=exclude_days)
    with store_errors(db, "recently_used_card_ids"):
        rows = (
            db.query(models.DailyPuzzle.card_id)
            .filter(
                models.DailyPuzzle.puzzle_date >= window_start,
                models.DailyPuzzle.puzzle_date < target_date,
            )
            .all()
        )
    return {card_id for (card_id,) in rows}


def schedule_puzzle(db: Session, target_date: date) -> models.DailyPuzzle:
    """
    Ensures a puzzle exists for target_date. Existing puzzles are returned as
    they are; puzzles never change once created.
    """
    existing = puzzle_calendar.get_puzzle_by_date(db, target_date)
    if existing:
        return existing

    candidates = card_catalog.eligible_cards(db)
    recent = _recently_used_card_ids(db, target_date, settings.RIFTLE_EXCLUDE_RECENT_DAYS)
    fresh = [card for card in candidates if card.id not in recent]
    # A catalog smaller than the exclusion window still gets a puzzle
    card = pick_card_for_date(fresh or candidates, target_date)

    with store_errors(db, "schedule_puzzle"):
        try:
            puzzle = models.DailyPuzzle(puzzle_date=target_date, card_id=card.id, created_at=datetime.utcnow())
            db.add(puzzle)
            db.commit()
        except IntegrityError:
            # Another scheduler run created the same date first
            db.rollback()
            logger.info(f"Puzzle for {target_date} was created concurrently")
            return puzzle_calendar.get_puzzle_by_date(db, target_date)

    logger.info(f"Scheduled puzzle for {target_date}: card {card.id}")
    return puzzle_calendar.get_puzzle_by_date(db, target_date)


def ensure_puzzle_buffer(db: Session, today: date) -> list[models.DailyPuzzle]:
    """Schedules today and the next RIFTLE_PUZZLE_BUFFER_DAYS days."""
    return [
        schedule_puzzle(db, today + timedelta(days=offset))
        for offset in range(settings.RIFTLE_PUZZLE_BUFFER_DAYS + 1)
    ]
