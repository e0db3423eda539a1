import threading
from datetime import date
from typing import Optional

from cachetools import TTLCache
from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from config import settings
from db import models
from repository import puzzle_calendar
from schemas.riftle_schema import PlayCountPoint, PlaySeries
from utils.errors import store_errors

_cache_lock = threading.Lock()
_series_cache: Optional[TTLCache] = None


def _play_series_cache(ttl: float) -> TTLCache:
    # Caller holds _cache_lock. Only one day is ever current.
    global _series_cache
    if _series_cache is None or _series_cache.ttl != ttl:
        _series_cache = TTLCache(maxsize=1, ttl=ttl)
    return _series_cache


def daily_play_series(db: Session, today: date) -> PlaySeries:
    """
    Distinct players per activated puzzle, one point per puzzle.

    Day 0 is the earliest puzzle; a player counts once per puzzle no matter how
    many guesses they made. Counts reflect whatever was committed at read time.
    """
    puzzles = puzzle_calendar.activated_puzzles(db, today)
    if not puzzles:
        return PlaySeries(launch_date=today, points=[])

    with store_errors(db, "daily_play_series"):
        rows = (
            db.query(
                models.GuessState.puzzle_id,
                func.count(distinct(models.GuessState.player_id)),
            )
            .join(models.DailyPuzzle, models.DailyPuzzle.id == models.GuessState.puzzle_id)
            .filter(
                models.DailyPuzzle.puzzle_date <= today,
                models.GuessState.guesses_used >= 1,
            )
            .group_by(models.GuessState.puzzle_id)
            .all()
        )
    plays_by_puzzle = {puzzle_id: plays for puzzle_id, plays in rows}

    points = [
        PlayCountPoint(day=index, date=puzzle.puzzle_date, plays=plays_by_puzzle.get(puzzle.id, 0))
        for index, puzzle in enumerate(puzzles)
    ]
    return PlaySeries(launch_date=puzzles[0].puzzle_date, points=points)


def get_daily_play_series(db: Session, today: date) -> PlaySeries:
    """daily_play_series with a short in-process cache (RIFTLE_PLAY_SERIES_CACHE_SECONDS)."""
    ttl = settings.RIFTLE_PLAY_SERIES_CACHE_SECONDS
    if ttl <= 0:
        return daily_play_series(db, today)

    with _cache_lock:
        series = _play_series_cache(ttl).get(today)
    if series is not None:
        return series

    series = daily_play_series(db, today)
    with _cache_lock:
        _play_series_cache(ttl)[today] = series
    return series


def clear_play_series_cache() -> None:
    with _cache_lock:
        if _series_cache is not None:
            _series_cache.clear()
