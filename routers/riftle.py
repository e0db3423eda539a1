import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from config import settings
from dependencies import get_current_player, get_current_player_optional, get_db, get_today
from repository import analytics_repo, card_catalog, player_stats_repo, puzzle_calendar, puzzle_session
from schemas import riftle_schema
from utils.errors import ConcurrentUpdateConflict
from utils.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/riftle",
    tags=["Riftle"]
)


@router.get("/daily", response_model=riftle_schema.PuzzleView)
def get_daily_puzzle(
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    player_id: Optional[str] = Depends(get_current_player_optional),
):
    """Today's puzzle and, for a signed-in player, their progress on it."""
    puzzle = puzzle_calendar.get_current_puzzle(db, today)
    return puzzle_session.get_puzzle_view(db, puzzle, player_id, settings.RIFTLE_MAX_GUESSES)


@router.get("/puzzles/{puzzle_id}", response_model=riftle_schema.PuzzleView)
def get_puzzle(
    puzzle_id: int,
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    player_id: Optional[str] = Depends(get_current_player_optional),
):
    puzzle = puzzle_calendar.get_activated_puzzle(db, puzzle_id, today)
    return puzzle_session.get_puzzle_view(db, puzzle, player_id, settings.RIFTLE_MAX_GUESSES)


@router.post("/submit", response_model=riftle_schema.GuessResult)
@limiter.limit("30/minute")
def submit_guess(
    request: Request,
    guess: riftle_schema.GuessRequest,
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    player_id: Optional[str] = Depends(get_current_player_optional),
):
    max_guesses = settings.RIFTLE_MAX_GUESSES

    if player_id is None:
        return puzzle_session.evaluate_anonymous_guess(
            db, guess.puzzle_id, guess.guessed_card_id, today, max_guesses
        )

    # A client that names its attempt number gets the conflict back instead of a retry
    retries = settings.RIFTLE_CONFLICT_RETRIES if guess.attempt_number is None else 0
    for attempt in range(retries + 1):
        try:
            return puzzle_session.submit_guess(
                db, player_id, guess.puzzle_id, guess.guessed_card_id, today, max_guesses,
                expected_attempt=guess.attempt_number,
                time_in_seconds=guess.time_in_seconds,
            )
        except ConcurrentUpdateConflict:
            if attempt == retries:
                raise
            logger.info(f"Retrying guess for player {player_id} on puzzle {guess.puzzle_id}")


@router.get("/cards", response_model=list[riftle_schema.CardSummary])
def list_cards(
    db: Annotated[Session, Depends(get_db)],
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
):
    """Eligible cards for the guess autocomplete."""
    return card_catalog.search_cards(db, q, limit)


@router.get("/stats", response_model=riftle_schema.PlayerStats)
def get_my_stats(
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    player_id: Annotated[str, Depends(get_current_player)],
):
    return player_stats_repo.player_stats(db, player_id, today, settings.RIFTLE_MAX_GUESSES)


@router.get("/daily-plays", response_model=riftle_schema.PlaySeries)
def get_daily_plays(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
):
    """Distinct players per puzzle since launch."""
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    return analytics_repo.get_daily_play_series(db, today)
