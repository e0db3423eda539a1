import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from db import models
from repository import card_catalog, guess_state_repo, puzzle_calendar
from schemas import riftle_schema
from utils import feedback
from utils.errors import AlreadyCompleted, ConcurrentUpdateConflict, InvalidGuess, store_errors

logger = logging.getLogger(__name__)


def build_answer(card: models.Card) -> riftle_schema.CardAnswer:
    return riftle_schema.CardAnswer(
        id=card.id,
        name=card.name,
        set_code=card.set_code,
        collector_number=card.collector_number,
        rarity=card.rarity,
        image_url=card.image_url,
        attributes=feedback.extract_card_attributes(card),
    )


def _card_metadata(puzzle: models.DailyPuzzle) -> riftle_schema.CardMetadata:
    # Cosmetic hints only; never the card identity
    return riftle_schema.CardMetadata(set_code=puzzle.card.set_code, rarity=puzzle.card.rarity)


def build_view(
    puzzle: models.DailyPuzzle,
    state: Optional[models.GuessState],
    max_guesses: int,
) -> riftle_schema.PuzzleView:
    history = guess_state_repo.guess_history(state)
    solved = bool(state and state.solved)
    game_over = guess_state_repo.is_terminal(state, max_guesses)

    return riftle_schema.PuzzleView(
        puzzle_id=puzzle.id,
        puzzle_date=puzzle.puzzle_date,
        is_solved=solved,
        is_failed=game_over and not solved,
        game_over=game_over,
        guesses_used=len(history),
        guess_history=history,
        max_guesses=max_guesses,
        card_metadata=_card_metadata(puzzle),
        answer=build_answer(puzzle.card) if game_over else None,
    )


def get_puzzle_view(
    db: Session,
    puzzle: models.DailyPuzzle,
    player_id: Optional[str],
    max_guesses: int,
) -> riftle_schema.PuzzleView:
    """
    The player's view of a puzzle. Anonymous players always get an empty
    history; nothing is created by looking.
    """
    state = None
    if player_id:
        state = guess_state_repo.get_guess_state(db, player_id, puzzle.id)
    # puzzle.card may be lazily loaded here
    with store_errors(db, "build_view"):
        return build_view(puzzle, state, max_guesses)


def _resolve_guess(db: Session, puzzle_id: int, guessed_card_id: str, today: date):
    puzzle = puzzle_calendar.get_activated_puzzle(db, puzzle_id, today)
    guessed_card = card_catalog.get_card(db, guessed_card_id)
    if guessed_card is None:
        raise InvalidGuess()
    return puzzle, guessed_card


def _guess_record(attempt_number: int, guessed_card: models.Card, target: models.Card) -> riftle_schema.GuessRecord:
    return riftle_schema.GuessRecord(
        attempt_number=attempt_number,
        card_id=guessed_card.id,
        card_name=guessed_card.name,
        is_correct=feedback.is_correct_guess(guessed_card, target),
        attributes=feedback.extract_card_attributes(guessed_card),
        feedback=feedback.generate_feedback(guessed_card, target),
    )


def _recorded_attempt(
    state: Optional[models.GuessState], attempt_number: int, card_id: str,
) -> Optional[riftle_schema.GuessRecord]:
    """The stored entry for attempt_number if it guessed card_id."""
    for record in guess_state_repo.guess_history(state):
        if record.attempt_number == attempt_number and record.card_id == card_id:
            return record
    return None


def _guess_result(
    db: Session,
    puzzle: models.DailyPuzzle,
    state: models.GuessState,
    record: riftle_schema.GuessRecord,
    max_guesses: int,
) -> riftle_schema.GuessResult:
    with store_errors(db, "build_view"):
        view = build_view(puzzle, state, max_guesses)
    return riftle_schema.GuessResult(
        **view.model_dump(),
        correct=record.is_correct,
        feedback=record.feedback,
        guessed_attributes=record.attributes,
        score=feedback.calculate_game_score(record.attempt_number, max_guesses) if record.is_correct else 0,
    )


def submit_guess(
    db: Session,
    player_id: str,
    puzzle_id: int,
    guessed_card_id: str,
    today: date,
    max_guesses: int,
    expected_attempt: Optional[int] = None,
    time_in_seconds: Optional[int] = None,
) -> riftle_schema.GuessResult:
    """
    Records one guess for an authenticated player.

    A submission that repeats an already recorded attempt (same attempt number
    and card) returns the stored result without counting again. This covers a
    client resend with expected_attempt as well as an identical request that
    won the race against this one.

    Raises PuzzleUnavailable, InvalidGuess or AlreadyCompleted without touching
    the stored state, and ConcurrentUpdateConflict when another submission for
    the same (player, puzzle) won the race or expected_attempt is stale.
    """
    puzzle, guessed_card = _resolve_guess(db, puzzle_id, guessed_card_id, today)

    state = guess_state_repo.get_guess_state(db, player_id, puzzle.id)
    seen = state.guesses_used if state else 0

    if expected_attempt is not None and expected_attempt <= seen:
        replay = _recorded_attempt(state, expected_attempt, guessed_card.id)
        if replay is not None:
            logger.info(f"Replayed guess {expected_attempt} for player {player_id} on puzzle {puzzle.id}")
            return _guess_result(db, puzzle, state, replay, max_guesses)

    if guess_state_repo.is_terminal(state, max_guesses):
        with store_errors(db, "build_view"):
            view = build_view(puzzle, state, max_guesses)
        raise AlreadyCompleted(view=view)

    if expected_attempt is not None and expected_attempt != seen + 1:
        logger.warning(
            f"Guess for attempt {expected_attempt} from player {player_id} on puzzle {puzzle.id}, "
            f"but {seen} guesses are recorded"
        )
        raise ConcurrentUpdateConflict()

    with store_errors(db, "guess_record"):
        record = _guess_record(seen + 1, guessed_card, puzzle.card)
    solved = record.is_correct
    failed = not solved and seen + 1 >= max_guesses

    try:
        state = guess_state_repo.record_guess(
            db, player_id, puzzle.id, seen, record, solved=solved, failed=failed, max_guesses=max_guesses,
            time_taken_seconds=time_in_seconds if solved or failed else None,
        )
    except ConcurrentUpdateConflict:
        # An identical request may have recorded this very guess first
        state = guess_state_repo.get_guess_state(db, player_id, puzzle.id)
        duplicate = _recorded_attempt(state, seen + 1, guessed_card.id)
        if duplicate is None:
            raise
        logger.info(f"Duplicate guess for player {player_id} on puzzle {puzzle.id} was already recorded")
        return _guess_result(db, puzzle, state, duplicate, max_guesses)

    if solved or failed:
        logger.info(f"Player {player_id} finished puzzle {puzzle.id}: solved={solved} guesses={seen + 1}")
    return _guess_result(db, puzzle, state, record, max_guesses)


def evaluate_anonymous_guess(
    db: Session,
    puzzle_id: int,
    guessed_card_id: str,
    today: date,
    max_guesses: int,
) -> riftle_schema.GuessResult:
    """
    Feedback for a player without an account. Nothing is stored; the client
    keeps its own history and the answer is only revealed on a correct guess.
    """
    puzzle, guessed_card = _resolve_guess(db, puzzle_id, guessed_card_id, today)
    with store_errors(db, "anonymous_guess"):
        record = _guess_record(1, guessed_card, puzzle.card)
        metadata = _card_metadata(puzzle)
        answer = build_answer(puzzle.card) if record.is_correct else None

    return riftle_schema.GuessResult(
        puzzle_id=puzzle.id,
        puzzle_date=puzzle.puzzle_date,
        is_solved=record.is_correct,
        game_over=record.is_correct,
        guesses_used=1,
        guess_history=[record],
        max_guesses=max_guesses,
        card_metadata=metadata,
        answer=answer,
        correct=record.is_correct,
        feedback=record.feedback,
        guessed_attributes=record.attributes,
        persisted=False,
    )
