import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from db import models
from schemas.riftle_schema import AttributeFeedback, CardAttributes, GuessRecord
from utils.errors import ConcurrentUpdateConflict, DataSourceUnavailable, store_errors

logger = logging.getLogger(__name__)


def is_terminal(state: Optional[models.GuessState], max_guesses: int) -> bool:
    if state is None:
        return False
    return bool(state.solved or state.failed or state.guesses_used >= max_guesses)


def get_guess_state(db: Session, player_id: str, puzzle_id: int) -> Optional[models.GuessState]:
    """The (player, puzzle) record, or None when the player has not guessed yet."""
    with store_errors(db, "get_guess_state"):
        return (
            db.query(models.GuessState)
            .options(selectinload(models.GuessState.guesses))
            .filter(
                models.GuessState.player_id == player_id,
                models.GuessState.puzzle_id == puzzle_id,
            )
            .populate_existing()
            .first()
        )


def guess_history(state: Optional[models.GuessState]) -> list[GuessRecord]:
    """
    Validated guess history. A stored document with an unexpected shape, or a
    history that disagrees with guesses_used, is rejected rather than patched.
    """
    if state is None:
        return []

    history = []
    for entry in state.guesses:
        try:
            history.append(GuessRecord(
                attempt_number=entry.attempt_number,
                card_id=entry.card_id,
                card_name=entry.card_name,
                is_correct=entry.is_correct,
                attributes=CardAttributes.model_validate(entry.attributes),
                feedback=AttributeFeedback.model_validate(entry.feedback),
            ))
        except ValidationError as e:
            logger.error(f"Corrupt guess entry {entry.id} for state {state.id}: {e}")
            raise DataSourceUnavailable("Stored guess history is unreadable.") from e

    if len(history) != state.guesses_used:
        logger.error(
            f"Guess state {state.id} has guesses_used={state.guesses_used} "
            f"but {len(history)} history entries"
        )
        raise DataSourceUnavailable("Stored guess history is inconsistent.")
    return history


def _new_entry(state_id: int, attempt_number: int, record: GuessRecord) -> models.GuessEntry:
    return models.GuessEntry(
        state_id=state_id,
        attempt_number=attempt_number,
        card_id=record.card_id,
        card_name=record.card_name,
        is_correct=record.is_correct,
        attributes=record.attributes.model_dump(),
        feedback=record.feedback.model_dump(),
        created_at=datetime.utcnow(),
    )


def record_guess(
    db: Session,
    player_id: str,
    puzzle_id: int,
    seen_guesses_used: int,
    record: GuessRecord,
    solved: bool,
    failed: bool,
    max_guesses: int,
    time_taken_seconds: Optional[int] = None,
) -> models.GuessState:
    """
    Appends one guess and bumps guesses_used in a single transaction.

    The write only applies if the row still holds the guesses_used value the
    caller read (seen_guesses_used) and is not terminal. A first guess
    (seen_guesses_used == 0) inserts the row; the (player, puzzle) unique key
    rejects a concurrent duplicate. Losing either race raises
    ConcurrentUpdateConflict with nothing applied.

    time_taken_seconds is stored as given; callers only pass it with the
    finishing guess.
    """
    attempt_number = seen_guesses_used + 1
    now = datetime.utcnow()

    with store_errors(db, "record_guess"):
        try:
            if seen_guesses_used == 0:
                state = models.GuessState(
                    player_id=player_id,
                    puzzle_id=puzzle_id,
                    guesses_used=attempt_number,
                    solved=solved,
                    failed=failed,
                    solved_at=now if solved else None,
                    time_taken_seconds=time_taken_seconds,
                    created_at=now,
                    updated_at=now,
                )
                db.add(state)
                db.flush()
                state_id = state.id
            else:
                result = db.execute(
                    update(models.GuessState)
                    .where(
                        models.GuessState.player_id == player_id,
                        models.GuessState.puzzle_id == puzzle_id,
                        models.GuessState.guesses_used == seen_guesses_used,
                        models.GuessState.guesses_used < max_guesses,
                        models.GuessState.solved.is_(False),
                        models.GuessState.failed.is_(False),
                    )
                    .values(
                        guesses_used=attempt_number,
                        solved=solved,
                        failed=failed,
                        solved_at=now if solved else None,
                        time_taken_seconds=time_taken_seconds,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    db.rollback()
                    logger.warning(
                        f"Stale guess for player {player_id} on puzzle {puzzle_id} "
                        f"(expected guesses_used={seen_guesses_used})"
                    )
                    raise ConcurrentUpdateConflict()
                state_id = (
                    db.query(models.GuessState.id)
                    .filter(
                        models.GuessState.player_id == player_id,
                        models.GuessState.puzzle_id == puzzle_id,
                    )
                    .scalar()
                )

            db.add(_new_entry(state_id, attempt_number, record))
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Concurrent guess for player {player_id} on puzzle {puzzle_id}: {e.orig}")
            raise ConcurrentUpdateConflict() from e

    return get_guess_state(db, player_id, puzzle_id)
