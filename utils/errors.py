"""
Riftle error taxonomy.

Every failure that leaves the repository layer is one of these kinds. Storage
errors are translated by ``store_errors`` so no raw SQLAlchemy exception
reaches a router.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class RiftleError(Exception):
    kind = "riftle_error"
    status_code = 500
    default_message = "Riftle error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DataSourceUnavailable(RiftleError):
    kind = "data_source_unavailable"
    status_code = 503
    default_message = "The puzzle data source is unavailable. Please retry."


class PuzzleUnavailable(RiftleError):
    kind = "puzzle_unavailable"
    status_code = 404
    default_message = "No puzzle available yet. Please check back later."


class AlreadyCompleted(RiftleError):
    kind = "already_completed"
    status_code = 409
    default_message = "You have already finished this puzzle."

    def __init__(self, message: str | None = None, view=None):
        super().__init__(message)
        self.view = view


class InvalidGuess(RiftleError):
    kind = "invalid_guess"
    status_code = 400
    default_message = "Invalid card"


class ConcurrentUpdateConflict(RiftleError):
    kind = "concurrent_update_conflict"
    status_code = 409
    default_message = "Another guess was recorded at the same time. Please retry."


@contextmanager
def store_errors(db: Session, operation: str):
    """Roll back and re-raise any storage failure as DataSourceUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store failure during {operation}: {e}")
        raise DataSourceUnavailable() from e
