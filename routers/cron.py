import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from dependencies import get_db, get_today, verify_cron_secret
from repository import puzzle_assignment_repo
from schemas import riftle_schema

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.get("/riftle-daily", response_model=riftle_schema.ScheduleResponse)
def schedule_riftle_puzzles(
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    target_date: Optional[date] = Query(default=None, alias="date"),
):
    """
    Creates upcoming puzzles. With ?date=YYYY-MM-DD only that date is
    scheduled; otherwise today through the configured buffer.
    """
    try:
        if target_date:
            puzzles = [puzzle_assignment_repo.schedule_puzzle(db, target_date)]
        else:
            puzzles = puzzle_assignment_repo.ensure_puzzle_buffer(db, today)
    except ValueError as e:
        logger.error(f"Could not schedule puzzles: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to select card")

    return riftle_schema.ScheduleResponse(
        puzzles=[
            riftle_schema.ScheduledPuzzle(
                puzzle_id=p.id,
                puzzle_date=p.puzzle_date,
                card_id=p.card_id,
                card_name=p.card.name,
            )
            for p in puzzles
        ]
    )
