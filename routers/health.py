from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from sqlalchemy import text
from dependencies import get_db
from utils.limiter import limiter
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["health"]
)

@router.get("/live", status_code=status.HTTP_200_OK)
@limiter.exempt
async def health_live(request: Request):
    """
    Liveness: the process is up.
    """
    return {"status": "ok"}

@router.get("/ready", status_code=status.HTTP_200_OK)
@limiter.exempt
def health_ready(request: Request, db: Session = Depends(get_db)):
    """
    Readiness: the puzzle store answers a trivial query.
    """
    try:
        # 1 second cap on the probe query
        db.execute(
            text("SELECT 1"),
            execution_options={"timeout": 1, "statement_timeout": 1000}
        ).scalar()
        return {"status": "ok"}
    except Exception as e:
        # Details stay in the log
        logger.error(f"Health check failed: puzzle store is down or unreachable. Error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "fail", "db": "down"}
        )
