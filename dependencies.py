import hmac
from datetime import date, datetime, timezone
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
import jwt

from db import database
from config import settings

bearer_scheme = HTTPBearer(auto_error=False)

ALGORITHM = settings.ALGORITHM


def get_db():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_today() -> date:
    """Current UTC calendar date. Puzzles roll over at UTC midnight."""
    return datetime.now(timezone.utc).date()


def decode_player_id(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY.get_secret_value(), algorithms=[ALGORITHM])
    except InvalidTokenError:
        return None
    sub = payload.get("sub")
    if sub is None or str(sub).strip() == "":
        return None
    return str(sub)


async def get_current_player_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> Optional[str]:
    """Player id from a valid bearer token, or None for anonymous play."""
    if credentials is None:
        return None
    return decode_player_id(credentials.credentials)


async def get_current_player(
    player_id: Annotated[Optional[str], Depends(get_current_player_optional)],
) -> str:
    if player_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return player_id


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    if settings.CRON_SECRET is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error")
    expected = f"Bearer {settings.CRON_SECRET.get_secret_value()}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
