import logging
from typing import Optional

import requests
from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import settings
from db import models
from utils.errors import store_errors

logger = logging.getLogger(__name__)

MAX_CARD_ID_LENGTH = 128
EXCLUDED_CARD_TYPES = ("Battlefield",)
EXCLUDED_VARIANTS = ("foil",)


def get_card(db: Session, card_id: str | None) -> Optional[models.Card]:
    """Catalog lookup. Malformed ids resolve to None, same as unknown ones."""
    if not isinstance(card_id, str):
        return None
    card_id = card_id.strip()
    if not card_id or len(card_id) > MAX_CARD_ID_LENGTH:
        return None
    with store_errors(db, "get_card"):
        return db.query(models.Card).filter(models.Card.id == card_id).first()


def eligible_cards_query(db: Session):
    """Cards that may be a puzzle answer: no battlefields, foils or signature prints."""
    return db.query(models.Card).filter(
        or_(models.Card.card_type.is_(None), models.Card.card_type.notin_(EXCLUDED_CARD_TYPES)),
        models.Card.variant.notin_(EXCLUDED_VARIANTS),
        models.Card.is_signature.is_(False),
    )


def eligible_cards(db: Session) -> list[models.Card]:
    with store_errors(db, "eligible_cards"):
        return eligible_cards_query(db).order_by(models.Card.id.asc()).all()


def search_cards(db: Session, query: str = "", limit: int = 100) -> list[models.Card]:
    q = eligible_cards_query(db)
    query = (query or "").strip()
    if query:
        q = q.filter(models.Card.name.ilike(f"%{query}%"))
    with store_errors(db, "search_cards"):
        return q.order_by(models.Card.name.asc(), models.Card.id.asc()).limit(limit).all()


# === Riftcodex import ===

def _to_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def transform_riftcodex_card(raw: dict) -> Optional[dict]:
    """
    Maps a Riftcodex API card onto the cards table.
    Returns None for entries without an id or a name.
    """
    card_id = raw.get("id")
    name = raw.get("name")
    if not card_id or not name:
        return None

    set_info = raw.get("set") or {}
    classification = raw.get("classification") or {}
    attributes = raw.get("attributes") or {}
    metadata = raw.get("metadata") or {}
    media = raw.get("media") or {}

    domains = classification.get("domain") or []
    faction = domains[0] if isinstance(domains, list) and domains else None

    set_code = set_info.get("set_id") if isinstance(set_info, dict) else set_info
    signature = metadata.get("signature")

    return {
        "id": str(card_id),
        "name": name,
        "set_code": set_code or raw.get("set_code"),
        "collector_number": str(raw.get("collector_number") or raw.get("number") or ""),
        "rarity": classification.get("rarity") or raw.get("rarity"),
        "card_type": classification.get("type"),
        "faction": faction,
        "energy": _to_int(attributes.get("energy")),
        "might": _to_int(attributes.get("might")),
        "power": _to_int(attributes.get("power")),
        "variant": (raw.get("variant") or "normal").lower(),
        "is_signature": signature is True or str(signature).lower() == "true",
        "image_url": media.get("image_url") or raw.get("image_url"),
    }


def fetch_riftcodex_cards(base_url: str | None = None, session: requests.Session | None = None) -> list[dict]:
    """Fetches every page of GET /cards. Raises ValueError if the API is unusable."""
    base_url = (base_url or settings.RIFTCODEX_API_URL).rstrip("/")
    http = session or requests.Session()

    cards: list[dict] = []
    page, total_pages = 1, 1
    while page <= total_pages:
        try:
            response = http.get(
                f"{base_url}/cards",
                params={"page": page},
                headers={"Accept": "application/json"},
                timeout=settings.RIFTCODEX_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Error fetching Riftcodex cards page {page}: {e}")
            raise ValueError("Could not fetch cards") from e

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ValueError("Unexpected Riftcodex response: expected an object with an items array")

        cards.extend(items)
        total_pages = data.get("pages") or 1
        page += 1

    return cards


def upsert_cards(db: Session, raw_cards: list[dict]) -> int:
    """Inserts or updates catalog rows. Returns how many cards were written."""
    written = 0
    with store_errors(db, "upsert_cards"):
        for raw in raw_cards:
            values = transform_riftcodex_card(raw)
            if values is None:
                continue
            card = db.get(models.Card, values["id"])
            if card is None:
                db.add(models.Card(**values))
            else:
                for key, value in values.items():
                    setattr(card, key, value)
            written += 1
        db.commit()
    return written
