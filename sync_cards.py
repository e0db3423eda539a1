"""
Imports the Riftcodex card catalog into the cards table.

Usage: python sync_cards.py
"""
import logging
import sys

from db import database
from repository import card_catalog
from utils.errors import DataSourceUnavailable

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("sync_cards")


def main() -> int:
    try:
        raw_cards = card_catalog.fetch_riftcodex_cards()
    except ValueError as e:
        logger.error(f"Card sync aborted: {e}")
        return 1

    database.Base.metadata.create_all(bind=database.engine)
    db_session = database.SessionLocal()
    try:
        written = card_catalog.upsert_cards(db_session, raw_cards)
    except DataSourceUnavailable:
        return 1
    finally:
        db_session.close()

    logger.info(f"Synced {written} of {len(raw_cards)} cards")
    return 0


if __name__ == "__main__":
    sys.exit(main())
