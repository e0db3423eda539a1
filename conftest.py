import os
from datetime import date

# Settings are read at import time
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["RIFTLE_PLAY_SERIES_CACHE_SECONDS"] = "0"
os.environ["RIFTLE_MAX_GUESSES"] = "6"

import jwt
import pytest
from fastapi.testclient import TestClient

from db import database, models
from dependencies import get_today

TODAY = date(2026, 10, 19)
MAX_GUESSES = 6


@pytest.fixture
def db():
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


def add_card(db, card_id, name, **attrs):
    card = models.Card(id=card_id, name=name, **attrs)
    db.add(card)
    db.commit()
    return card


def add_puzzle(db, puzzle_date, card):
    puzzle = models.DailyPuzzle(puzzle_date=puzzle_date, card_id=card.id)
    db.add(puzzle)
    db.commit()
    db.refresh(puzzle)
    return puzzle


@pytest.fixture
def world(db):
    """
    A small catalog and three activated puzzles (today's answer is Jinx) plus
    one scheduled for tomorrow.
    """
    cards = {
        "jinx": add_card(db, "ogn-001", "Jinx, Loose Cannon", set_code="OGN", collector_number="001",
                         rarity="Epic", card_type="Unit", faction="Fury", energy=4, might=3, power=1),
        "garen": add_card(db, "ogn-002", "Garen, Might of Demacia", set_code="OGN", collector_number="002",
                          rarity="Rare", card_type="Unit", faction="Order", energy=5, might=5, power=1),
        "vi": add_card(db, "ogn-003", "Vi, Piltover Enforcer", set_code="OGN", collector_number="003",
                       rarity="Common", card_type="Unit", faction="Fury", energy=3, might=4, power=0),
        "bolt": add_card(db, "ogn-004", "Mystic Bolt", set_code="OGN", collector_number="004",
                         rarity="Common", card_type="Spell", faction="Calm", energy=2),
        "jinx_alt": add_card(db, "ogn-001a", "Jinx, Loose Cannon", set_code="OGN", collector_number="001a",
                             rarity="Showcase", card_type="Unit", faction="Fury", energy=4, might=3, power=1),
        "field": add_card(db, "ogn-100", "Zaun Warrens", set_code="OGN", collector_number="100",
                          rarity="Uncommon", card_type="Battlefield"),
        "foil": add_card(db, "ogn-002-foil", "Garen, Might of Demacia", set_code="OGN",
                         collector_number="002-foil", rarity="Rare", card_type="Unit", variant="foil"),
    }
    puzzles = {
        "day0": add_puzzle(db, date(2026, 10, 17), cards["garen"]),
        "day1": add_puzzle(db, date(2026, 10, 18), cards["vi"]),
        "today": add_puzzle(db, TODAY, cards["jinx"]),
        "tomorrow": add_puzzle(db, date(2026, 10, 20), cards["bolt"]),
    }
    return {"cards": cards, "puzzles": puzzles}


def token_for(player_id: str) -> str:
    return jwt.encode({"sub": player_id}, "test-secret", algorithm="HS256")


def auth_headers(player_id: str) -> dict:
    return {"Authorization": f"Bearer {token_for(player_id)}"}


@pytest.fixture
def client(db):
    from main import app

    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
