from datetime import date, timedelta

import pytest

from conftest import TODAY, add_card, add_puzzle
from config import settings
from db import models
from repository import puzzle_assignment_repo


@pytest.fixture
def catalog(db):
    return [add_card(db, f"c{i:02d}", f"Card {i:02d}", card_type="Unit") for i in range(10)]


def test_pick_is_deterministic_and_order_independent(catalog):
    day = date(2026, 11, 1)
    forward = puzzle_assignment_repo.pick_card_for_date(catalog, day)
    backward = puzzle_assignment_repo.pick_card_for_date(list(reversed(catalog)), day)
    assert forward.id == backward.id


def test_pick_without_candidates_fails():
    with pytest.raises(ValueError):
        puzzle_assignment_repo.pick_card_for_date([], TODAY)


def test_schedule_is_idempotent(db, catalog):
    first = puzzle_assignment_repo.schedule_puzzle(db, TODAY)
    again = puzzle_assignment_repo.schedule_puzzle(db, TODAY)
    assert first.id == again.id
    assert again.card_id == first.card_id
    assert db.query(models.DailyPuzzle).count() == 1


def test_schedule_never_replaces_existing_puzzle(db, catalog):
    existing = add_puzzle(db, TODAY, catalog[3])
    scheduled = puzzle_assignment_repo.schedule_puzzle(db, TODAY)
    assert scheduled.id == existing.id
    assert scheduled.card_id == "c03"


def test_schedule_skips_recent_and_ineligible_cards(db, catalog):
    add_card(db, "bf", "Battlefield", card_type="Battlefield")
    for offset, card in enumerate(catalog[:9], start=1):
        add_puzzle(db, TODAY - timedelta(days=offset), card)

    puzzle = puzzle_assignment_repo.schedule_puzzle(db, TODAY)
    # Only c09 was not used in the last month
    assert puzzle.card_id == "c09"


def test_small_catalog_still_gets_a_puzzle(db):
    card = add_card(db, "only", "Only Card", card_type="Unit")
    add_puzzle(db, TODAY - timedelta(days=1), card)
    assert puzzle_assignment_repo.schedule_puzzle(db, TODAY).card_id == "only"


def test_buffer_schedules_today_and_following_days(db, catalog):
    puzzles = puzzle_assignment_repo.ensure_puzzle_buffer(db, TODAY)
    assert [p.puzzle_date for p in puzzles] == [
        TODAY + timedelta(days=offset) for offset in range(settings.RIFTLE_PUZZLE_BUFFER_DAYS + 1)
    ]
    assert len({p.card_id for p in puzzles}) == len(puzzles)
