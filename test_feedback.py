from db.models import Card
from utils import feedback


def _card(card_id="c1", name="Jinx", **attrs):
    return Card(id=card_id, name=name, **attrs)


def test_extract_attributes_defaults_missing_stats_to_zero():
    attrs = feedback.extract_card_attributes(_card(rarity="Rare", card_type="Spell", energy=2))
    assert attrs.energy == 2
    assert attrs.might == 0
    assert attrs.power == 0
    assert attrs.type == "Spell"
    assert attrs.collector_number == ""


def test_showcase_rarity_reads_as_alternate_art():
    attrs = feedback.extract_card_attributes(_card(rarity="Showcase"))
    assert attrs.rarity == "Alternate Art"


def test_categorical_feedback_ignores_case_and_whitespace():
    assert feedback.categorical_feedback(" fury ", "Fury") == "correct"
    assert feedback.categorical_feedback("Order", "Fury") == "wrong"
    assert feedback.categorical_feedback(None, None) == "correct"


def test_numeric_feedback():
    assert feedback.numeric_feedback(3, 3) == "exact"
    assert feedback.numeric_feedback(5, 3) == "high"
    assert feedback.numeric_feedback(1, 3) == "low"
    assert feedback.numeric_feedback(None, 3) == "exact"


def test_generate_feedback_compares_all_six_attributes():
    guessed = _card("g", "Garen", card_type="Unit", faction="Order", rarity="Rare", energy=5, might=5, power=1)
    target = _card("t", "Jinx", card_type="Unit", faction="Fury", rarity="Epic", energy=4, might=3, power=2)

    result = feedback.generate_feedback(guessed, target)

    assert result.model_dump() == {
        "type": "correct",
        "faction": "wrong",
        "rarity": "wrong",
        "energy": "high",
        "might": "high",
        "power": "low",
    }


def test_generate_feedback_is_deterministic():
    guessed = _card("g", "Garen", faction="Order", energy=5)
    target = _card("t", "Jinx", faction="Fury", energy=4)
    assert feedback.generate_feedback(guessed, target) == feedback.generate_feedback(guessed, target)


def test_correct_guess_by_id_or_variant_name():
    target = _card("ogn-001", "Jinx, Loose Cannon")
    assert feedback.is_correct_guess(_card("ogn-001", "Jinx, Loose Cannon"), target)
    assert feedback.is_correct_guess(_card("ogn-001a", "jinx, loose cannon "), target)
    assert not feedback.is_correct_guess(_card("ogn-002", "Garen"), target)


def test_game_score():
    assert feedback.calculate_game_score(1, 6) == 6
    assert feedback.calculate_game_score(6, 6) == 1
    assert feedback.calculate_game_score(9, 6) == 0
