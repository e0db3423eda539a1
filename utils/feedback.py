"""
Riftle feedback rules.

Pure functions of (guessed card, target card). Three categorical attributes
(type, faction, rarity) answer correct/wrong; three numeric ones
(energy, might, power) answer exact/high/low.
"""
from db.models import Card
from schemas.riftle_schema import AttributeFeedback, CardAttributes


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def extract_card_attributes(card: Card) -> CardAttributes:
    rarity = card.rarity
    if rarity and rarity.lower() == "showcase":
        rarity = "Alternate Art"

    return CardAttributes(
        name=card.name or "",
        rarity=rarity,
        collector_number=card.collector_number or "",
        type=card.card_type,
        faction=card.faction,
        # Missing stats count as 0
        energy=card.energy or 0,
        might=card.might or 0,
        power=card.power or 0,
    )


def categorical_feedback(guessed: str | None, actual: str | None) -> str:
    return "correct" if _normalize(guessed) == _normalize(actual) else "wrong"


def numeric_feedback(guessed: int | None, actual: int | None) -> str:
    if guessed is None or actual is None or guessed == actual:
        return "exact"
    return "high" if guessed > actual else "low"


def generate_feedback(guessed_card: Card, actual_card: Card) -> AttributeFeedback:
    guessed = extract_card_attributes(guessed_card)
    actual = extract_card_attributes(actual_card)

    # Order matches the board: type, faction, rarity, then energy, might, power
    return AttributeFeedback(
        type=categorical_feedback(guessed.type, actual.type),
        faction=categorical_feedback(guessed.faction, actual.faction),
        rarity=categorical_feedback(guessed.rarity, actual.rarity),
        energy=numeric_feedback(guessed.energy, actual.energy),
        might=numeric_feedback(guessed.might, actual.might),
        power=numeric_feedback(guessed.power, actual.power),
    )


def is_correct_guess(guessed_card: Card, actual_card: Card) -> bool:
    """Same card, or an art variant of it (variants share the card name)."""
    if guessed_card.id == actual_card.id:
        return True
    return _normalize(guessed_card.name) == _normalize(actual_card.name)


def calculate_game_score(guesses_used: int, max_guesses: int) -> int:
    """Fewer guesses score higher; a first-guess solve scores max_guesses."""
    return max(0, max_guesses - guesses_used + 1)
