from unittest.mock import MagicMock

import pytest
import requests

from conftest import add_card
from db import models
from repository import card_catalog

RIFTCODEX_CARD = {
    "id": "ogn-027",
    "name": "Darius, Trifarian",
    "set": {"set_id": "OGN"},
    "collector_number": 27,
    "classification": {"type": "Unit", "rarity": "Rare", "domain": ["Fury", "Order"]},
    "attributes": {"energy": "5", "might": 4, "power": None},
    "metadata": {"signature": False},
    "media": {"image_url": "https://cdn.example/ogn-027.png"},
}


def test_transform_riftcodex_card():
    values = card_catalog.transform_riftcodex_card(RIFTCODEX_CARD)
    assert values == {
        "id": "ogn-027",
        "name": "Darius, Trifarian",
        "set_code": "OGN",
        "collector_number": "27",
        "rarity": "Rare",
        "card_type": "Unit",
        "faction": "Fury",
        "energy": 5,
        "might": 4,
        "power": None,
        "variant": "normal",
        "is_signature": False,
        "image_url": "https://cdn.example/ogn-027.png",
    }


def test_transform_skips_nameless_entries():
    assert card_catalog.transform_riftcodex_card({"id": "x"}) is None


def test_get_card_rejects_malformed_ids(db):
    add_card(db, "ogn-001", "Jinx")
    assert card_catalog.get_card(db, "ogn-001").name == "Jinx"
    assert card_catalog.get_card(db, " ogn-001 ").name == "Jinx"
    assert card_catalog.get_card(db, "") is None
    assert card_catalog.get_card(db, None) is None
    assert card_catalog.get_card(db, "a" * 200) is None


def test_eligible_cards_exclude_battlefield_foil_and_signature(db, world):
    add_card(db, "ogn-050s", "Jinx, Loose Cannon", card_type="Unit", is_signature=True)
    ids = {card.id for card in card_catalog.eligible_cards(db)}
    assert ids == {"ogn-001", "ogn-001a", "ogn-002", "ogn-003", "ogn-004"}


def test_search_cards_by_name(db, world):
    names = [card.name for card in card_catalog.search_cards(db, "garen")]
    assert names == ["Garen, Might of Demacia"]
    assert len(card_catalog.search_cards(db, "", limit=2)) == 2


def _page(items, pages):
    response = MagicMock()
    response.json.return_value = {"items": items, "pages": pages}
    return response


def test_fetch_walks_every_page():
    http = MagicMock()
    http.get.side_effect = [_page([RIFTCODEX_CARD], 2), _page([{"id": "b", "name": "B"}], 2)]

    cards = card_catalog.fetch_riftcodex_cards("https://api.example", session=http)

    assert [c["id"] for c in cards] == ["ogn-027", "b"]
    assert http.get.call_args_list[1].kwargs["params"] == {"page": 2}


def test_fetch_failure_raises_value_error():
    http = MagicMock()
    http.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(ValueError):
        card_catalog.fetch_riftcodex_cards("https://api.example", session=http)


def test_upsert_inserts_then_updates(db):
    assert card_catalog.upsert_cards(db, [RIFTCODEX_CARD, {"name": "no id"}]) == 1
    changed = dict(RIFTCODEX_CARD, name="Darius, Hand of Noxus")
    card_catalog.upsert_cards(db, [changed])

    db.expire_all()
    assert db.query(models.Card).count() == 1
    assert db.get(models.Card, "ogn-027").name == "Darius, Hand of Noxus"
