from typing import Any

import pytest

from tcgbuilder.db.database import init_db, make_engine
from tcgbuilder.models.card import Catalog
from tcgbuilder.models.db import Base
from tcgbuilder.models.game_settings import GameSettings
from tcgbuilder.services.game_data import GameData, parse_game_data


OCTGN_GAME_ID = "a6c8d2e8-7cd8-11dd-8f94-e62b56d89593"


@pytest.fixture
def card_records() -> list[dict[str, Any]]:
    """Raw catalog records, as found in a game's cards.json."""
    return [
        {
            "id": "card-17",
            "index": 7,
            "name": "Goblin Guide",
            "Type": "Creature",
            "Cost": 1,
            "Color": "Red",
            "Limit": 2,
            "Traits": ["Goblin", "Scout"],
        },
        {
            "id": "card-42",
            "index": 12,
            "name": "Lightning Bolt",
            "Type": "Spell",
            "Cost": 1,
            "Color": "Red",
        },
        {"id": "card-03", "index": 3, "name": "Mountain", "Type": "Land", "Color": ""},
        {
            "id": "card-05",
            "index": 5,
            "name": "Counterspell",
            "Type": "Spell",
            "Cost": 2,
            "Color": "Blue",
        },
        {
            "id": "card-08",
            "index": 8,
            "name": "Grizzly Bears",
            "Type": "Creature",
            "Cost": 2,
            "Color": "Green",
        },
        {
            "id": "card-09",
            "index": 9,
            "name": "Grizzly Bears",
            "Type": "Creature",
            "Cost": 2,
            "Color": "Green",
        },
        {
            "id": "card-11",
            "index": 11,
            "name": "Grizzly Bears",
            "Subtitle": "Promo",
            "Type": "Creature",
            "Cost": 2,
            "Color": "Green",
        },
        {
            "id": "card-20",
            "index": 20,
            "name": "Ancient Dragon",
            "Type": "Creature",
            "Cost": 6,
            "Color": "Red",
            "Keywords": "Flying; Haste",
            "orientation": "horizontal",
        },
        {"id": "card-01", "index": 1, "name": "Sol Ring", "Type": "Artifact", "Cost": 1},
        {"id": "card-30", "index": 30, "name": "Treasure", "Type": "Token"},
    ]


@pytest.fixture
def settings_document() -> dict[str, Any]:
    """A game's settings.json."""
    return {
        "gameName": "Demo",
        "groupOptions": ["Type", "OCTGN", "Color"],
        "groupOrder": ["Creature", "Spell", "Land"],
        "groupSort": {"Creature": {"by": ["Cost", "name"]}},
        "filterOptions": ["Type", "Color", "Keywords"],
        "searchPrefixes": {"t:": "Type", "c:": "Color", "k:": "Keywords", "cost:": "Cost"},
        "attributeDelimiters": {"Keywords": ";"},
        "maxCopiesPerCard": 4,
        "deckValidation": {
            "minCards": 10,
            "maxCards": 60,
            "usePerCardLimit": True,
            "propertyLimits": [{"property": "Type", "value": "Land", "max": 20}],
            "banList": ["Sol Ring"],
        },
        "octgn": {
            "gameId": OCTGN_GAME_ID,
            "sections": [
                {
                    "name": "Main",
                    "shared": False,
                    "match": {"Type": ["Creature", "Spell", "Artifact"]},
                },
                {"name": "Lands", "match": {"Type": "Land"}},
                {"name": "Sideboard"},
            ],
        },
        "exportOptions": {"text": True, "json": True, "image": True, "octgn": True},
    }


@pytest.fixture
def catalog(card_records: list[dict[str, Any]]) -> Catalog:
    return Catalog.from_records(card_records)


@pytest.fixture
def game_settings(settings_document: dict[str, Any]) -> GameSettings:
    return GameSettings.model_validate(settings_document)


@pytest.fixture
def game_data(
    settings_document: dict[str, Any], card_records: list[dict[str, Any]]
) -> GameData:
    return parse_game_data("demo", settings_document, card_records)


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine with the saved-deck tables."""
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
