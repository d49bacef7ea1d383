"""
Game API endpoints.

Lists the available games and exposes each game's settings, card search
and filter options.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from tcgbuilder.api.dependencies import get_game
from tcgbuilder.services.card_search import filter_values, search_cards, unique_printings
from tcgbuilder.services.game_data import GameData, list_games

router = APIRouter(prefix="/games", tags=["games"])


class GameListResponse(BaseModel):
    """Response model for the game list."""

    games: list[str]
    count: int


class CardListResponse(BaseModel):
    """Response model for a card search."""

    game: str
    cards: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class FilterOptionsResponse(BaseModel):
    """Dropdown values for each of a game's filter attributes."""

    game: str
    filters: dict[str, list[str]] = Field(default_factory=dict)


@router.get("", response_model=GameListResponse)
async def get_games() -> GameListResponse:
    """List the games with data available."""
    games = list_games()
    return GameListResponse(games=games, count=len(games))


@router.get("/{game}/settings")
async def get_game_settings(
    game_data: Annotated[GameData, Depends(get_game)],
) -> dict[str, Any]:
    """Return a game's parsed settings, keyed the way `settings.json` keys them."""
    return game_data.settings.model_dump(mode="json", by_alias=True)


@router.get("/{game}/cards", response_model=CardListResponse)
async def get_cards(
    game_data: Annotated[GameData, Depends(get_game)],
    q: str = "",
    filter_args: Annotated[list[str] | None, Query(alias="filter")] = None,
    unique: bool = False,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> CardListResponse:
    """
    Search a game's cards.

    `q` accepts free text and the game's search prefixes. Each `filter`
    is an `attribute:value` pair; a value of "(none)" matches cards with
    the attribute blank. `unique` keeps one card per name and subtitle.
    """
    filters: dict[str, str] = {}
    for raw in filter_args or []:
        attribute, sep, value = raw.partition(":")
        if not sep or not attribute.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid filter {raw!r}, expected attribute:value",
            )
        filters[attribute.strip()] = value.strip()

    game_settings = game_data.settings
    cards = search_cards(
        game_data.catalog,
        q,
        filters,
        prefixes=game_settings.search_prefixes,
        delimiters=game_settings.attribute_delimiters,
    )
    if unique:
        cards = unique_printings(cards)
    if limit is not None:
        cards = cards[:limit]

    return CardListResponse(
        game=game_data.game,
        cards=[card.to_dict() for card in cards],
        count=len(cards),
    )


@router.get("/{game}/filters", response_model=FilterOptionsResponse)
async def get_filter_options(
    game_data: Annotated[GameData, Depends(get_game)],
) -> FilterOptionsResponse:
    """Distinct values of each filter attribute, naturally sorted."""
    game_settings = game_data.settings
    return FilterOptionsResponse(
        game=game_data.game,
        filters=filter_values(
            game_data.catalog,
            game_settings.filter_options,
            game_settings.attribute_delimiters,
        ),
    )
