"""
Saved deck API endpoints.

Named decks stored per game. Saving under an existing name overwrites it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from tcgbuilder.db import (
    delete_saved_deck,
    get_saved_deck,
    get_saved_deck_by_index,
    list_saved_decks,
    save_deck,
    saved_deck_to_model,
)
from tcgbuilder.db.database import get_session
from tcgbuilder.models.db import SavedDeckDB

router = APIRouter(prefix="/games/{game}/saved", tags=["saved decks"])


class SavedDeckRequest(BaseModel):
    """Request model for saving a deck."""

    cards: dict[str, int] = Field(
        ...,
        description="Map of card identifiers to quantities",
        examples=[{"card-17": 3, "card-42": 1}],
    )
    overrides: dict[str, str] = Field(default_factory=dict)


class SavedDeckResponse(BaseModel):
    """Response model for a saved deck."""

    game: str
    name: str
    cards: dict[str, int] = Field(default_factory=dict)
    overrides: dict[str, str] = Field(default_factory=dict)
    total_cards: int = 0


class SavedDeckListResponse(BaseModel):
    """Response model for a list of saved decks."""

    game: str
    decks: list[SavedDeckResponse]
    count: int


def _to_response(deck: SavedDeckDB) -> SavedDeckResponse:
    model = saved_deck_to_model(deck)
    return SavedDeckResponse(
        game=model.game,
        name=model.name,
        cards=model.cards,
        overrides=model.overrides,
        total_cards=sum(model.cards.values()),
    )


def _not_found(game: str, name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Saved deck '{name}' not found for game '{game}'",
    )


@router.get("", response_model=SavedDeckListResponse)
async def get_saved_decks(
    game: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SavedDeckListResponse:
    """List a game's saved decks in the order they were first saved."""
    decks = [_to_response(d) for d in await list_saved_decks(session, game)]
    return SavedDeckListResponse(game=game, decks=decks, count=len(decks))


@router.get("/index/{position}", response_model=SavedDeckResponse)
async def get_saved_deck_at(
    game: str,
    position: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SavedDeckResponse:
    """Get the saved deck at a position in the saved-deck list."""
    deck = await get_saved_deck_by_index(session, game, position)
    if not deck:
        raise _not_found(game, f"#{position}")
    return _to_response(deck)


@router.get("/{name}", response_model=SavedDeckResponse)
async def get_saved_deck_by_name(
    game: str,
    name: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SavedDeckResponse:
    """
    Get a saved deck by name.

    Returns 404 if deck not found.
    """
    deck = await get_saved_deck(session, game, name)
    if not deck:
        raise _not_found(game, name)
    return _to_response(deck)


@router.put("/{name}", response_model=SavedDeckResponse)
async def put_saved_deck(
    game: str,
    name: str,
    request: SavedDeckRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SavedDeckResponse:
    """Save a deck, replacing any deck already saved under this name."""
    if not name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deck name must not be blank",
        )
    deck = await save_deck(session, game, name, request.cards, request.overrides)
    return _to_response(deck)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_saved_deck(
    game: str,
    name: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> Response:
    """Delete a saved deck. Returns 404 if deck not found."""
    deleted = await delete_saved_deck(session, game, name)
    if not deleted:
        raise _not_found(game, name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
