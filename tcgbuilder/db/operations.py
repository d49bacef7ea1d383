"""
Saved deck CRUD operations.

Deck names are unique per game. Saving under an existing name replaces
the stored deck (last write wins).
"""

import logging
from collections.abc import Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tcgbuilder.models.db import SavedDeckDB
from tcgbuilder.models.deck import SavedDeck, clean_deck_mapping

logger = logging.getLogger(__name__)


async def get_saved_deck(session: AsyncSession, game: str, name: str) -> SavedDeckDB | None:
    """
    Get a saved deck by name.

    Returns None if no deck with this name exists for the game.
    """
    result = await session.execute(
        select(SavedDeckDB).where(SavedDeckDB.game == game, SavedDeckDB.name == name)
    )
    return result.scalar_one_or_none()


async def list_saved_decks(session: AsyncSession, game: str) -> list[SavedDeckDB]:
    """Get all saved decks for a game in the order they were first saved."""
    result = await session.execute(
        select(SavedDeckDB).where(SavedDeckDB.game == game).order_by(SavedDeckDB.id)
    )
    return list(result.scalars().all())


async def get_saved_deck_by_index(
    session: AsyncSession, game: str, position: int
) -> SavedDeckDB | None:
    """
    Get the saved deck at a position in creation order.

    Returns None for a negative or out-of-range position.
    """
    if position < 0:
        return None
    result = await session.execute(
        select(SavedDeckDB)
        .where(SavedDeckDB.game == game)
        .order_by(SavedDeckDB.id)
        .offset(position)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def save_deck(
    session: AsyncSession,
    game: str,
    name: str,
    cards: Mapping[str, int],
    overrides: Mapping[str, str] | None = None,
) -> SavedDeckDB:
    """
    Insert or replace a saved deck.

    Non-positive quantities are dropped. Overrides are kept only for cards
    still in the deck.
    """
    cleaned = clean_deck_mapping(cards)
    kept_overrides = {
        card_id: section
        for card_id, section in (overrides or {}).items()
        if card_id in cleaned and section
    }

    existing = await get_saved_deck(session, game, name)
    if existing:
        existing.cards = cleaned
        existing.overrides = kept_overrides
        await session.flush()
        logger.info("Replaced saved deck %r for %s", name, game)
        return existing

    deck = SavedDeckDB(game=game, name=name, cards=cleaned, overrides=kept_overrides)
    session.add(deck)
    await session.flush()
    logger.info("Saved new deck %r for %s", name, game)
    return deck


async def delete_saved_deck(session: AsyncSession, game: str, name: str) -> bool:
    """
    Delete a saved deck.

    Returns True if deleted, False if not found.
    """
    deck = await get_saved_deck(session, game, name)
    if not deck:
        return False

    await session.delete(deck)
    return True


def saved_deck_to_model(deck: SavedDeckDB) -> SavedDeck:
    """Convert a database saved deck to a domain model."""
    return SavedDeck(
        game=deck.game,
        name=deck.name,
        cards=dict(deck.cards or {}),
        overrides=dict(deck.overrides or {}),
    )
