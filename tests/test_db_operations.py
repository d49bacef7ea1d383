"""Tests for saved deck CRUD operations."""

from pathlib import Path

import pytest
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tcgbuilder.config import settings
from tcgbuilder.db.database import init_db, make_engine
from tcgbuilder.db.operations import (
    delete_saved_deck,
    get_saved_deck,
    get_saved_deck_by_index,
    list_saved_decks,
    save_deck,
    saved_deck_to_model,
)
from tcgbuilder.models.deck import SavedDeck


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


class TestSaveDeck:
    async def test_save_new_deck(self, session: AsyncSession) -> None:
        """Can save a new deck."""
        deck = await save_deck(session, "demo", "Burn", {"card-17": 3, "card-42": 4})

        assert deck.id is not None
        assert deck.game == "demo"
        assert deck.cards == {"card-17": 3, "card-42": 4}
        assert deck.overrides == {}

    async def test_save_overwrites_same_name(self, session: AsyncSession) -> None:
        """Saving under an existing name replaces the deck (last write wins)."""
        first = await save_deck(session, "demo", "Burn", {"card-17": 3})
        second = await save_deck(session, "demo", "Burn", {"card-42": 2})

        assert second.id == first.id
        assert (await get_saved_deck(session, "demo", "Burn")).cards == {"card-42": 2}
        assert len(await list_saved_decks(session, "demo")) == 1

    async def test_names_are_per_game(self, session: AsyncSession) -> None:
        await save_deck(session, "demo", "Burn", {"card-17": 3})
        await save_deck(session, "other", "Burn", {"x": 1})

        assert (await get_saved_deck(session, "demo", "Burn")).cards == {"card-17": 3}
        assert (await get_saved_deck(session, "other", "Burn")).cards == {"x": 1}

    async def test_cleans_quantities_and_overrides(self, session: AsyncSession) -> None:
        deck = await save_deck(
            session,
            "demo",
            "Burn",
            {"card-17": 3, "card-42": 0},
            overrides={"card-17": "Sideboard", "card-42": "Main", "card-03": ""},
        )

        assert deck.cards == {"card-17": 3}
        assert deck.overrides == {"card-17": "Sideboard"}


class TestGetSavedDecks:
    async def test_get_nonexistent(self, session: AsyncSession) -> None:
        """Returns None for unknown deck."""
        assert await get_saved_deck(session, "demo", "nope") is None

    async def test_list_in_creation_order(self, session: AsyncSession) -> None:
        for name in ("Zoo", "Aggro", "Mill"):
            await save_deck(session, "demo", name, {"card-17": 1})

        decks = await list_saved_decks(session, "demo")

        assert [d.name for d in decks] == ["Zoo", "Aggro", "Mill"]

    async def test_get_by_index(self, session: AsyncSession) -> None:
        for name in ("Zoo", "Aggro", "Mill"):
            await save_deck(session, "demo", name, {"card-17": 1})

        deck = await get_saved_deck_by_index(session, "demo", 1)

        assert deck is not None
        assert deck.name == "Aggro"
        assert await get_saved_deck_by_index(session, "demo", 3) is None
        assert await get_saved_deck_by_index(session, "demo", -1) is None


class TestDeleteSavedDeck:
    async def test_delete_existing(self, session: AsyncSession) -> None:
        await save_deck(session, "demo", "Burn", {"card-17": 3})

        assert await delete_saved_deck(session, "demo", "Burn") is True
        assert await get_saved_deck(session, "demo", "Burn") is None

    async def test_delete_nonexistent(self, session: AsyncSession) -> None:
        assert await delete_saved_deck(session, "demo", "nope") is False


class TestSavedDeckToModel:
    async def test_converts_to_domain_model(self, session: AsyncSession) -> None:
        deck = await save_deck(
            session, "demo", "Burn", {"card-17": 3}, overrides={"card-17": "Sideboard"}
        )

        model = saved_deck_to_model(deck)

        assert model == SavedDeck(
            game="demo", name="Burn", cards={"card-17": 3}, overrides={"card-17": "Sideboard"}
        )


class TestMakeEngine:
    def test_module_engine_builds_on_import(self) -> None:
        """The application engine is created when the module is imported."""
        from tcgbuilder.db import database

        assert database.engine.url == make_url(settings.database_url)

    def test_sqlite_url(self) -> None:
        engine = make_engine("sqlite+aiosqlite:///:memory:")

        assert engine.url.get_backend_name() == "sqlite"


class TestInitDb:
    async def test_creates_sqlite_directory(self, tmp_path: Path) -> None:
        """A file database in a missing directory is created on startup."""
        db_file = tmp_path / "data" / "decks.db"
        engine = make_engine(f"sqlite+aiosqlite:///{db_file}")

        await init_db(engine)

        async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with async_session() as session:
            await save_deck(session, "demo", "Burn", {"card-42": 4})
            await session.commit()
        await engine.dispose()

        assert db_file.is_file()
