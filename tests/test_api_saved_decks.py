"""Tests for saved deck API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tcgbuilder.db.database import get_session
from tcgbuilder.main import app


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestPutSavedDeck:
    async def test_save_and_fetch(self, client: AsyncClient) -> None:
        response = await client.put(
            "/games/demo/saved/Burn",
            json={"cards": {"card-17": 3, "card-42": 1}, "overrides": {"card-42": "Sideboard"}},
        )

        assert response.status_code == 200
        assert response.json() == {
            "game": "demo",
            "name": "Burn",
            "cards": {"card-17": 3, "card-42": 1},
            "overrides": {"card-42": "Sideboard"},
            "total_cards": 4,
        }

        fetched = await client.get("/games/demo/saved/Burn")
        assert fetched.json()["cards"] == {"card-17": 3, "card-42": 1}

    async def test_save_overwrites(self, client: AsyncClient) -> None:
        await client.put("/games/demo/saved/Burn", json={"cards": {"card-17": 3}})
        await client.put("/games/demo/saved/Burn", json={"cards": {"card-42": 2}})

        response = await client.get("/games/demo/saved")

        data = response.json()
        assert data["count"] == 1
        assert data["decks"][0]["cards"] == {"card-42": 2}

    async def test_bad_quantities_and_stale_overrides_dropped(self, client: AsyncClient) -> None:
        response = await client.put(
            "/games/demo/saved/Burn",
            json={"cards": {"card-17": 3, "card-42": 0}, "overrides": {"card-42": "Sideboard"}},
        )

        data = response.json()
        assert data["cards"] == {"card-17": 3}
        assert data["overrides"] == {}

    async def test_blank_name(self, client: AsyncClient) -> None:
        response = await client.put("/games/demo/saved/%20", json={"cards": {"card-17": 1}})

        assert response.status_code == 400


class TestGetSavedDecks:
    async def test_list_is_per_game_in_save_order(self, client: AsyncClient) -> None:
        await client.put("/games/demo/saved/Zoo", json={"cards": {"card-08": 4}})
        await client.put("/games/demo/saved/Burn", json={"cards": {"card-42": 4}})
        await client.put("/games/other/saved/Elsewhere", json={"cards": {"x": 1}})

        response = await client.get("/games/demo/saved")

        data = response.json()
        assert data["game"] == "demo"
        assert [deck["name"] for deck in data["decks"]] == ["Zoo", "Burn"]

    async def test_by_index(self, client: AsyncClient) -> None:
        await client.put("/games/demo/saved/Zoo", json={"cards": {"card-08": 4}})
        await client.put("/games/demo/saved/Burn", json={"cards": {"card-42": 4}})

        response = await client.get("/games/demo/saved/index/1")

        assert response.status_code == 200
        assert response.json()["name"] == "Burn"

    async def test_index_out_of_range(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/saved/index/3")

        assert response.status_code == 404

    async def test_missing_deck(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/saved/Nothing")

        assert response.status_code == 404
        assert "Nothing" in response.json()["detail"]


class TestDeleteSavedDeck:
    async def test_delete(self, client: AsyncClient) -> None:
        await client.put("/games/demo/saved/Burn", json={"cards": {"card-42": 4}})

        response = await client.delete("/games/demo/saved/Burn")

        assert response.status_code == 204
        assert (await client.get("/games/demo/saved/Burn")).status_code == 404

    async def test_delete_missing(self, client: AsyncClient) -> None:
        response = await client.delete("/games/demo/saved/Burn")

        assert response.status_code == 404
