"""Tests for game API endpoints."""

import json
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from tcgbuilder.api.dependencies import get_game
from tcgbuilder.config import settings
from tcgbuilder.main import app
from tcgbuilder.models.failure import GameDataError
from tcgbuilder.services.game_data import GameData


@pytest.fixture
async def client(game_data: GameData):
    """Async test client serving the in-memory "demo" game."""

    def override_get_game(game: str) -> GameData:
        if game != game_data.game:
            raise GameDataError(game, "no data directory")
        return game_data

    app.dependency_overrides[get_game] = override_get_game

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestListGames:
    async def test_lists_manifest_games(
        self, client: AsyncClient, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "manifest.json").write_text(json.dumps({"games": ["demo", "other"]}))
        monkeypatch.setattr(settings, "games_dir", tmp_path)

        response = await client.get("/games")

        assert response.status_code == 200
        assert response.json() == {"games": ["demo", "other"], "count": 2}


class TestGameSettings:
    async def test_returns_settings_with_source_keys(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/settings")

        assert response.status_code == 200
        data = response.json()
        assert data["gameName"] == "Demo"
        assert data["deckValidation"]["minCards"] == 10
        assert data["exportOptions"]["json"] is True

    async def test_unknown_game_is_404(self, client: AsyncClient) -> None:
        response = await client.get("/games/nope/settings")

        assert response.status_code == 404
        data = response.json()
        assert data["outcome"] == "known_failure"
        assert data["failure"]["kind"] == "not_found"


class TestCardSearch:
    async def test_whole_catalog(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/cards")

        assert response.status_code == 200
        assert response.json()["count"] == 10

    async def test_query_with_prefix(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/cards", params={"q": "t:Creature c:Red"})

        data = response.json()
        assert [card["id"] for card in data["cards"]] == ["card-17", "card-20"]

    async def test_filters(self, client: AsyncClient) -> None:
        response = await client.get(
            "/games/demo/cards", params=[("filter", "Type:Creature"), ("filter", "Color:Green")]
        )

        data = response.json()
        assert [card["id"] for card in data["cards"]] == ["card-08", "card-09", "card-11"]

    async def test_unique_and_limit(self, client: AsyncClient) -> None:
        response = await client.get(
            "/games/demo/cards", params={"q": "grizzly", "unique": "true", "limit": 1}
        )

        data = response.json()
        assert data["count"] == 1
        assert data["cards"][0]["id"] == "card-08"

    async def test_malformed_filter(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/cards", params={"filter": "Creature"})

        assert response.status_code == 400


class TestFilterOptions:
    async def test_filter_values(self, client: AsyncClient) -> None:
        response = await client.get("/games/demo/filters")

        assert response.status_code == 200
        filters = response.json()["filters"]
        assert filters["Color"] == ["Blue", "Green", "Red"]
        assert filters["Keywords"] == ["Flying", "Haste"]


class TestUnexpectedErrors:
    async def test_rendered_as_unknown_failure(self) -> None:
        """An unhandled exception comes back as the unknown-failure envelope."""

        def broken_get_game(game: str) -> GameData:
            raise RuntimeError("catalog exploded")

        app.dependency_overrides[get_game] = broken_get_game
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/games/demo/settings")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        data = response.json()
        assert data["outcome"] == "unknown_failure"
        assert data["failure"]["kind"] == "unknown"
        assert data["failure"]["detail"] == "RuntimeError"
