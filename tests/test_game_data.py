"""Tests for game data loading and downloading."""

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from tcgbuilder.models.failure import GameDataError
from tcgbuilder.models.validation_rules import CountBound
from tcgbuilder.services.game_data import (
    download_game_data,
    fetch_game_data,
    list_games,
    load_game_data,
    parse_game_data,
)

BASE_URL = "https://games.example.com/games"


@pytest.fixture
def games_dir(
    tmp_path: Path, settings_document: dict[str, Any], card_records: list[dict[str, Any]]
) -> Path:
    """A games directory holding one game, "demo"."""
    game_dir = tmp_path / "demo"
    game_dir.mkdir()
    (game_dir / "settings.json").write_text(json.dumps(settings_document))
    (game_dir / "cards.json").write_text(json.dumps(card_records))
    return tmp_path


class TestParseGameData:
    def test_builds_snapshot(
        self, settings_document: dict[str, Any], card_records: list[dict[str, Any]]
    ) -> None:
        data = parse_game_data("demo", settings_document, card_records)

        assert data.game == "demo"
        assert data.settings.game_name == "Demo"
        assert len(data.catalog) == len(card_records)
        assert isinstance(data.rules[0], CountBound)

    def test_settings_must_be_an_object(self, card_records: list[dict[str, Any]]) -> None:
        with pytest.raises(GameDataError) as exc_info:
            parse_game_data("demo", ["not", "an", "object"], card_records)
        assert exc_info.value.status_code == 503

    def test_cards_must_be_a_list(self, settings_document: dict[str, Any]) -> None:
        with pytest.raises(GameDataError):
            parse_game_data("demo", settings_document, {"cards": []})

    def test_invalid_settings_values(self, card_records: list[dict[str, Any]]) -> None:
        with pytest.raises(GameDataError, match="not available"):
            parse_game_data("demo", {"addNValue": "lots"}, card_records)


class TestLoadGameData:
    def test_loads_from_directory(self, games_dir: Path) -> None:
        data = load_game_data("demo", games_dir)

        assert data.catalog.get("card-17") is not None

    def test_unknown_game(self, games_dir: Path) -> None:
        with pytest.raises(GameDataError) as exc_info:
            load_game_data("nope", games_dir)
        assert exc_info.value.status_code == 404

    def test_missing_cards_file(self, games_dir: Path) -> None:
        (games_dir / "demo" / "cards.json").unlink()

        with pytest.raises(GameDataError) as exc_info:
            load_game_data("demo", games_dir)
        assert exc_info.value.detail == "missing cards.json"

    def test_corrupt_json(self, games_dir: Path) -> None:
        (games_dir / "demo" / "settings.json").write_text("{oops")

        with pytest.raises(GameDataError) as exc_info:
            load_game_data("demo", games_dir)
        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize("game", ["../demo", "", ".hidden", "a/b"])
    def test_rejects_unsafe_identifiers(self, games_dir: Path, game: str) -> None:
        with pytest.raises(GameDataError, match="not available"):
            load_game_data(game, games_dir)


class TestListGames:
    def test_reads_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "manifest.json").write_text(json.dumps({"games": ["demo", "other", "../x"]}))

        assert list_games(tmp_path) == ["demo", "other"]

    def test_falls_back_to_directories(self, games_dir: Path) -> None:
        (games_dir / "empty").mkdir()

        assert list_games(games_dir) == ["demo"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list_games(tmp_path / "nowhere") == []

    def test_unreadable_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "manifest.json").write_text("not json")

        assert list_games(tmp_path) == []


class TestFetchGameData:
    @respx.mock
    async def test_fetches_both_documents(
        self, settings_document: dict[str, Any], card_records: list[dict[str, Any]]
    ) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(
            return_value=httpx.Response(200, json=settings_document)
        )
        respx.get(f"{BASE_URL}/demo/cards.json").mock(
            return_value=httpx.Response(200, json=card_records)
        )

        settings_doc, cards_doc = await fetch_game_data("demo", BASE_URL)

        assert settings_doc == settings_document
        assert cards_doc == card_records

    @respx.mock
    async def test_http_404_is_not_found(self, settings_document: dict[str, Any]) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(
            return_value=httpx.Response(200, json=settings_document)
        )
        respx.get(f"{BASE_URL}/demo/cards.json").mock(return_value=httpx.Response(404))

        with pytest.raises(GameDataError) as exc_info:
            await fetch_game_data("demo", BASE_URL)
        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "HTTP 404 fetching cards.json"

    @respx.mock
    async def test_server_error_is_unavailable(self) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(return_value=httpx.Response(500))

        with pytest.raises(GameDataError) as exc_info:
            await fetch_game_data("demo", BASE_URL)
        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_transport_error(self) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        with pytest.raises(GameDataError, match="not available"):
            await fetch_game_data("demo", BASE_URL)

    @respx.mock
    async def test_non_json_body(self) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(
            return_value=httpx.Response(200, content=b"<html></html>")
        )

        with pytest.raises(GameDataError) as exc_info:
            await fetch_game_data("demo", BASE_URL)
        assert exc_info.value.detail == "settings.json is not valid JSON"

    @respx.mock
    async def test_download_writes_files(
        self,
        tmp_path: Path,
        settings_document: dict[str, Any],
        card_records: list[dict[str, Any]],
    ) -> None:
        respx.get(f"{BASE_URL}/demo/settings.json").mock(
            return_value=httpx.Response(200, json=settings_document)
        )
        respx.get(f"{BASE_URL}/demo/cards.json").mock(
            return_value=httpx.Response(200, json=card_records)
        )

        game_dir = await download_game_data("demo", tmp_path, BASE_URL)

        assert game_dir == tmp_path / "demo"
        assert load_game_data("demo", tmp_path).catalog.get("card-42") is not None
