"""
Game data loading.

A game is described by two JSON documents: `settings.json` (grouping,
search, validation and export configuration) and `cards.json` (the card
catalog). They are read from a local games directory, or downloaded from
the remote games origin, and combined into one immutable `GameData`
snapshot. Consumers only ever see a fully loaded snapshot.
"""

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from tcgbuilder.config import settings as app_settings
from tcgbuilder.models.card import Catalog
from tcgbuilder.models.failure import GameDataError
from tcgbuilder.models.game_settings import GameSettings
from tcgbuilder.models.validation_rules import ValidationRule, compile_rules

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
CARDS_FILE = "cards.json"
MANIFEST_FILE = "manifest.json"

_GAME_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass(frozen=True)
class GameData:
    """Everything loaded for one game."""

    game: str
    settings: GameSettings
    catalog: Catalog
    rules: tuple[ValidationRule, ...]

    @property
    def images_dir(self) -> Path:
        return Path(app_settings.games_dir) / self.game / "images"


def parse_game_data(game: str, settings_doc: Any, cards_doc: Any) -> GameData:
    """
    Build a GameData snapshot from the two decoded JSON documents.

    Raises:
        GameDataError: If either document has the wrong shape
    """
    if not isinstance(settings_doc, dict):
        raise GameDataError(game, f"{SETTINGS_FILE} must contain a JSON object", status_code=503)
    if not isinstance(cards_doc, list):
        raise GameDataError(game, f"{CARDS_FILE} must contain a JSON array", status_code=503)

    try:
        game_settings = GameSettings.model_validate(settings_doc)
    except ValidationError as e:
        raise GameDataError(game, f"invalid {SETTINGS_FILE}: {e}", status_code=503) from e

    catalog = Catalog.from_records(cards_doc)
    rules = compile_rules(game_settings)
    logger.info("Loaded %s: %d cards, %d validation rules", game, len(catalog), len(rules))
    return GameData(game=game, settings=game_settings, catalog=catalog, rules=rules)


def load_game_data(game: str, games_dir: Path | None = None) -> GameData:
    """
    Load a game from the local games directory.

    Raises:
        GameDataError: If the game is unknown or its files are unreadable
    """
    game_dir = _game_dir(game, games_dir)
    if not game_dir.is_dir():
        raise GameDataError(game, f"no data directory at {game_dir}")

    settings_doc = _read_json(game, game_dir / SETTINGS_FILE)
    cards_doc = _read_json(game, game_dir / CARDS_FILE)
    return parse_game_data(game, settings_doc, cards_doc)


@lru_cache(maxsize=16)
def _cached_game_data(game: str, games_dir: Path) -> GameData:
    return load_game_data(game, games_dir)


def get_game_data(game: str) -> GameData:
    """
    Get cached game data from the configured games directory.

    Cached after first load. Call `clear_game_cache` after replacing files.
    """
    return _cached_game_data(game, Path(app_settings.games_dir))


def clear_game_cache() -> None:
    _cached_game_data.cache_clear()


def list_games(games_dir: Path | None = None) -> list[str]:
    """
    List available games from `manifest.json`.

    Falls back to the sub-directories holding a settings file when there is
    no manifest.
    """
    root = Path(games_dir or app_settings.games_dir)
    manifest = root / MANIFEST_FILE
    if manifest.is_file():
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Could not read games manifest %s: %s", manifest, e)
            return []
        games = data.get("games", []) if isinstance(data, dict) else []
        return [str(g) for g in games if isinstance(g, str) and _GAME_ID_PATTERN.match(g)]

    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if (p / SETTINGS_FILE).is_file())


async def fetch_game_data(
    game: str,
    base_url: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> tuple[dict[str, Any], list[Any]]:
    """
    Download a game's settings and card documents.

    Both documents are fetched before anything is returned, so callers can
    swap the new data in atomically.

    Returns:
        (settings document, cards document)

    Raises:
        GameDataError: If a request fails or a document is not JSON
    """
    _check_game_id(game)
    base = (base_url or app_settings.games_base_url).rstrip("/")

    async def fetch(http: httpx.AsyncClient, filename: str) -> Any:
        url = f"{base}/{game}/{filename}"
        try:
            response = await http.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise GameDataError(
                game,
                f"HTTP {status} fetching {filename}",
                status_code=404 if status == 404 else 503,
            ) from e
        except httpx.RequestError as e:
            raise GameDataError(game, f"failed to fetch {filename}: {e}", status_code=503) from e
        except ValueError as e:
            raise GameDataError(game, f"{filename} is not valid JSON", status_code=503) from e

    if client is not None:
        settings_doc = await fetch(client, SETTINGS_FILE)
        cards_doc = await fetch(client, CARDS_FILE)
    else:
        async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as http:
            settings_doc = await fetch(http, SETTINGS_FILE)
            cards_doc = await fetch(http, CARDS_FILE)

    # Validate shapes before handing the documents out
    parse_game_data(game, settings_doc, cards_doc)
    return settings_doc, cards_doc


async def download_game_data(
    game: str,
    games_dir: Path | None = None,
    base_url: str | None = None,
) -> Path:
    """
    Download a game's documents into the local games directory.

    Returns:
        The game's directory
    """
    settings_doc, cards_doc = await fetch_game_data(game, base_url)

    game_dir = _game_dir(game, games_dir)
    game_dir.mkdir(parents=True, exist_ok=True)
    (game_dir / SETTINGS_FILE).write_text(json.dumps(settings_doc, indent=2), encoding="utf-8")
    (game_dir / CARDS_FILE).write_text(json.dumps(cards_doc, indent=2), encoding="utf-8")
    return game_dir


def _game_dir(game: str, games_dir: Path | None) -> Path:
    _check_game_id(game)
    return Path(games_dir or app_settings.games_dir) / game


def _check_game_id(game: str) -> None:
    if not _GAME_ID_PATTERN.match(game) or ".." in game:
        raise GameDataError(game, "invalid game identifier")


def _read_json(game: str, path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise GameDataError(game, f"missing {path.name}") from e
    except (OSError, ValueError) as e:
        raise GameDataError(game, f"could not read {path.name}: {e}", status_code=503) from e
