"""
Download a game's data files.

Fetches `settings.json` and `cards.json` from the games origin into the
local games directory and clears the in-process game cache.

Usage:
    python -m tcgbuilder.jobs.download_game <game> [<game> ...]
"""

import argparse
import asyncio
import logging
from pathlib import Path

from tcgbuilder.models.failure import GameDataError
from tcgbuilder.services.game_data import clear_game_cache, download_game_data

logger = logging.getLogger(__name__)


async def run_download(
    games: list[str],
    games_dir: Path | None = None,
    base_url: str | None = None,
) -> dict[str, bool]:
    """
    Download each game in turn.

    Returns:
        {game: downloaded}. A failed game does not stop the others.
    """
    results: dict[str, bool] = {}
    for game in games:
        logger.info("Downloading game data for %s...", game)
        try:
            path = await download_game_data(game, games_dir, base_url)
        except GameDataError as e:
            logger.error("Failed to download %s: %s", game, e.detail)
            results[game] = False
            continue
        logger.info("Downloaded %s to %s", game, path)
        results[game] = True

    clear_game_cache()
    return results


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Download game settings and card data.")
    parser.add_argument("games", nargs="+", help="Game identifiers")
    parser.add_argument("--games-dir", type=Path, default=None, help="Local games directory")
    parser.add_argument("--base-url", default=None, help="Games origin URL")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    results = asyncio.run(run_download(args.games, args.games_dir, args.base_url))
    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    raise SystemExit(main())
