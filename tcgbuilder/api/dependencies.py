"""Shared FastAPI dependencies."""

from tcgbuilder.services.game_data import GameData, get_game_data


def get_game(game: str) -> GameData:
    """
    Resolve the `{game}` path parameter to loaded game data.

    Raises GameDataError (rendered as 404) for unknown games. Tests
    override this dependency with an in-memory game.
    """
    return get_game_data(game)
