from tcgbuilder.api.decks import router as decks_router
from tcgbuilder.api.games import router as games_router
from tcgbuilder.api.health import router as health_router
from tcgbuilder.api.saved_decks import router as saved_decks_router

__all__ = [
    "decks_router",
    "games_router",
    "health_router",
    "saved_decks_router",
]
