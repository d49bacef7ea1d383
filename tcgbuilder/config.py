from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TCGBUILDER_")

    app_name: str = "TCGBuilder"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./tcgbuilder.db"

    # Local copy of the per-game JSON assets:
    #   <games_dir>/manifest.json
    #   <games_dir>/<game>/settings.json, cards.json, images/
    games_dir: Path = Path("games")

    # Remote origin serving the same layout (used by the download job)
    games_base_url: str = "https://tcgbuilder.net/games"


settings = Settings()


# =============================================================================
# GROUPING
# =============================================================================

# Group-by sentinel selecting rule-based section grouping
OCTGN_GROUP = "OCTGN"

# Fallback group for cards lacking the grouping attribute
OTHER_GROUP = "Other"

# Fallback section for cards matching no section rule
UNGROUPED_SECTION = "Ungrouped"

DEFAULT_GROUP_BY = "Type"

FALLBACK_GROUP_ORDER: tuple[str, ...] = ("Creatures", "Spells", "Lands", "Other")


# =============================================================================
# SEARCH / VALIDATION
# =============================================================================

# Filter value requiring a blank or missing attribute
NONE_FILTER = "(none)"

# Card attribute holding a per-card copy limit
DEFAULT_LIMIT_PROPERTY = "Limit"
