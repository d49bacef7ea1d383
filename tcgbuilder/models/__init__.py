from tcgbuilder.models.card import Card, Catalog, Orientation
from tcgbuilder.models.deck import Deck, DeckEntry, DeckGroup, SavedDeck
from tcgbuilder.models.failure import (
    ApiResponse,
    DeckImportError,
    ExportDisabledError,
    FailureDetail,
    FailureKind,
    GameDataError,
    KnownError,
    OutcomeType,
)
from tcgbuilder.models.game_settings import (
    DeckValidationConfig,
    ExportOptions,
    GameSettings,
    OctgnConfig,
    Section,
    SortSpec,
)
from tcgbuilder.models.validation_rules import (
    AttributeBound,
    BanList,
    CopyLimit,
    CountBound,
    DeckLine,
    PerCardLimit,
    ValidationRule,
    compile_rules,
)

__all__ = [
    "ApiResponse",
    "AttributeBound",
    "BanList",
    "Card",
    "Catalog",
    "CopyLimit",
    "CountBound",
    "Deck",
    "DeckEntry",
    "DeckGroup",
    "DeckImportError",
    "DeckLine",
    "DeckValidationConfig",
    "ExportDisabledError",
    "ExportOptions",
    "FailureDetail",
    "FailureKind",
    "GameDataError",
    "GameSettings",
    "KnownError",
    "OctgnConfig",
    "Orientation",
    "OutcomeType",
    "PerCardLimit",
    "SavedDeck",
    "Section",
    "SortSpec",
    "ValidationRule",
    "compile_rules",
]
