"""
TCGBuilder services.

Search, grouping, validation, encoding and export of decks.
"""

from tcgbuilder.services.card_search import (
    filter_values,
    parse_search_query,
    search_cards,
    unique_printings,
)
from tcgbuilder.services.deck_codec import (
    build_share_query,
    decode_deck,
    decode_overrides,
    decode_shared_deck,
    encode_deck,
    encode_overrides,
    parse_share_query,
)
from tcgbuilder.services.deck_export import (
    ImportedDeck,
    format_deck_json,
    format_deck_octgn,
    format_deck_text,
    import_deck_json,
    import_deck_octgn,
)
from tcgbuilder.services.deck_validator import validate_deck
from tcgbuilder.services.grouping import GroupingConfig, group_deck

__all__ = [
    "GroupingConfig",
    "ImportedDeck",
    "build_share_query",
    "decode_deck",
    "decode_overrides",
    "decode_shared_deck",
    "encode_deck",
    "encode_overrides",
    "filter_values",
    "format_deck_json",
    "format_deck_octgn",
    "format_deck_text",
    "group_deck",
    "import_deck_json",
    "import_deck_octgn",
    "parse_search_query",
    "search_cards",
    "unique_printings",
    "validate_deck",
]
