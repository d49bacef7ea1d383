"""
Compact deck encoding for share links.

Deck format:
    <quantity>:<index>,<index>;<quantity>:<index>,...

Cards are identified by their catalog `index` (a small integer) instead of
their identifier to keep URLs short. Cards sharing a quantity form one
bucket; indices within a bucket are ascending and buckets are ordered by
their lowest index. Decoding ignores bucket order.

Override format (user section assignments):
    <index>:<url-escaped section name>,<index>:<section>,...

Indices resolve against the catalog loaded at decode time. Unknown
indices are dropped and malformed segments are skipped: decoding never
raises.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

from tcgbuilder.models.card import Catalog
from tcgbuilder.services.grouping import GroupingConfig, group_deck, iter_export_order

logger = logging.getLogger(__name__)

# Share-link query parameters
GAME_PARAM = "game"
DECK_PARAM = "deck"
GROUPS_PARAM = "groups"


def encode_deck(
    deck: Mapping[str, int],
    catalog: Catalog,
    config: GroupingConfig,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """
    Encode a deck as a compact string.

    Cards missing from the catalog cannot be encoded and are left out.
    Buckets are ordered by the lowest index they hold, not by quantity, so
    {index 1: 3, index 5: 1} encodes as "3:1;1:5". Decoding ignores bucket
    order either way.

    Example:
        {"card-17": 3, "card-42": 1} with indices 7 and 12 -> "3:7;1:12"
    """
    buckets: dict[int, list[int]] = {}
    for _, entry in iter_export_order(group_deck(deck, catalog, config, overrides)):
        buckets.setdefault(entry.quantity, []).append(entry.card.index)

    ordered = sorted(
        ((quantity, sorted(indices)) for quantity, indices in buckets.items()),
        key=lambda bucket: (bucket[1][0], bucket[0]),
    )
    return ";".join(
        f"{quantity}:{','.join(str(index) for index in indices)}" for quantity, indices in ordered
    )


def decode_deck(code: str | None, catalog: Catalog) -> dict[str, int]:
    """
    Decode a deck string back to {card_id: quantity}.

    Returns an empty deck for empty or garbage input.
    """
    deck: dict[str, int] = {}
    if not code or not isinstance(code, str):
        return deck

    for bucket in code.split(";"):
        quantity_part, sep, indices_part = bucket.partition(":")
        if not sep:
            continue
        quantity = _parse_int(quantity_part)
        if quantity is None or quantity <= 0:
            continue
        for token in indices_part.split(","):
            index = _parse_int(token)
            if index is None:
                continue
            card = catalog.get_by_index(index)
            if card is None:
                logger.debug("Dropping unknown card index %d from shared deck", index)
                continue
            deck[card.id] = quantity

    return deck


def encode_overrides(overrides: Mapping[str, str] | None, catalog: Catalog) -> str:
    """Encode {card_id: section} as "index:section" pairs, ordered by index."""
    pairs: list[tuple[int, str]] = []
    for card_id, section in (overrides or {}).items():
        card = catalog.get(card_id)
        if card is None or not section:
            continue
        pairs.append((card.index, section))

    return ",".join(f"{index}:{quote(section, safe='')}" for index, section in sorted(pairs))


def decode_overrides(code: str | None, catalog: Catalog) -> dict[str, str]:
    """Decode an override string back to {card_id: section}."""
    overrides: dict[str, str] = {}
    if not code or not isinstance(code, str):
        return overrides

    for pair in code.split(","):
        index_part, sep, section_part = pair.partition(":")
        if not sep:
            continue
        index = _parse_int(index_part)
        section = unquote(section_part).strip()
        if index is None or not section:
            continue
        card = catalog.get_by_index(index)
        if card is None:
            logger.debug("Dropping override for unknown card index %d", index)
            continue
        overrides[card.id] = section

    return overrides


# =============================================================================
# SHARE LINKS
# =============================================================================


@dataclass(frozen=True)
class ShareParams:
    """Raw share-link parameters, not yet decoded against a catalog."""

    game: str = ""
    deck: str = ""
    groups: str = ""


@dataclass
class SharedDeck:
    """A deck decoded from a share link."""

    game: str
    cards: dict[str, int] = field(default_factory=dict)
    overrides: dict[str, str] = field(default_factory=dict)


def build_share_query(
    game: str,
    deck: Mapping[str, int],
    catalog: Catalog,
    config: GroupingConfig,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """Build the query string of a share link (without the leading "?")."""
    params = {GAME_PARAM: game, DECK_PARAM: encode_deck(deck, catalog, config, overrides)}
    groups = encode_overrides(overrides, catalog)
    if groups:
        params[GROUPS_PARAM] = groups
    return urlencode(params)


def parse_share_query(url_or_query: str | None) -> ShareParams:
    """
    Extract share parameters from a full URL or a bare query string.

    Missing parameters come back as empty strings.
    """
    if not url_or_query:
        return ShareParams()

    query = url_or_query
    if "://" in url_or_query or url_or_query.startswith("/"):
        query = urlsplit(url_or_query).query
    query = query.lstrip("?")

    values = parse_qs(query, keep_blank_values=True)

    def first(name: str) -> str:
        return values.get(name, [""])[0].strip()

    return ShareParams(game=first(GAME_PARAM), deck=first(DECK_PARAM), groups=first(GROUPS_PARAM))


def decode_shared_deck(params: ShareParams, catalog: Catalog) -> SharedDeck:
    """Decode share parameters against the game's catalog."""
    return SharedDeck(
        game=params.game,
        cards=decode_deck(params.deck, catalog),
        overrides=decode_overrides(params.groups, catalog),
    )


def _parse_int(text: str) -> int | None:
    text = text.strip()
    if not text or not text.lstrip("-").isdigit() or text.count("-") > 1:
        return None
    try:
        return int(text)
    except ValueError:
        return None
