"""
Card search service.

Filters a game's catalog by a free-text query plus dropdown-style
attribute filters.

Query syntax:
- Plain words match the card name (case-insensitive substring)
- A configured prefix followed by a value matches that attribute:
    t:Creature   t:"Legendary Creature"   t:(Legendary Creature)
- `none` or `(none)` as a prefixed value matches cards where the
  attribute is missing or blank:
    sub:none

All criteria are ANDed, including several criteria on the same attribute.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from tcgbuilder.config import NONE_FILTER
from tcgbuilder.models.card import Card, Catalog, attribute_values, is_blank, value_matches

logger = logging.getLogger(__name__)

_BLANK_VALUES = frozenset({"none", "(none)"})


@dataclass(frozen=True)
class SearchCriterion:
    """One parsed query term."""

    attribute: str
    value: str
    blank: bool = False  # attribute must be missing/blank; value is ignored


def parse_search_query(
    query: str, prefixes: Mapping[str, str] | None = None
) -> list[SearchCriterion]:
    """
    Parse a query string into criteria.

    Args:
        query: Raw search text
        prefixes: {prefix: attribute name}, e.g. {"t:": "Type"}

    Returns:
        List of criteria. Empty for an empty or whitespace query.
    """
    if not query or not query.strip():
        return []

    prefixes = prefixes or {}
    by_prefix = {prefix.lower(): attribute for prefix, attribute in prefixes.items() if prefix}

    criteria: list[SearchCriterion] = []
    for match in _build_query_pattern(by_prefix).finditer(query):
        prefix = match.group("prefix")
        if prefix is not None:
            value = (
                match.group("quoted") or match.group("paren") or match.group("bare") or ""
            ).strip()
            attribute = by_prefix[prefix.lower()]
            if value.lower() in _BLANK_VALUES:
                criteria.append(SearchCriterion(attribute=attribute, value="", blank=True))
            elif value:
                criteria.append(SearchCriterion(attribute=attribute, value=value))
        else:
            word = match.group("word").strip()
            if word:
                criteria.append(SearchCriterion(attribute="name", value=word))

    return criteria


def _build_query_pattern(by_prefix: Mapping[str, str]) -> re.Pattern[str]:
    if not by_prefix:
        return re.compile(r"(?P<prefix>(?!))?(?P<word>\S+)")

    # Longest first so "st:" is not shadowed by "t:"
    alternation = "|".join(re.escape(p) for p in sorted(by_prefix, key=len, reverse=True))
    return re.compile(
        rf"(?:\s*(?P<prefix>{alternation})\s*"
        r'(?:"(?P<quoted>[^"]+)"|\((?P<paren>[^)]+)\)|(?P<bare>\S+)))'
        r"|(?P<word>\S+)",
        re.IGNORECASE,
    )


def matches_criterion(
    card: Card,
    criterion: SearchCriterion,
    delimiters: Mapping[str, str] | None = None,
) -> bool:
    """Check one query criterion against a card."""
    value = card.get_attribute(criterion.attribute)
    if criterion.blank:
        return is_blank(value)

    delimiter = (delimiters or {}).get(criterion.attribute)
    needle = criterion.value.lower()
    return any(needle in candidate.lower() for candidate in attribute_values(value, delimiter))


def matches_filters(
    card: Card,
    filters: Mapping[str, Any],
    delimiters: Mapping[str, str] | None = None,
) -> bool:
    """
    Check dropdown filters against a card.

    A filter value of None or "" means "any". The sentinel "(none)" requires
    the attribute to be missing or blank. Anything else must match exactly.
    """
    delimiters = delimiters or {}
    for attribute, expected in filters.items():
        if expected is None or expected == "":
            continue
        value = card.get_attribute(attribute)
        if expected == NONE_FILTER:
            if not is_blank(value):
                return False
        elif not value_matches(value, expected, delimiters.get(attribute)):
            return False
    return True


def search_cards(
    catalog: Catalog | Iterable[Card],
    query: str = "",
    filters: Mapping[str, Any] | None = None,
    prefixes: Mapping[str, str] | None = None,
    delimiters: Mapping[str, str] | None = None,
) -> list[Card]:
    """
    Return the cards matching a query and attribute filters, in catalog order.

    An empty query and no filters return the whole catalog.
    """
    criteria = parse_search_query(query, prefixes)
    filters = filters or {}

    results = [
        card
        for card in catalog
        if all(matches_criterion(card, c, delimiters) for c in criteria)
        and matches_filters(card, filters, delimiters)
    ]

    logger.debug(
        "Search %r with %d criteria and %d filters matched %d cards",
        query,
        len(criteria),
        len(filters),
        len(results),
    )
    return results


def unique_printings(cards: Iterable[Card]) -> list[Card]:
    """
    Keep one card per (name, subtitle) pair, the first seen.

    Display only: deck contents and grouping never go through this.
    """
    seen: set[tuple[str, str]] = set()
    unique: list[Card] = []
    for card in cards:
        if card.printing_key in seen:
            continue
        seen.add(card.printing_key)
        unique.append(card)
    return unique


def filter_values(
    catalog: Catalog | Iterable[Card],
    attributes: Iterable[str],
    delimiters: Mapping[str, str] | None = None,
) -> dict[str, list[str]]:
    """
    Collect the dropdown options for each filter attribute.

    Returns:
        {attribute: distinct non-blank values}, naturally sorted
        ("2" before "10") and case-insensitive.
    """
    delimiters = delimiters or {}
    attributes = list(attributes)
    options: dict[str, set[str]] = {attribute: set() for attribute in attributes}

    for card in catalog:
        for attribute in attributes:
            for candidate in attribute_values(
                card.get_attribute(attribute), delimiters.get(attribute)
            ):
                options[attribute].add(candidate)

    return {attribute: sorted(values, key=_natural_key) for attribute, values in options.items()}


def _natural_key(value: str) -> tuple[tuple[int, Any], ...]:
    parts = re.split(r"(\d+)", value.casefold())
    return tuple((0, int(part)) if part.isdigit() else (1, part) for part in parts if part)
