"""
Deck validation.

Evaluates a game's compiled rules against a deck and returns every
violation as a human-readable message. Validation is advisory: nothing
here blocks saving or exporting a deck, and nothing here raises for odd
deck or rule data.
"""

import logging
from collections.abc import Iterable, Mapping

from tcgbuilder.models.card import Catalog
from tcgbuilder.models.game_settings import GameSettings
from tcgbuilder.models.validation_rules import DeckLine, ValidationRule, compile_rules

logger = logging.getLogger(__name__)


def deck_lines(deck: Mapping[str, int], catalog: Catalog) -> list[DeckLine]:
    """Resolve deck entries against the catalog, keeping unknown cards."""
    lines: list[DeckLine] = []
    for card_id, quantity in deck.items():
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            continue
        lines.append(DeckLine(card_id=card_id, card=catalog.get(card_id), quantity=quantity))
    return lines


def validate_deck(
    deck: Mapping[str, int],
    catalog: Catalog,
    rules: Iterable[ValidationRule],
) -> list[str]:
    """
    Check a deck against a rule set.

    Rules are evaluated in the order given and all violations are
    collected; evaluation never stops at the first failure.

    Args:
        deck: {card_id: quantity}
        catalog: The game's cards
        rules: Compiled rules (see `compile_rules`)

    Returns:
        Violation messages, empty if the deck satisfies every rule.
    """
    lines = deck_lines(deck, catalog)
    violations: list[str] = []
    for rule in rules:
        violations.extend(rule.evaluate(lines))

    if violations:
        logger.debug("Deck has %d rule violations", len(violations))
    return violations


def validate_deck_for_settings(
    deck: Mapping[str, int],
    catalog: Catalog,
    settings: GameSettings,
) -> list[str]:
    """Compile a game's rules and validate a deck against them."""
    return validate_deck(deck, catalog, compile_rules(settings))
