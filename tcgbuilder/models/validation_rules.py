"""
Deck validation rules.

Games declare their deck-building rules as loose JSON inside
`deckValidation`. `compile_rules` turns that configuration into a tuple of
typed rule objects once, when the game is loaded; each rule then knows how
to evaluate itself against a deck.

Rules never raise for odd data. A `propertyLimits` entry missing its
property, value or bounds is skipped when compiling.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tcgbuilder.models.card import Card, stringify, value_matches

if TYPE_CHECKING:
    from tcgbuilder.models.game_settings import GameSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeckLine:
    """One deck entry as seen by the rules. `card` is None if not in the catalog."""

    card_id: str
    card: Card | None
    quantity: int

    @property
    def label(self) -> str:
        return self.card.name if self.card is not None else self.card_id


# =============================================================================
# RULE VARIANTS
# =============================================================================


@dataclass(frozen=True)
class CountBound:
    """Total number of cards in the deck must lie within bounds."""

    min_cards: int | None = None
    max_cards: int | None = None

    def evaluate(self, lines: Sequence[DeckLine]) -> list[str]:
        total = sum(line.quantity for line in lines)
        violations: list[str] = []
        if self.min_cards is not None and total < self.min_cards:
            violations.append(f"Too few cards in deck: {total} (minimum {self.min_cards})")
        if self.max_cards is not None and total > self.max_cards:
            violations.append(f"Too many cards in deck: {total} (maximum {self.max_cards})")
        return violations


@dataclass(frozen=True)
class CopyLimit:
    """No card may appear more than `max_copies` times."""

    max_copies: int

    def evaluate(self, lines: Sequence[DeckLine]) -> list[str]:
        return [
            f"Too many copies of {line.label} (max {self.max_copies})"
            for line in lines
            if line.quantity > self.max_copies
        ]


@dataclass(frozen=True)
class PerCardLimit:
    """Cards declaring a numeric limit attribute may not exceed it."""

    property: str

    def evaluate(self, lines: Sequence[DeckLine]) -> list[str]:
        violations: list[str] = []
        for line in lines:
            if line.card is None:
                continue
            limit = line.card.get_attribute(self.property)
            if not _is_number(limit):
                continue
            if line.quantity > limit:
                violations.append(
                    f"Too many copies of {line.card.name}: limit is {stringify(limit)}"
                )
        return violations


_EXACT_TEMPLATE = "Must have exactly {min} cards of {description} (found {count})"
_TOO_FEW_TEMPLATE = "Too few cards of {description}: {count} (minimum {min})"
_TOO_MANY_TEMPLATE = "Too many cards of {description}: {count} (maximum {max})"


@dataclass(frozen=True)
class AttributeBound:
    """
    Bounds on the number of cards matching an attribute predicate.

    Attributes:
        criteria: (attribute, value) pairs that must ALL match
        min_count: Lower bound, inclusive
        max_count: Upper bound, inclusive
        message: Optional template using {count}, {min}, {max}, {description}
        hide_property: Leave attribute names out of the description
    """

    criteria: tuple[tuple[str, Any], ...]
    min_count: float | None = None
    max_count: float | None = None
    message: str | None = None
    hide_property: bool = False

    @property
    def description(self) -> str:
        if self.hide_property:
            return ", ".join(stringify(value) for _, value in self.criteria)
        return ", ".join(f"{prop}: {stringify(value)}" for prop, value in self.criteria)

    def matches(self, card: Card) -> bool:
        return all(value_matches(card.get_attribute(prop), value) for prop, value in self.criteria)

    def count(self, lines: Sequence[DeckLine]) -> int:
        return sum(
            line.quantity
            for line in lines
            if line.card is not None and self.matches(line.card)
        )

    def evaluate(self, lines: Sequence[DeckLine]) -> list[str]:
        count = self.count(lines)
        lo, hi = self.min_count, self.max_count

        if lo is not None and hi is not None and lo == hi:
            if count != lo:
                return [self._render(count, _EXACT_TEMPLATE)]
            return []

        violations: list[str] = []
        if lo is not None and count < lo:
            violations.append(self._render(count, _TOO_FEW_TEMPLATE))
        if hi is not None and count > hi:
            violations.append(self._render(count, _TOO_MANY_TEMPLATE))
        return violations

    def _render(self, count: int, default: str) -> str:
        template = self.message or default
        replacements = {
            "{count}": str(count),
            "{min}": stringify(self.min_count) if self.min_count is not None else "",
            "{max}": stringify(self.max_count) if self.max_count is not None else "",
            "{description}": self.description,
        }
        # Plain replacement: stray braces in a template are left alone
        for placeholder, value in replacements.items():
            template = template.replace(placeholder, value)
        return template


@dataclass(frozen=True)
class BanList:
    """Banned card names or identifiers."""

    entries: tuple[str, ...]

    def evaluate(self, lines: Sequence[DeckLine]) -> list[str]:
        banned_ids = set(self.entries)
        banned_names = {normalize_card_name(entry) for entry in self.entries} - {""}

        matched: list[str] = []
        for line in lines:
            if line.card_id in banned_ids:
                hit = True
            elif line.card is not None:
                hit = normalize_card_name(line.card.name) in banned_names
            else:
                hit = False
            if hit and line.label not in matched:
                matched.append(line.label)

        if not matched:
            return []
        return ["Banned cards in deck: " + ", ".join(matched)]


ValidationRule = CountBound | CopyLimit | PerCardLimit | AttributeBound | BanList


# =============================================================================
# COMPILATION
# =============================================================================


def compile_rules(settings: GameSettings) -> tuple[ValidationRule, ...]:
    """
    Build the rule set for a game, in evaluation order.

    Order: deck size, global copy limit, per-card limit,
    attribute-count rules (declared order), ban list.
    """
    config = settings.deck_validation
    rules: list[ValidationRule] = []

    if config.min_cards is not None or config.max_cards is not None:
        rules.append(CountBound(min_cards=config.min_cards, max_cards=config.max_cards))

    if settings.max_copies_per_card is not None:
        rules.append(CopyLimit(max_copies=settings.max_copies_per_card))

    if config.use_per_card_limit:
        rules.append(PerCardLimit(property=config.limit_property))

    for position, raw in enumerate(config.property_limits):
        rule = parse_attribute_rule(raw)
        if rule is None:
            logger.debug("Skipping malformed property limit #%d: %r", position, raw)
            continue
        rules.append(rule)

    if config.ban_list:
        rules.append(BanList(entries=tuple(config.ban_list)))

    return tuple(rules)


def parse_attribute_rule(raw: Any) -> AttributeBound | None:
    """
    Parse one `propertyLimits` entry.

    Accepted shapes:
        {"property": "Type", "value": "Land", "min": 2, "max": 2}
        {"properties": ["Type", "Color"], "values": ["Unit", "Red"], "max": 10}

    Optional keys: "message" (template) and "hideProperty".
    Returns None if the entry is malformed.
    """
    if not isinstance(raw, Mapping):
        return None

    criteria = _parse_criteria(raw)
    if not criteria:
        return None

    lo = raw.get("min")
    hi = raw.get("max")
    lo = lo if _is_number(lo) else None
    hi = hi if _is_number(hi) else None
    if lo is None and hi is None:
        return None

    message = raw.get("message")
    return AttributeBound(
        criteria=criteria,
        min_count=lo,
        max_count=hi,
        message=message if isinstance(message, str) and message else None,
        hide_property=bool(raw.get("hideProperty", False)),
    )


def _parse_criteria(raw: Mapping[str, Any]) -> tuple[tuple[str, Any], ...]:
    properties = raw.get("properties", raw.get("property"))
    values = raw.get("values", raw.get("value"))

    if isinstance(properties, str):
        if properties and values is not None and not isinstance(values, list):
            return ((properties, values),)
        return ()

    if isinstance(properties, list) and isinstance(values, list):
        if not properties or len(properties) != len(values):
            return ()
        if not all(isinstance(p, str) and p for p in properties):
            return ()
        if any(v is None for v in values):
            return ()
        return tuple(zip(properties, values, strict=True))

    return ()


_NON_ALNUM = re.compile(r"[\W_]+")


def normalize_card_name(name: str) -> str:
    """Case-insensitive name key with punctuation and whitespace stripped."""
    return _NON_ALNUM.sub("", name.casefold())


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
