"""
Deck grouping.

Partitions a deck into named, ordered, sorted groups. This is the one
canonical ordering of a deck: the on-screen deck list, text export, JSON
export, image export, OCTGN export and share-link encoding all consume
`group_deck` output and never re-sort on their own.

Two modes:
- Flat: group by the value of one card attribute ("Other" when missing).
- Section: group_by is "OCTGN"; cards go to the first section whose rules
  match, unless a user override names another active section.
"""

import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

from tcgbuilder.config import FALLBACK_GROUP_ORDER, OCTGN_GROUP, OTHER_GROUP, UNGROUPED_SECTION
from tcgbuilder.models.card import (
    Card,
    Catalog,
    attribute_values,
    is_blank,
    stringify,
    value_matches,
)
from tcgbuilder.models.deck import DeckEntry, DeckGroup
from tcgbuilder.models.game_settings import GameSettings, Section, SortSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupingConfig:
    """
    Everything that determines how a deck is grouped and ordered.

    Attributes:
        group_by: Attribute name, or "OCTGN" for section mode
        group_order: Explicit group order for flat mode
        group_sorts: {group name: sort spec}; unlisted groups sort by name
        sections: Section rules in declaration order
        ignored_sections: Section names removed from consideration
        include_subtitle: Use "name - subtitle" as the display name
    """

    group_by: str
    group_order: tuple[str, ...] = FALLBACK_GROUP_ORDER
    group_sorts: Mapping[str, SortSpec] = field(default_factory=dict, hash=False)
    sections: tuple[Section, ...] = ()
    ignored_sections: frozenset[str] = frozenset()
    include_subtitle: bool = False

    @classmethod
    def from_settings(cls, settings: GameSettings, group_by: str | None = None) -> "GroupingConfig":
        """Grouping config for a game, grouped by `group_by` or the game's default."""
        return cls(
            group_by=group_by or settings.default_group_by,
            group_order=tuple(settings.effective_group_order()),
            group_sorts=dict(settings.group_sort),
            sections=tuple(settings.octgn.sections),
            ignored_sections=frozenset(settings.octgn.ignore_sections),
            include_subtitle=settings.include_subtitle_in_text,
        )

    @property
    def section_mode(self) -> bool:
        return self.group_by == OCTGN_GROUP and bool(self.active_sections)

    @property
    def active_sections(self) -> tuple[Section, ...]:
        return tuple(s for s in self.sections if s.name not in self.ignored_sections)


def group_deck(
    deck: Mapping[str, int],
    catalog: Catalog,
    config: GroupingConfig,
    overrides: Mapping[str, str] | None = None,
) -> list[DeckGroup]:
    """
    Group and sort a deck.

    Deck entries with a non-positive quantity or an identifier missing from
    the catalog are left out. Empty groups are never returned.

    Args:
        deck: {card_id: quantity}
        catalog: The game's cards
        config: Grouping configuration
        overrides: {card_id: section name}, section mode only

    Returns:
        Groups in display order, each with its entries sorted.
    """
    buckets: dict[str, list[DeckEntry]] = {}

    for card_id, quantity in deck.items():
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            continue
        card = catalog.get(card_id)
        if card is None:
            logger.debug("Dropping unknown card %r from grouping", card_id)
            continue
        if config.section_mode:
            name = assign_section(card, config, overrides)
        else:
            name = flat_group_name(card, config.group_by)
        buckets.setdefault(name, []).append(DeckEntry(card=card, quantity=quantity))

    groups: list[DeckGroup] = []
    for name in _ordered_group_names(buckets, config):
        spec = config.group_sorts.get(name)
        entries = sort_entries(buckets[name], spec, config.include_subtitle)
        groups.append(DeckGroup(name=name, entries=tuple(entries)))
    return groups


def iter_export_order(groups: list[DeckGroup]) -> Iterator[tuple[str, DeckEntry]]:
    """Flatten groups into (group name, entry) pairs in canonical order."""
    for group in groups:
        for entry in group.entries:
            yield group.name, entry


def flat_group_name(card: Card, group_by: str) -> str:
    """Group label for flat mode: the attribute value, or "Other"."""
    value = card.get_attribute(group_by)
    if is_blank(value) or value is False:
        return OTHER_GROUP
    # Zero and NaN are falsy group keys
    if isinstance(value, (int, float)) and (value == 0 or value != value):
        return OTHER_GROUP
    if isinstance(value, (list, tuple)):
        return ", ".join(attribute_values(value)) or OTHER_GROUP
    return stringify(value) or OTHER_GROUP


def section_matches(section: Section, card: Card) -> bool:
    """True if ANY of the section's criteria accepts one of the card's values."""
    for attribute, accepted in section.match.items():
        value = card.get_attribute(attribute)
        if any(value_matches(value, candidate) for candidate in accepted):
            return True
    return False


def assign_section(
    card: Card,
    config: GroupingConfig,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """Section for a card: valid override, else first matching rule, else Ungrouped."""
    active = config.active_sections

    forced = (overrides or {}).get(card.id)
    if forced is not None and any(section.name == forced for section in active):
        return forced

    for section in active:
        if section_matches(section, card):
            return section.name
    return UNGROUPED_SECTION


def _ordered_group_names(
    buckets: Mapping[str, list[DeckEntry]], config: GroupingConfig
) -> list[str]:
    if config.section_mode:
        declared = dict.fromkeys(s.name for s in config.active_sections)
        names = [name for name in declared if name in buckets]
        if UNGROUPED_SECTION in buckets and UNGROUPED_SECTION not in names:
            names.append(UNGROUPED_SECTION)
        return names

    in_order = [name for name in dict.fromkeys(config.group_order) if name in buckets]
    remaining = sorted(name for name in buckets if name not in config.group_order)
    return in_order + remaining


# =============================================================================
# WITHIN-GROUP SORTING
# =============================================================================


def sort_entries(
    entries: list[DeckEntry],
    spec: SortSpec | None = None,
    include_subtitle: bool = False,
) -> list[DeckEntry]:
    """
    Sort a group's entries.

    Without a spec entries sort by display name. With a spec each listed
    attribute is compared in turn: values in the attribute's custom order
    come first (in that order), then numeric comparison when both values
    are numbers, else plain string comparison. Card id breaks final ties.
    """
    if spec is None:
        return sorted(
            entries,
            key=lambda e: (e.card.display_name(include_subtitle), e.card.id),
        )

    def compare(a: DeckEntry, b: DeckEntry) -> int:
        for prop in spec.by:
            result = compare_values(
                _sort_value(a.card, prop, include_subtitle),
                _sort_value(b.card, prop, include_subtitle),
                spec.order.get(prop),
            )
            if result:
                return result
        return _cmp(a.card.id, b.card.id)

    return sorted(entries, key=cmp_to_key(compare))


def compare_values(a: Any, b: Any, custom_order: list[Any] | None = None) -> int:
    """Three-way comparison of two attribute values."""
    if custom_order:
        order = [stringify(v) for v in custom_order]
        ai = _position(order, a)
        bi = _position(order, b)
        if ai is not None and bi is not None and ai != bi:
            return ai - bi
        if ai is not None and bi is None:
            return -1
        if bi is not None and ai is None:
            return 1

    an = _to_number(a)
    bn = _to_number(b)
    if an is not None and bn is not None:
        return _cmp(an, bn)
    return _cmp(stringify(a), stringify(b))


def _sort_value(card: Card, prop: str, include_subtitle: bool) -> Any:
    if prop == "name":
        return card.display_name(include_subtitle)
    value = card.get_attribute(prop)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(attribute_values(value))
    return value


def _position(order: list[str], value: Any) -> int | None:
    try:
        return order.index(stringify(value))
    except ValueError:
        return None


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)
