"""
Card and catalog models.

A card carries a handful of well-known fields (identifier, index, name,
subtitle, orientation) plus an open-ended attribute bag whose keys differ
from game to game. Everything configuration-driven (filters, grouping,
validation rules) reads attributes through `Card.get_attribute`.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Record keys mapped onto typed Card fields instead of the attribute bag
_WELL_KNOWN_KEYS = frozenset({"id", "index", "name", "subtitle", "Subtitle", "orientation"})


class Orientation(str, Enum):
    """How a card image is laid out. Affects rendering only."""

    NORMAL = "normal"
    HORIZONTAL = "horizontal"

    @classmethod
    def parse(cls, value: Any) -> "Orientation":
        if isinstance(value, str) and value.strip().lower() == cls.HORIZONTAL.value:
            return cls.HORIZONTAL
        return cls.NORMAL


@dataclass(frozen=True)
class Card:
    """
    A single card record from a game's catalog.

    Attributes:
        id: Stable unique identifier (often a long opaque string)
        index: Stable unique small integer, used only for link encoding
        name: Display name; several printings may share it
        subtitle: Distinguishes alternate printings from unrelated same-name cards
        orientation: Image layout
        attributes: Every other field of the source record
    """

    id: str
    index: int
    name: str
    subtitle: str | None = None
    orientation: Orientation = Orientation.NORMAL
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], position: int = 0) -> "Card":
        """
        Build a card from a catalog record.

        Records without an integer `index` fall back to their catalog position.
        """
        index = raw.get("index")
        if isinstance(index, bool) or not isinstance(index, int):
            index = _parse_int(index)
            if index is None:
                index = position

        subtitle = raw.get("Subtitle", raw.get("subtitle"))
        if subtitle is not None:
            subtitle = str(subtitle)

        return cls(
            id=str(raw["id"]),
            index=index,
            name=str(raw.get("name", "")),
            subtitle=subtitle or None,
            orientation=Orientation.parse(raw.get("orientation")),
            attributes={k: v for k, v in raw.items() if k not in _WELL_KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Flat record form, the inverse of `from_dict`."""
        record: dict[str, Any] = {"id": self.id, "index": self.index, "name": self.name}
        if self.subtitle:
            record["Subtitle"] = self.subtitle
        if self.orientation is Orientation.HORIZONTAL:
            record["orientation"] = self.orientation.value
        record.update(self.attributes)
        return record

    def get_attribute(self, name: str) -> Any:
        """Look up a field by name, well-known fields first."""
        if name == "id":
            return self.id
        if name == "index":
            return self.index
        if name == "name":
            return self.name
        if name in ("subtitle", "Subtitle"):
            return self.subtitle
        if name == "orientation":
            return self.orientation.value
        return self.attributes.get(name)

    def display_name(self, include_subtitle: bool = False) -> str:
        """Name, optionally suffixed with " - subtitle"."""
        if include_subtitle and self.subtitle:
            return f"{self.name} - {self.subtitle}"
        return self.name

    @property
    def printing_key(self) -> tuple[str, str]:
        """Cards sharing this key are alternate printings of each other."""
        return (self.name, self.subtitle or "")


class Catalog:
    """
    Read-only, ordered collection of a game's cards.

    Lookups by identifier and by index both resolve to the first record
    carrying that key.
    """

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        self._cards: tuple[Card, ...] = tuple(cards)
        self._by_id: dict[str, Card] = {}
        self._by_index: dict[int, Card] = {}
        for card in self._cards:
            self._by_id.setdefault(card.id, card)
            self._by_index.setdefault(card.index, card)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "Catalog":
        """Build a catalog from raw JSON records, skipping ones without an id."""
        cards: list[Card] = []
        for position, raw in enumerate(records):
            if not isinstance(raw, Mapping) or raw.get("id") in (None, ""):
                logger.warning("Skipping catalog record %d without an id", position)
                continue
            cards.append(Card.from_dict(raw, position))
        return cls(cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._by_id

    @property
    def cards(self) -> tuple[Card, ...]:
        return self._cards

    def get(self, card_id: str) -> Card | None:
        """Find a card by identifier."""
        return self._by_id.get(card_id)

    def get_by_index(self, index: int) -> Card | None:
        """Find a card by its compact index."""
        return self._by_index.get(index)

    def printings_of(self, card: Card) -> list[Card]:
        """All cards sharing this card's name and subtitle, in catalog order."""
        return [c for c in self._cards if c.printing_key == card.printing_key]


# =============================================================================
# ATTRIBUTE VALUE HELPERS
# =============================================================================


def is_blank(value: Any) -> bool:
    """True for missing, null and all-whitespace strings. An empty list is a value."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def stringify(value: Any) -> str:
    """Normalize a scalar attribute value for comparison."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def attribute_values(value: Any, delimiter: str | None = None) -> list[str]:
    """
    Expand an attribute value into its candidate strings.

    Array values contribute one candidate per entry. When a delimiter is
    configured, string values are split on it as well.
    """
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]

    candidates: list[str] = []
    for item in items:
        if item is None:
            continue
        text = stringify(item)
        if delimiter and isinstance(item, str):
            candidates.extend(part.strip() for part in text.split(delimiter) if part.strip())
        elif text:
            candidates.append(text)
    return candidates


def value_matches(value: Any, expected: Any, delimiter: str | None = None) -> bool:
    """True if any candidate of `value` equals `expected` (string-normalized)."""
    target = stringify(expected)
    return any(candidate == target for candidate in attribute_values(value, delimiter))


def _parse_int(value: Any) -> int | None:
    if not isinstance(value, str) or not value.strip().lstrip("-").isdigit():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
