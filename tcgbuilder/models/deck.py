from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from tcgbuilder.models.card import Card


@dataclass
class Deck:
    """
    A deck under construction.

    Cards are stored by identifier with a positive quantity. A quantity
    reaching zero removes the card.
    """

    cards: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "Deck":
        """Build a deck from external data, dropping non-positive quantities."""
        return cls(cards=clean_deck_mapping(mapping))

    def add(self, card_id: str, quantity: int = 1) -> None:
        """Add copies of a card."""
        if quantity <= 0:
            return
        self.cards[card_id] = self.cards.get(card_id, 0) + quantity

    def remove(self, card_id: str, quantity: int = 1) -> None:
        """Remove copies of a card, dropping it when none remain."""
        remaining = self.cards.get(card_id, 0) - quantity
        if remaining > 0:
            self.cards[card_id] = remaining
        else:
            self.cards.pop(card_id, None)

    def set_quantity(self, card_id: str, quantity: int) -> None:
        if quantity > 0:
            self.cards[card_id] = quantity
        else:
            self.cards.pop(card_id, None)

    def swap_printing(self, old_id: str, new_id: str) -> None:
        """Move all copies of one printing onto another printing."""
        quantity = self.cards.pop(old_id, 0)
        if quantity:
            self.add(new_id, quantity)

    def get_quantity(self, card_id: str) -> int:
        return self.cards.get(card_id, 0)

    def total_cards(self) -> int:
        """Total number of cards (counting quantities)."""
        return sum(self.cards.values())

    def unique_cards(self) -> int:
        return len(self.cards)

    def snapshot(self) -> Mapping[str, int]:
        """Read-only copy for exports running against a fixed deck."""
        return MappingProxyType(dict(self.cards))


@dataclass(frozen=True)
class DeckEntry:
    """A card and how many copies of it a group holds."""

    card: Card
    quantity: int


@dataclass(frozen=True)
class DeckGroup:
    """A named, sorted bucket of deck entries."""

    name: str
    entries: tuple[DeckEntry, ...] = ()

    @property
    def total(self) -> int:
        """Summed quantity of the group's members."""
        return sum(entry.quantity for entry in self.entries)


@dataclass
class SavedDeck:
    """
    A named deck as stored for later retrieval.

    Attributes:
        game: Game identifier the deck belongs to
        name: User-chosen deck name (unique per game)
        cards: {card_id: quantity}
        overrides: {card_id: section name} user section assignments
    """

    game: str
    name: str
    cards: dict[str, int] = field(default_factory=dict)
    overrides: dict[str, str] = field(default_factory=dict)


def clean_deck_mapping(mapping: Mapping[str, Any] | None) -> dict[str, int]:
    """Keep only entries whose quantity is a positive integer."""
    cleaned: dict[str, int] = {}
    if not mapping:
        return cleaned
    for card_id, quantity in mapping.items():
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            continue
        if quantity > 0:
            cleaned[str(card_id)] = quantity
    return cleaned
