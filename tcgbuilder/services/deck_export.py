"""
Deck export and import.

Exporters take grouped output from `group_deck` and never reorder it, so
every format lists cards in the same canonical order.

Importers parse a whole file before producing anything. Any problem
raises `DeckImportError` and no deck is returned, so a rejected import
cannot leave a half-imported deck behind.
"""

import json
import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from tcgbuilder.models.card import Catalog
from tcgbuilder.models.deck import DeckGroup
from tcgbuilder.models.failure import DeckImportError
from tcgbuilder.models.game_settings import OctgnConfig
from tcgbuilder.services.grouping import GroupingConfig, assign_section, iter_export_order

logger = logging.getLogger(__name__)

_XML_HEADER = '<?xml version="1.0" encoding="utf-8" standalone="yes"?>\n'

# Number of offending entries quoted in an import error
_MAX_REPORTED = 5


@dataclass
class ImportedDeck:
    """A deck read from an export file."""

    name: str = ""
    cards: dict[str, int] = field(default_factory=dict)
    overrides: dict[str, str] = field(default_factory=dict)


# =============================================================================
# TEXT
# =============================================================================


def format_deck_text(
    groups: Sequence[DeckGroup],
    deck_name: str = "",
    include_subtitle: bool = False,
) -> str:
    """
    Format a grouped deck as plain text.

    Example:
        Deck: Goblins

        Creature (3)
        Goblin Guide x3

        Total cards: 3
    """
    lines: list[str] = [f"Deck: {deck_name}".rstrip(), ""]

    for group in groups:
        lines.append(f"{group.name} ({group.total})")
        for entry in group.entries:
            lines.append(f"{entry.card.display_name(include_subtitle)} x{entry.quantity}")
        lines.append("")

    lines.append(f"Total cards: {sum(group.total for group in groups)}")
    return "\n".join(lines)


# =============================================================================
# JSON
# =============================================================================


def deck_to_json(
    groups: Sequence[DeckGroup],
    deck_name: str,
    game: str,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Build the JSON export document.

    Each deck item is the card's full record plus its quantity.
    """
    document: dict[str, Any] = {
        "name": deck_name,
        "game": game,
        "deck": [
            {**entry.card.to_dict(), "quantity": entry.quantity}
            for _, entry in iter_export_order(list(groups))
        ],
    }
    if overrides:
        document["overrides"] = dict(overrides)
    return document


def format_deck_json(
    groups: Sequence[DeckGroup],
    deck_name: str,
    game: str,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """Serialize the JSON export document."""
    document = deck_to_json(groups, deck_name, game, overrides)
    return json.dumps(document, indent=2, ensure_ascii=False)


def import_deck_json(text: str, game: str, catalog: Catalog) -> ImportedDeck:
    """
    Read a JSON deck export.

    Accepts the `quantity` key and the older `qty` key for each card.

    Raises:
        DeckImportError: If the document is malformed, belongs to another
            game, or references cards missing from the catalog
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DeckImportError("file is not valid JSON", detail=str(e)) from e

    if not isinstance(document, dict) or not document.get("game") or "deck" not in document:
        raise DeckImportError("file has no game or deck")
    if document["game"] != game:
        raise DeckImportError(
            f"deck is for game \"{document['game']}\"",
            detail="Switch to that game to import this deck.",
        )

    items = document["deck"]
    if not isinstance(items, list):
        raise DeckImportError("deck must be a list of cards")

    cards: dict[str, int] = {}
    malformed: list[str] = []
    unknown: list[str] = []
    for position, item in enumerate(items):
        if not isinstance(item, dict) or item.get("id") in (None, ""):
            malformed.append(f"#{position + 1}")
            continue
        card_id = str(item["id"])
        quantity = item.get("quantity", item.get("qty"))
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            malformed.append(card_id)
            continue
        if card_id not in catalog:
            unknown.append(card_id)
            continue
        cards[card_id] = cards.get(card_id, 0) + quantity

    _reject_problems(malformed, unknown)

    overrides: dict[str, str] = {}
    raw_overrides = document.get("overrides")
    if isinstance(raw_overrides, dict):
        overrides = {
            str(card_id): section
            for card_id, section in raw_overrides.items()
            if card_id in cards and isinstance(section, str) and section
        }

    name = document.get("name")
    logger.info("Imported JSON deck with %d unique cards", len(cards))
    return ImportedDeck(
        name=name if isinstance(name, str) else "", cards=cards, overrides=overrides
    )


# =============================================================================
# OCTGN (.o8d)
# =============================================================================


def format_deck_octgn(groups: Sequence[DeckGroup], octgn: OctgnConfig) -> str:
    """
    Format a section-grouped deck as an OCTGN deck file.

    Every group becomes a <section>; the `shared` flag is taken from the
    matching section rule.
    """
    shared = {section.name: section.shared for section in octgn.sections}

    root = ET.Element("deck", game=octgn.game_id)
    for group in groups:
        section = ET.SubElement(
            root,
            "section",
            name=group.name,
            shared="True" if shared.get(group.name, False) else "False",
        )
        for entry in group.entries:
            card = ET.SubElement(section, "card", qty=str(entry.quantity), id=entry.card.id)
            card.text = entry.card.name
    ET.SubElement(root, "notes")

    ET.indent(root, space="  ")
    return _XML_HEADER + ET.tostring(root, encoding="unicode")


def import_deck_octgn(
    text: str, catalog: Catalog, config: GroupingConfig, game_id: str = ""
) -> ImportedDeck:
    """
    Read an OCTGN deck file.

    A card filed under a section other than the one its rules would pick
    is recorded as a user override.

    Raises:
        DeckImportError: If the XML is malformed, is for another OCTGN
            game, or references cards missing from the catalog
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise DeckImportError("file is not a valid OCTGN deck", detail=str(e)) from e

    if root.tag != "deck":
        raise DeckImportError("file is not a valid OCTGN deck", detail=f"root element <{root.tag}>")

    file_game = root.get("game", "")
    if game_id and file_game and file_game.lower() != game_id.lower():
        raise DeckImportError("deck was made for a different OCTGN game", detail=file_game)

    active = {section.name for section in config.active_sections}
    cards: dict[str, int] = {}
    placements: dict[str, str] = {}
    malformed: list[str] = []
    unknown: list[str] = []

    for section in root.iter("section"):
        section_name = section.get("name", "")
        for element in section.findall("card"):
            card_id = element.get("id", "")
            quantity = _parse_quantity(element.get("qty"))
            if not card_id or quantity is None:
                malformed.append(card_id or (element.text or "").strip() or "?")
                continue
            if card_id not in catalog:
                unknown.append(card_id)
                continue
            cards[card_id] = cards.get(card_id, 0) + quantity
            placements[card_id] = section_name

    _reject_problems(malformed, unknown)

    overrides: dict[str, str] = {}
    if config.section_mode:
        for card_id, section_name in placements.items():
            card = catalog.get(card_id)
            if card is None or section_name not in active:
                continue
            if assign_section(card, config) != section_name:
                overrides[card_id] = section_name

    logger.info("Imported OCTGN deck with %d unique cards", len(cards))
    return ImportedDeck(cards=cards, overrides=overrides)


def _parse_quantity(raw: str | None) -> int | None:
    if raw is None or not raw.strip().isdigit():
        return None
    quantity = int(raw.strip())
    return quantity if quantity > 0 else None


def _reject_problems(malformed: list[str], unknown: list[str]) -> None:
    if malformed:
        logger.warning("Rejecting deck import: %d malformed entries", len(malformed))
        raise DeckImportError(
            "some cards have no id or an invalid quantity",
            detail=", ".join(malformed[:_MAX_REPORTED]),
        )
    if unknown:
        logger.warning("Rejecting deck import: %d unknown cards", len(unknown))
        raise DeckImportError(
            f"{len(unknown)} cards are not in this game's card list",
            detail=", ".join(unknown[:_MAX_REPORTED]),
        )
