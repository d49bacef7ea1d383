"""
Deck image rendering.

Draws a grouped deck as a single PNG: a header with the deck name, then
one captioned grid of card images per group, each tile carrying an
"xN" quantity badge. Cards whose image cannot be loaded are drawn as
placeholder tiles showing the card name.
"""

import io
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from tcgbuilder.models.card import Card, Orientation
from tcgbuilder.models.deck import DeckGroup

logger = logging.getLogger(__name__)

ImageLoader = Callable[[Card], Image.Image | None]

# Tile geometry (portrait card at roughly 63x88 mm proportions)
TILE_WIDTH = 120
TILE_HEIGHT = 168
PADDING = 6
HEADER_HEIGHT = 40
CAPTION_HEIGHT = 22
DEFAULT_COLUMNS = 5

BACKGROUND = (255, 255, 255)
TEXT_COLOR = (34, 34, 34)
PLACEHOLDER_FILL = (200, 200, 200)
BADGE_FILL = (0, 0, 0)
BADGE_TEXT = (255, 255, 255)


def directory_image_loader(images_dir: Path, attribute: str = "image") -> ImageLoader:
    """
    Load card images from a directory.

    The file name is taken from the card's `attribute` field.
    """

    def load(card: Card) -> Image.Image | None:
        filename = card.get_attribute(attribute)
        if not filename:
            return None
        path = images_dir / str(filename)
        if not path.is_file():
            logger.debug("No image for %s at %s", card.id, path)
            return None
        try:
            with Image.open(path) as image:
                return image.convert("RGB")
        except OSError as e:
            logger.warning("Could not read image %s: %s", path, e)
            return None

    return load


def render_deck_image(
    groups: Sequence[DeckGroup],
    image_loader: ImageLoader,
    deck_name: str = "",
    columns: int = DEFAULT_COLUMNS,
) -> Image.Image:
    """
    Render a grouped deck.

    Args:
        groups: Output of `group_deck`, drawn in order
        image_loader: Returns a card's image, or None for a placeholder
        deck_name: Header text
        columns: Tiles per row

    Returns:
        RGB image
    """
    columns = max(1, columns)
    width = PADDING + columns * (TILE_WIDTH + PADDING)
    height = HEADER_HEIGHT
    for group in groups:
        rows = -(-len(group.entries) // columns)
        height += CAPTION_HEIGHT + rows * (TILE_HEIGHT + PADDING)
    height += PADDING

    canvas = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()

    draw.text((PADDING * 2, HEADER_HEIGHT // 3), deck_name or "Deck", font=font, fill=TEXT_COLOR)

    y = HEADER_HEIGHT
    for group in groups:
        draw.text((PADDING, y + 4), f"{group.name} ({group.total})", font=font, fill=TEXT_COLOR)
        y += CAPTION_HEIGHT
        for i, entry in enumerate(group.entries):
            x = PADDING + (i % columns) * (TILE_WIDTH + PADDING)
            ty = y + (i // columns) * (TILE_HEIGHT + PADDING)
            _draw_tile(canvas, draw, font, entry.card, entry.quantity, (x, ty), image_loader)
        rows = -(-len(group.entries) // columns)
        y += rows * (TILE_HEIGHT + PADDING)

    return canvas


def render_deck_png(
    groups: Sequence[DeckGroup],
    image_loader: ImageLoader,
    deck_name: str = "",
    columns: int = DEFAULT_COLUMNS,
) -> bytes:
    """Render a grouped deck and encode it as PNG bytes."""
    buffer = io.BytesIO()
    render_deck_image(groups, image_loader, deck_name, columns).save(buffer, format="PNG")
    return buffer.getvalue()


def tile_size(card: Card) -> tuple[int, int]:
    """Drawn card size inside a tile; horizontal cards get a landscape frame."""
    if card.orientation is Orientation.HORIZONTAL:
        return TILE_WIDTH, TILE_WIDTH * TILE_WIDTH // TILE_HEIGHT
    return TILE_WIDTH, TILE_HEIGHT


def _draw_tile(
    canvas: Image.Image,
    draw: ImageDraw.ImageDraw,
    font: ImageFont.ImageFont | ImageFont.FreeTypeFont,
    card: Card,
    quantity: int,
    origin: tuple[int, int],
    image_loader: ImageLoader,
) -> None:
    x, y = origin
    w, h = tile_size(card)
    top = y + (TILE_HEIGHT - h) // 2

    image = image_loader(card)
    if image is not None:
        canvas.paste(image.resize((w, h), resample=Image.Resampling.LANCZOS), (x, top))
    else:
        draw.rectangle((x, top, x + w - 1, top + h - 1), fill=PLACEHOLDER_FILL, outline=TEXT_COLOR)
        draw.text((x + 4, top + 4), _truncate(card.name, 18), font=font, fill=TEXT_COLOR)

    label = f"x{quantity}"
    bbox = draw.textbbox((0, 0), label, font=font)
    bw, bh = bbox[2] - bbox[0] + 8, bbox[3] - bbox[1] + 6
    bottom = top + h
    draw.rectangle((x + 2, bottom - bh - 2, x + 2 + bw, bottom - 2), fill=BADGE_FILL)
    draw.text((x + 6, bottom - bh), label, font=font, fill=BADGE_TEXT)


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."
