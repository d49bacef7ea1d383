"""
Deck API endpoints.

Grouping, validation, export/import and share links for a deck held by
the client. Every endpoint works on one snapshot of the request's deck,
so the groups, violations and exports it returns always agree.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from tcgbuilder.api.dependencies import get_game
from tcgbuilder.config import OCTGN_GROUP
from tcgbuilder.models.deck import Deck
from tcgbuilder.models.failure import ExportDisabledError, FailureKind, KnownError
from tcgbuilder.services.deck_codec import (
    ShareParams,
    build_share_query,
    decode_shared_deck,
    encode_deck,
    encode_overrides,
)
from tcgbuilder.services.deck_export import (
    format_deck_json,
    format_deck_octgn,
    format_deck_text,
    import_deck_json,
    import_deck_octgn,
)
from tcgbuilder.services.deck_image import directory_image_loader, render_deck_png
from tcgbuilder.services.deck_validator import validate_deck
from tcgbuilder.services.game_data import GameData
from tcgbuilder.services.grouping import GroupingConfig, group_deck

router = APIRouter(prefix="/games/{game}/decks", tags=["decks"])

IMPORT_FORMATS = ("json", "octgn")


class DeckRequest(BaseModel):
    """A deck as held by the client."""

    name: str = ""
    cards: dict[str, int] = Field(
        default_factory=dict,
        description="Map of card identifiers to quantities",
        examples=[{"card-17": 3, "card-42": 1}],
    )
    overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Map of card identifiers to user-chosen section names",
    )
    group_by: str | None = Field(
        default=None,
        description="Grouping attribute, or OCTGN for sections",
    )


class DeckCardResponse(BaseModel):
    id: str
    name: str
    quantity: int


class DeckGroupResponse(BaseModel):
    """One group of the deck list."""

    name: str
    total: int
    cards: list[DeckCardResponse]


class AnalyzeResponse(BaseModel):
    """Grouped deck with its rule violations."""

    game: str
    group_by: str
    groups: list[DeckGroupResponse]
    violations: list[str]
    total_cards: int
    unique_cards: int


class ImportRequest(BaseModel):
    """Request model for importing a deck file."""

    text: str = Field(..., description="Contents of the exported deck file")


class ImportResponse(BaseModel):
    """A deck read from an import file."""

    name: str = ""
    cards: dict[str, int] = Field(default_factory=dict)
    overrides: dict[str, str] = Field(default_factory=dict)


class ShareResponse(BaseModel):
    """Encoded share-link parameters."""

    deck: str
    groups: str
    query: str


class SharedDeckResponse(BaseModel):
    """A deck decoded from share-link parameters."""

    game: str
    cards: dict[str, int] = Field(default_factory=dict)
    overrides: dict[str, str] = Field(default_factory=dict)


def _snapshot(request: DeckRequest) -> dict[str, int]:
    return dict(Deck.from_mapping(request.cards).snapshot())


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_deck(
    request: DeckRequest,
    game_data: Annotated[GameData, Depends(get_game)],
) -> AnalyzeResponse:
    """
    Group, sort and validate a deck.

    Violations are advisory; an invalid deck still gets a 200 response.
    """
    cards = _snapshot(request)
    config = GroupingConfig.from_settings(game_data.settings, request.group_by)
    groups = group_deck(cards, game_data.catalog, config, request.overrides)
    violations = validate_deck(cards, game_data.catalog, game_data.rules)

    return AnalyzeResponse(
        game=game_data.game,
        group_by=config.group_by,
        groups=[
            DeckGroupResponse(
                name=group.name,
                total=group.total,
                cards=[
                    DeckCardResponse(
                        id=entry.card.id,
                        name=entry.card.display_name(config.include_subtitle),
                        quantity=entry.quantity,
                    )
                    for entry in group.entries
                ],
            )
            for group in groups
        ],
        violations=violations,
        total_cards=sum(cards.values()),
        unique_cards=len(cards),
    )


@router.post("/export/{fmt}")
async def export_deck(
    fmt: str,
    request: DeckRequest,
    game_data: Annotated[GameData, Depends(get_game)],
) -> Response:
    """
    Export a deck as text, JSON, OCTGN XML or a PNG image.

    Formats switched off in the game's export options are refused.
    """
    game_settings = game_data.settings
    if not game_settings.export_options.is_enabled(fmt):
        raise ExportDisabledError(game_data.game, fmt)

    cards = _snapshot(request)
    group_by = OCTGN_GROUP if fmt == "octgn" else request.group_by
    config = GroupingConfig.from_settings(game_settings, group_by)
    if fmt == "octgn" and not config.section_mode:
        raise ExportDisabledError(game_data.game, fmt)

    groups = group_deck(cards, game_data.catalog, config, request.overrides)

    if fmt == "text":
        return PlainTextResponse(format_deck_text(groups, request.name, config.include_subtitle))
    if fmt == "json":
        return Response(
            content=format_deck_json(groups, request.name, game_data.game, request.overrides),
            media_type="application/json",
        )
    if fmt == "octgn":
        return Response(
            content=format_deck_octgn(groups, game_settings.octgn),
            media_type="application/xml",
        )
    return Response(
        content=render_deck_png(groups, directory_image_loader(game_data.images_dir), request.name),
        media_type="image/png",
    )


@router.post("/import/{fmt}", response_model=ImportResponse)
async def import_deck(
    fmt: str,
    request: ImportRequest,
    game_data: Annotated[GameData, Depends(get_game)],
) -> ImportResponse:
    """
    Import a JSON or OCTGN deck file.

    The whole file is checked first. Any problem rejects the import with
    no deck returned.
    """
    if fmt not in IMPORT_FORMATS:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message=f"Cannot import format '{fmt}'",
            suggestion=f"Use one of: {', '.join(IMPORT_FORMATS)}.",
        )

    if fmt == "json":
        imported = import_deck_json(request.text, game_data.game, game_data.catalog)
    else:
        config = GroupingConfig.from_settings(game_data.settings, OCTGN_GROUP)
        imported = import_deck_octgn(
            request.text, game_data.catalog, config, game_data.settings.octgn.game_id
        )

    return ImportResponse(name=imported.name, cards=imported.cards, overrides=imported.overrides)


@router.post("/share", response_model=ShareResponse)
async def share_deck(
    request: DeckRequest,
    game_data: Annotated[GameData, Depends(get_game)],
) -> ShareResponse:
    """Encode a deck and its section overrides as share-link parameters."""
    cards = _snapshot(request)
    config = GroupingConfig.from_settings(game_data.settings, request.group_by)
    return ShareResponse(
        deck=encode_deck(cards, game_data.catalog, config, request.overrides),
        groups=encode_overrides(request.overrides, game_data.catalog),
        query=build_share_query(
            game_data.game, cards, game_data.catalog, config, request.overrides
        ),
    )


@router.get("/shared", response_model=SharedDeckResponse)
async def get_shared_deck(
    game_data: Annotated[GameData, Depends(get_game)],
    deck: str = "",
    groups: str = "",
) -> SharedDeckResponse:
    """
    Decode share-link parameters.

    Garbage decodes to an empty deck rather than an error.
    """
    shared = decode_shared_deck(
        ShareParams(game=game_data.game, deck=deck, groups=groups), game_data.catalog
    )
    return SharedDeckResponse(game=shared.game, cards=shared.cards, overrides=shared.overrides)
