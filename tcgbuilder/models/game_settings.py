"""
Per-game configuration.

Each game ships a loosely-typed `settings.json`. It is parsed once, at load
time, into these pydantic models; the keys of the source document are
camelCase and are accepted through aliases. Unknown keys are ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tcgbuilder.config import DEFAULT_GROUP_BY, DEFAULT_LIMIT_PROPERTY, FALLBACK_GROUP_ORDER


class _SettingsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SortSpec(_SettingsModel):
    """
    Sort configuration for one group.

    Attributes:
        by: Attributes to sort by, in priority order
        order: Optional explicit value ordering per attribute
    """

    by: list[str] = Field(default_factory=lambda: ["name"])
    order: dict[str, list[Any]] = Field(default_factory=dict)

    @field_validator("by", mode="before")
    @classmethod
    def _coerce_by(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value or ["name"]


class Section(_SettingsModel):
    """
    A rule-based group for section mode.

    A card belongs to the section if ANY of the `match` criteria accepts
    one of the card's values for that attribute.
    """

    name: str
    shared: bool = False
    match: dict[str, list[Any]] = Field(default_factory=dict)

    @field_validator("match", mode="before")
    @classmethod
    def _coerce_match(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {k: v if isinstance(v, list) else [v] for k, v in value.items()}


class OctgnConfig(_SettingsModel):
    """Section rules and game id for the OCTGN deck-file format."""

    game_id: str = Field(default="", alias="gameId")
    sections: list[Section] = Field(default_factory=list)
    ignore_sections: list[str] = Field(default_factory=list, alias="ignoreSections")


class DeckValidationConfig(_SettingsModel):
    """
    Raw validation configuration.

    `property_limits` stays untyped here; it is compiled into rule objects
    by `tcgbuilder.models.validation_rules.compile_rules`, which skips
    malformed entries.
    """

    min_cards: int | None = Field(default=None, alias="minCards")
    max_cards: int | None = Field(default=None, alias="maxCards")
    use_per_card_limit: bool = Field(default=False, alias="usePerCardLimit")
    limit_property: str = Field(default=DEFAULT_LIMIT_PROPERTY, alias="limitProperty")
    property_limits: list[Any] = Field(default_factory=list, alias="propertyLimits")
    ban_list: list[str] = Field(default_factory=list, alias="banList")

    @field_validator("ban_list", mode="before")
    @classmethod
    def _coerce_ban_list(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if v is not None]

    @field_validator("property_limits", mode="before")
    @classmethod
    def _coerce_property_limits(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class ExportOptions(_SettingsModel):
    """Which export formats a game offers."""

    text: bool = True
    json_: bool = Field(default=True, alias="json")
    image: bool = True
    octgn: bool = False

    def is_enabled(self, fmt: str) -> bool:
        return {
            "text": self.text,
            "json": self.json_,
            "image": self.image,
            "octgn": self.octgn,
        }.get(fmt, False)


class GameSettings(_SettingsModel):
    """Settings for one game, parsed from its `settings.json`."""

    game_name: str = Field(default="", alias="gameName")

    # Grouping
    group_options: list[str] = Field(
        default_factory=lambda: [DEFAULT_GROUP_BY], alias="groupOptions"
    )
    group_order: list[str] | None = Field(default=None, alias="groupOrder")
    group_sort: dict[str, SortSpec] = Field(default_factory=dict, alias="groupSort")
    include_subtitle_in_text: bool = Field(default=False, alias="includeSubtitleInText")

    # Search
    filter_options: list[str] = Field(default_factory=list, alias="filterOptions")
    search_prefixes: dict[str, str] = Field(default_factory=dict, alias="searchPrefixes")
    attribute_delimiters: dict[str, str] = Field(
        default_factory=dict, alias="attributeDelimiters"
    )

    # Deck building
    add_n_value: int = Field(default=4, alias="addNValue")
    max_copies_per_card: int | None = Field(default=None, alias="maxCopiesPerCard")
    deck_validation: DeckValidationConfig = Field(
        default_factory=DeckValidationConfig, alias="deckValidation"
    )

    octgn: OctgnConfig = Field(default_factory=OctgnConfig)
    export_options: ExportOptions = Field(default_factory=ExportOptions, alias="exportOptions")

    @field_validator("group_options", mode="before")
    @classmethod
    def _coerce_group_options(cls, value: Any) -> Any:
        return value or [DEFAULT_GROUP_BY]

    @field_validator("group_sort", mode="before")
    @classmethod
    def _drop_non_object_sorts(cls, value: Any) -> Any:
        # A group whose sort entry is not an object falls back to name order
        if not isinstance(value, dict):
            return {}
        return {k: v for k, v in value.items() if isinstance(v, dict)}

    @property
    def default_group_by(self) -> str:
        return self.group_options[0]

    def effective_group_order(self) -> list[str]:
        """Configured group order, or the fallback order."""
        if self.group_order is not None:
            return list(self.group_order)
        return list(FALLBACK_GROUP_ORDER)
