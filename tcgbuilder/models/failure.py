"""
Failure envelope for API responses.

Known, explainable failures are raised as `KnownError` (or a subclass) and
rendered by the application's exception handler as an `ApiResponse` with a
known-failure outcome. Deck validation violations are NOT failures: they
are advisory and travel inside successful responses.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    IMPORT_REJECTED = "import_rejected"
    EXPORT_DISABLED = "export_disabled"

    # Resource failures
    NOT_FOUND = "not_found"
    GAME_DATA_UNAVAILABLE = "game_data_unavailable"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope carrying either data or a classified failure."""

    outcome: OutcomeType
    data: T | None = None
    failure: FailureDetail | None = None

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )

    @classmethod
    def unknown_failure(cls, detail: str | None = None) -> "ApiResponse[Any]":
        """Create an unknown failure response for unexpected exceptions."""
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="Something went wrong and the cause is unknown. Try again.",
                detail=detail,
                suggestion="If this persists, please report the issue.",
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class DeckImportError(KnownError):
    """
    A deck file was rejected.

    Raised before any deck is produced, so a failed import never leaves a
    partially imported deck behind.
    """

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        super().__init__(
            kind=FailureKind.IMPORT_REJECTED,
            message=f"Deck import rejected: {reason}",
            detail=detail,
            suggestion="Check that the file is an unmodified export for this game.",
            status_code=400,
        )


class GameDataError(KnownError):
    """A game's settings or card catalog could not be loaded."""

    def __init__(self, game: str, reason: str, status_code: int = 404):
        self.game = game
        super().__init__(
            kind=(
                FailureKind.NOT_FOUND if status_code == 404 else FailureKind.GAME_DATA_UNAVAILABLE
            ),
            message=f"Game data for '{game}' is not available",
            detail=reason,
            suggestion="Check the game identifier or download the game's data.",
            status_code=status_code,
        )


class ExportDisabledError(KnownError):
    """The requested export format is switched off for this game."""

    def __init__(self, game: str, fmt: str):
        self.fmt = fmt
        super().__init__(
            kind=FailureKind.EXPORT_DISABLED,
            message=f"Export format '{fmt}' is not enabled for '{game}'",
            suggestion="Choose one of the formats the game offers.",
            status_code=400,
        )
