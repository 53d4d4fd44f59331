"""
Base models and exceptions for character extraction.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..models import NormalizedCharacter


class ExtractionError(Exception):
    """Raised when a creature payload cannot be fetched or holds no creature at all.

    Provides a user-facing message explaining what went wrong
    and, where possible, how to fix it.
    """


class ExtractionResult(BaseModel):
    """Result of a character extraction."""

    character: NormalizedCharacter = Field(description="The normalized character")
    mapped_fields: list[str] = Field(
        default_factory=list,
        description="Sections that were successfully mapped from the source",
    )
    unmapped_fields: list[str] = Field(
        default_factory=list,
        description="Sections that failed and were left at their defaults",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during extraction",
    )
    overrides: list[str] = Field(
        default_factory=list,
        description="Source modifiers that overrode the computed ability modifier",
    )
    source: str = Field(default="payload", description='Extraction source: "url", "file" or "payload"')
    source_id: str | None = Field(
        default=None,
        description="DiceCloud creature id",
    )

    @property
    def status(self) -> str:
        if self.unmapped_fields and not self.mapped_fields:
            return "failed"
        if self.warnings or self.unmapped_fields:
            return "success_with_warnings"
        return "success"
