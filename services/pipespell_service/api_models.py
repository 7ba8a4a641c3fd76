"""HTTP request and response models for the Pipespell Service.

These models belong to the HTTP surface only; the engine adapter works with
CheckRequest and SuggestionRecord from ``models``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from services.pipespell_service.models import SuggestionRecord


class SpellCheckHttpRequest(BaseModel):
    """Body of ``POST /v1/check``."""

    text: str = Field(..., description="Text to check, may span several lines")
    language: str | None = Field(
        default=None, description="Dictionary code; resolved by the service when absent"
    )
    charset: str | None = Field(
        default=None, description="Charset used to talk to the engine"
    )


class SuggestionResponseItem(BaseModel):
    """One misspelled term as returned to clients."""

    term: str
    position: int
    count: int
    candidates: list[str]
    line: int | None = None

    @classmethod
    def from_record(cls, record: SuggestionRecord) -> SuggestionResponseItem:
        return cls(
            term=record.term,
            position=record.position,
            count=record.suggestion_count,
            candidates=list(record.candidates),
            line=record.line_number,
        )


class SpellCheckHttpResponse(BaseModel):
    """Body of a successful ``POST /v1/check``."""

    language: str
    charset: str
    suggestions: list[SuggestionResponseItem] = Field(default_factory=list)
    total_misspellings: int
    processing_time_ms: int
