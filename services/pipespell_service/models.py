"""Value types exchanged between the check API and the engine adapter."""

from __future__ import annotations

import codecs

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CHARSET = "ISO-8859-1"


class CheckRequest(BaseModel):
    """One spell-check request: text plus the dictionary and charset to use.

    The default language is resolved by the caller; only the charset has a
    default here.
    """

    text: str
    language: str
    charset: str = DEFAULT_CHARSET

    model_config = ConfigDict(frozen=True)

    @field_validator("language")
    @classmethod
    def _language_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("language must not be blank")
        return value

    @field_validator("charset")
    @classmethod
    def _charset_known(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"unknown charset: {value}") from e
        return value


class SuggestionRecord(BaseModel):
    """Decoded engine verdict for one term."""

    term: str = ""
    is_misspelled: bool
    suggestion_count: int = 0
    position: int = 0
    candidates: list[str] = Field(default_factory=list)
    line_number: int | None = None

    model_config = ConfigDict(frozen=True)
