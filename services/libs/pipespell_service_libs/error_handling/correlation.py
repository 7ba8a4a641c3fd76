"""Request correlation context shared by HTTP handlers and logging."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from quart import Request

CORRELATION_HEADER = "X-Correlation-ID"
CORRELATION_QUERY_PARAM = "correlation_id"


@dataclass(frozen=True)
class CorrelationContext:
    """
    Correlation identifiers for one request.

    ``original`` is the value supplied by the caller (echoed back verbatim),
    ``uuid`` is its UUID form, generated when the original is not a UUID.
    """

    original: str
    uuid: UUID
    source: str


def parse_correlation_id(value: str | None, source: str) -> CorrelationContext:
    """Build a context from a raw correlation value, generating one when absent."""
    if not value or not value.strip():
        generated = uuid4()
        return CorrelationContext(original=str(generated), uuid=generated, source="generated")

    value = value.strip()
    try:
        return CorrelationContext(original=value, uuid=UUID(value), source=source)
    except ValueError:
        return CorrelationContext(original=value, uuid=uuid4(), source=source)


def extract_correlation_context_from_request(request: Request) -> CorrelationContext:
    """Read the correlation ID from the request header, then the query string."""
    header_value = request.headers.get(CORRELATION_HEADER)
    if header_value and header_value.strip():
        return parse_correlation_id(header_value, "header")

    return parse_correlation_id(request.args.get(CORRELATION_QUERY_PARAM), "query")
