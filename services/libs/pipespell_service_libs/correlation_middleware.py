"""Quart middleware that attaches a CorrelationContext to every request."""

from __future__ import annotations

from quart import Quart, Response, g, request

from services.libs.pipespell_service_libs.error_handling.correlation import (
    CORRELATION_HEADER,
    extract_correlation_context_from_request,
)
from services.libs.pipespell_service_libs.logging_utils import bind_request_context


def setup_correlation_middleware(app: Quart) -> None:
    """Store the request correlation context on ``g`` and echo it in responses."""

    @app.before_request
    async def attach_correlation_context() -> None:
        ctx = extract_correlation_context_from_request(request)
        g.correlation_context = ctx
        bind_request_context(ctx.original, method=request.method, path=request.path)

    @app.after_request
    async def echo_correlation_header(response: Response) -> Response:
        ctx = getattr(g, "correlation_context", None)
        if ctx is not None:
            response.headers[CORRELATION_HEADER] = ctx.original
        return response
