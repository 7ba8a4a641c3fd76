"""Spell check routes for the Pipespell Service."""

from __future__ import annotations

import time
from typing import Any, NoReturn

from dishka import FromDishka
from pydantic import ValidationError
from quart import Blueprint, request
from quart_dishka import inject
from werkzeug.datastructures import LanguageAccept

from services.libs.pipespell_service_libs.error_handling import (
    raise_external_service_error,
    raise_parsing_error,
    raise_processing_error,
    raise_service_unavailable,
    raise_timeout_error,
    raise_validation_error,
)
from services.libs.pipespell_service_libs.error_handling.correlation import CorrelationContext
from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.api_models import (
    SpellCheckHttpRequest,
    SpellCheckHttpResponse,
    SuggestionResponseItem,
)
from services.pipespell_service.config import Settings
from services.pipespell_service.exceptions import (
    CheckError,
    EngineTimeoutError,
    PipeIOError,
    ProcessStartError,
    ProtocolError,
)
from services.pipespell_service.models import CheckRequest
from services.pipespell_service.protocols import CheckRunnerProtocol

logger = create_service_logger("pipespell_service.api.spellcheck")
spellcheck_bp = Blueprint("spellcheck_routes", __name__)

SERVICE = "pipespell-service"
OPERATION = "spell_check"
ENGINE = "spellcheck_engine"


def _normalize_language_tag(tag: str) -> str:
    """Convert an HTTP language tag (fr-CH) to a dictionary code (fr_CH)."""
    return tag.strip().replace("-", "_")


def resolve_language(
    requested: str | None, accept_languages: LanguageAccept | None, settings: Settings
) -> str:
    """
    Pick the dictionary language for a request.

    An explicit non-blank language wins; otherwise the best Accept-Language
    match (restricted to SUPPORTED_LANGUAGES when configured); otherwise
    DEFAULT_LANGUAGE.
    """
    if requested is not None and requested.strip():
        return requested.strip()

    if accept_languages:
        if settings.SUPPORTED_LANGUAGES:
            supported = {
                _normalize_language_tag(lang).replace("_", "-"): lang
                for lang in settings.SUPPORTED_LANGUAGES
            }
            best = accept_languages.best_match(list(supported))
            if best in supported:
                return supported[best]
            if best:
                # best_match may answer with a primary tag, e.g. "en" for "en-US"
                for tag, lang in supported.items():
                    if tag.split("-", 1)[0].lower() == best.lower():
                        return lang
        elif accept_languages.best and accept_languages.best != "*":
            return _normalize_language_tag(accept_languages.best)

    return settings.DEFAULT_LANGUAGE


def raise_for_check_error(error: CheckError, corr: CorrelationContext) -> NoReturn:
    """Translate a core CheckError into the matching structured service error."""
    if isinstance(error, ProcessStartError):
        raise_service_unavailable(
            service=SERVICE,
            operation=OPERATION,
            unavailable_service=ENGINE,
            message=error.message,
            correlation_id=corr.uuid,
        )
    if isinstance(error, EngineTimeoutError):
        raise_timeout_error(
            service=SERVICE,
            operation=OPERATION,
            timeout_seconds=error.timeout_seconds,
            message=error.message,
            correlation_id=corr.uuid,
        )
    if isinstance(error, PipeIOError):
        raise_external_service_error(
            service=SERVICE,
            operation=OPERATION,
            external_service=ENGINE,
            message=error.message,
            correlation_id=corr.uuid,
        )
    if isinstance(error, ProtocolError):
        raise_parsing_error(
            service=SERVICE,
            operation=OPERATION,
            parse_target="engine_reply",
            message=error.message,
            correlation_id=corr.uuid,
            raw_line=error.raw_line,
        )
    raise_processing_error(
        service=SERVICE,
        operation=OPERATION,
        message=error.message,
        correlation_id=corr.uuid,
    )


def _reject(
    metrics: dict[str, Any], corr: CorrelationContext, field: str, message: str
) -> NoReturn:
    metrics["spellcheck_total"].labels(status="validation_error").inc()
    metrics["api_errors_total"].labels(endpoint="/v1/check", error_type="validation_error").inc()
    raise_validation_error(
        service=SERVICE,
        operation=OPERATION,
        field=field,
        message=message,
        correlation_id=corr.uuid,
    )


@spellcheck_bp.route("/v1/check", methods=["POST"])
@inject
async def check_spelling(
    corr: FromDishka[CorrelationContext],
    runner: FromDishka[CheckRunnerProtocol],
    settings: FromDishka[Settings],
    metrics: FromDishka[dict[str, Any]],
) -> tuple[dict[str, Any], int]:
    """
    Check text for misspelled terms.

    Returns:
        Tuple of (response_dict, status_code)

    Raises:
        ServiceError: For validation errors and engine failures
    """
    request_start = time.perf_counter()

    request_data = await request.get_json(silent=True)
    if not isinstance(request_data, dict):
        _reject(metrics, corr, "request_body", "Request body must be a JSON object")

    try:
        http_request = SpellCheckHttpRequest(**request_data)
    except ValidationError as e:
        logger.warning(f"Spell check request validation failed: {e}", correlation_id=corr.original)
        _reject(metrics, corr, "request_format", f"Invalid request format: {e}")

    if len(http_request.text) > settings.MAX_TEXT_LENGTH:
        _reject(
            metrics,
            corr,
            "text",
            f"Text exceeds the maximum of {settings.MAX_TEXT_LENGTH} characters",
        )

    language = resolve_language(http_request.language, request.accept_languages, settings)
    if settings.SUPPORTED_LANGUAGES and language not in settings.SUPPORTED_LANGUAGES:
        _reject(metrics, corr, "language", f"Language {language!r} is not supported")

    try:
        check_request = CheckRequest(
            text=http_request.text,
            language=language,
            charset=http_request.charset or settings.DEFAULT_CHARSET,
        )
    except ValidationError as e:
        _reject(metrics, corr, "request_format", f"Invalid check parameters: {e}")

    logger.info(
        "Starting spell check",
        correlation_id=corr.original,
        language=check_request.language,
        charset=check_request.charset,
        text_length=len(check_request.text),
    )

    try:
        records = await runner.run(check_request)
    except CheckError as e:
        logger.error(
            f"Spell check failed: {e.message}",
            correlation_id=corr.original,
            error_type=type(e).__name__,
        )
        metrics["api_errors_total"].labels(
            endpoint="/v1/check", error_type=type(e).__name__
        ).inc()
        raise_for_check_error(e, corr)

    processing_time_ms = max(1, int((time.perf_counter() - request_start) * 1000))
    response = SpellCheckHttpResponse(
        language=check_request.language,
        charset=check_request.charset,
        suggestions=[SuggestionResponseItem.from_record(record) for record in records],
        total_misspellings=len(records),
        processing_time_ms=processing_time_ms,
    )

    logger.info(
        f"Spell check completed: {len(records)} misspellings in {processing_time_ms}ms",
        correlation_id=corr.original,
    )
    return response.model_dump(mode="json"), 200
