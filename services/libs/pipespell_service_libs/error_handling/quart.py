"""Quart integration: render ServiceError as structured JSON responses."""

from __future__ import annotations

from uuid import uuid4

from quart import Quart, Response, g, jsonify
from werkzeug.exceptions import HTTPException

from services.libs.pipespell_service_libs.error_handling.error_models import ErrorCode
from services.libs.pipespell_service_libs.error_handling.factories import create_error_detail
from services.libs.pipespell_service_libs.error_handling.service_error import ServiceError
from services.libs.pipespell_service_libs.logging_utils import create_service_logger

logger = create_service_logger("pipespell.error_handling.quart")

ERROR_CODE_TO_STATUS: dict[str, int] = {
    ErrorCode.VALIDATION_ERROR.value: 400,
    ErrorCode.CONFIGURATION_ERROR.value: 500,
    ErrorCode.TIMEOUT.value: 504,
    ErrorCode.SERVICE_UNAVAILABLE.value: 503,
    ErrorCode.CONNECTION_ERROR.value: 502,
    ErrorCode.EXTERNAL_SERVICE_ERROR.value: 502,
}


def status_for_error_code(error_code: str) -> int:
    """Map an error code to its HTTP status, defaulting to 500."""
    return ERROR_CODE_TO_STATUS.get(error_code, 500)


def register_error_handlers(app: Quart) -> None:
    """Register ServiceError and fallback handlers on the application."""

    @app.errorhandler(ServiceError)
    async def handle_service_error(error: ServiceError) -> tuple[Response, int]:
        status_code = status_for_error_code(error.error_code)
        logger.warning(
            "Service error returned to client",
            error_code=error.error_code,
            operation=error.operation,
            status_code=status_code,
            correlation_id=error.correlation_id,
        )
        return jsonify({"error": error.to_dict()}), status_code

    @app.errorhandler(Exception)
    async def handle_unexpected_error(error: Exception) -> Response | tuple[Response, int]:
        if isinstance(error, HTTPException):
            return error.get_response()

        ctx = getattr(g, "correlation_context", None)
        correlation_id = ctx.uuid if ctx is not None else uuid4()
        logger.error(
            f"Unhandled error: {error}",
            correlation_id=str(correlation_id),
            exc_info=True,
        )
        detail = create_error_detail(
            error_code=ErrorCode.UNKNOWN_ERROR,
            message="Internal server error",
            service=app.name,
            operation="unhandled",
            correlation_id=correlation_id,
        )
        return jsonify({"error": detail.model_dump(mode="json", exclude={"stack_trace"})}), 500
