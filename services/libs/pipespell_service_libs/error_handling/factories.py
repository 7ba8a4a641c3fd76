"""
Factory functions that build an ErrorDetail and raise a ServiceError.

Every factory takes the raising service and operation plus the request
correlation ID so that errors can be traced end to end.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, NoReturn
from uuid import UUID

from services.libs.pipespell_service_libs.error_handling.error_models import (
    ErrorCode,
    ErrorDetail,
)
from services.libs.pipespell_service_libs.error_handling.service_error import ServiceError


def create_error_detail(
    error_code: ErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID,
    details: dict[str, Any] | None = None,
) -> ErrorDetail:
    """Build an ErrorDetail stamped with the current UTC time."""
    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id,
        timestamp=datetime.now(UTC),
        service=service,
        operation=operation,
        details=details or {},
    )


def _raise(
    error_code: ErrorCode,
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    details: dict[str, Any],
) -> NoReturn:
    raise ServiceError(
        create_error_detail(
            error_code=error_code,
            message=message,
            service=service,
            operation=operation,
            correlation_id=correlation_id,
            details=details,
        )
    )


def raise_validation_error(
    service: str,
    operation: str,
    field: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a VALIDATION_ERROR for an invalid request field."""
    _raise(
        ErrorCode.VALIDATION_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"field": field, **additional_context},
    )


def raise_processing_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a PROCESSING_ERROR for an internal processing failure."""
    _raise(
        ErrorCode.PROCESSING_ERROR,
        service,
        operation,
        message,
        correlation_id,
        dict(additional_context),
    )


def raise_service_unavailable(
    service: str,
    operation: str,
    unavailable_service: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a SERVICE_UNAVAILABLE error for a dependency that could not be used."""
    _raise(
        ErrorCode.SERVICE_UNAVAILABLE,
        service,
        operation,
        message,
        correlation_id,
        {"unavailable_service": unavailable_service, **additional_context},
    )


def raise_timeout_error(
    service: str,
    operation: str,
    timeout_seconds: float,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a TIMEOUT error for an operation that exceeded its deadline."""
    _raise(
        ErrorCode.TIMEOUT,
        service,
        operation,
        message,
        correlation_id,
        {"timeout_seconds": timeout_seconds, **additional_context},
    )


def raise_external_service_error(
    service: str,
    operation: str,
    external_service: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise an EXTERNAL_SERVICE_ERROR for a failed exchange with a dependency."""
    _raise(
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"external_service": external_service, **additional_context},
    )


def raise_parsing_error(
    service: str,
    operation: str,
    parse_target: str,
    message: str,
    correlation_id: UUID,
    **additional_context: Any,
) -> NoReturn:
    """Raise a PARSING_ERROR for output that could not be understood."""
    _raise(
        ErrorCode.PARSING_ERROR,
        service,
        operation,
        message,
        correlation_id,
        {"parse_target": parse_target, **additional_context},
    )
