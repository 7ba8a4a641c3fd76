"""Error handling utilities for pipespell services."""

from services.libs.pipespell_service_libs.error_handling.error_models import (
    ErrorCode,
    ErrorDetail,
)
from services.libs.pipespell_service_libs.error_handling.factories import (
    create_error_detail,
    raise_external_service_error,
    raise_parsing_error,
    raise_processing_error,
    raise_service_unavailable,
    raise_timeout_error,
    raise_validation_error,
)
from services.libs.pipespell_service_libs.error_handling.service_error import ServiceError

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "ServiceError",
    "create_error_detail",
    "raise_external_service_error",
    "raise_parsing_error",
    "raise_processing_error",
    "raise_service_unavailable",
    "raise_timeout_error",
    "raise_validation_error",
]
