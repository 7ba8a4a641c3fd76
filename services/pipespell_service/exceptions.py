"""Service-specific exceptions for the Pipespell Service."""

from __future__ import annotations

from services.libs.pipespell_service_libs.error_handling import ErrorCode


class CheckError(Exception):
    """Base exception for a failed spell check.

    Carries a human-readable message and, where available, the underlying
    fault as ``cause``.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        error_code: ErrorCode = ErrorCode.PROCESSING_ERROR,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.error_code = error_code

    def add_detail(self, detail: str) -> None:
        """Append engine-side detail, such as its stderr output, to the message."""
        self.message = f"{self.message}: {detail}"
        self.args = (self.message,)


class ProcessStartError(CheckError):
    """Raised when the engine cannot be spawned or its banner is invalid."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause, ErrorCode.SERVICE_UNAVAILABLE)


class ProtocolError(CheckError):
    """Raised when an engine reply line cannot be decoded."""

    def __init__(self, message: str, raw_line: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause, ErrorCode.PARSING_ERROR)
        self.raw_line = raw_line


class PipeIOError(CheckError):
    """Raised when the pipe to the engine breaks or closes mid-exchange."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        error_code: ErrorCode = ErrorCode.CONNECTION_ERROR,
    ) -> None:
        super().__init__(message, cause, error_code)


class EngineTimeoutError(PipeIOError):
    """Raised when the engine does not answer within its deadline."""

    def __init__(
        self, message: str, timeout_seconds: float, cause: BaseException | None = None
    ) -> None:
        super().__init__(message, cause, ErrorCode.TIMEOUT)
        self.timeout_seconds = timeout_seconds
