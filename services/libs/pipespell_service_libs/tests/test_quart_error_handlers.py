"""Tests for the Quart error handler registration."""

from __future__ import annotations

from uuid import uuid4

import pytest
from quart import Quart
from werkzeug.exceptions import NotFound

from services.libs.pipespell_service_libs.error_handling import (
    ErrorCode,
    raise_timeout_error,
    raise_validation_error,
)
from services.libs.pipespell_service_libs.error_handling.quart import (
    register_error_handlers,
    status_for_error_code,
)


@pytest.fixture
def app() -> Quart:
    app = Quart(__name__)
    register_error_handlers(app)

    @app.route("/invalid")
    async def invalid() -> str:
        raise_validation_error(
            service="svc",
            operation="op",
            field="text",
            message="text is required",
            correlation_id=uuid4(),
        )

    @app.route("/slow")
    async def slow() -> str:
        raise_timeout_error(
            service="svc",
            operation="op",
            timeout_seconds=1.0,
            message="too slow",
            correlation_id=uuid4(),
        )

    @app.route("/crash")
    async def crash() -> str:
        raise RuntimeError("unexpected")

    @app.route("/missing")
    async def missing() -> str:
        raise NotFound()

    return app


class TestStatusMapping:
    """Tests for error code to HTTP status mapping."""

    @pytest.mark.parametrize(
        "error_code, status",
        [
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.SERVICE_UNAVAILABLE, 503),
            (ErrorCode.TIMEOUT, 504),
            (ErrorCode.EXTERNAL_SERVICE_ERROR, 502),
            (ErrorCode.CONNECTION_ERROR, 502),
            (ErrorCode.PARSING_ERROR, 500),
            (ErrorCode.PROCESSING_ERROR, 500),
        ],
    )
    def test_status_for_error_code(self, error_code: ErrorCode, status: int) -> None:
        assert status_for_error_code(error_code.value) == status


class TestRegisteredHandlers:
    """Tests for the handlers installed by register_error_handlers."""

    @pytest.mark.asyncio
    async def test_service_error_renders_structured_body(self, app: Quart) -> None:
        async with app.test_client() as client:
            response = await client.get("/invalid")
            data = await response.get_json()

            assert response.status_code == 400
            assert data["error"]["error_code"] == "VALIDATION_ERROR"
            assert data["error"]["details"]["field"] == "text"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_504(self, app: Quart) -> None:
        async with app.test_client() as client:
            response = await client.get("/slow")

            assert response.status_code == 504

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_500(self, app: Quart) -> None:
        async with app.test_client() as client:
            response = await client.get("/crash")
            data = await response.get_json()

            assert response.status_code == 500
            assert data["error"]["error_code"] == "UNKNOWN_ERROR"
            assert data["error"]["message"] == "Internal server error"

    @pytest.mark.asyncio
    async def test_http_exceptions_pass_through(self, app: Quart) -> None:
        async with app.test_client() as client:
            response = await client.get("/missing")

            assert response.status_code == 404
