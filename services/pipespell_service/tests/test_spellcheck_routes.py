"""Tests for the spell check HTTP route with dependency injection."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from dishka import Provider, Scope, make_async_container
from quart import Quart, g
from quart_dishka import QuartDishka
from werkzeug.datastructures import LanguageAccept

from services.libs.pipespell_service_libs.correlation_middleware import (
    setup_correlation_middleware,
)
from services.libs.pipespell_service_libs.error_handling.correlation import CorrelationContext
from services.libs.pipespell_service_libs.error_handling.quart import register_error_handlers

from services.pipespell_service.api.spellcheck_routes import resolve_language, spellcheck_bp
from services.pipespell_service.config import Settings
from services.pipespell_service.exceptions import (
    CheckError,
    EngineTimeoutError,
    PipeIOError,
    ProcessStartError,
    ProtocolError,
)
from services.pipespell_service.implementations.async_runner import ThreadedCheckRunner
from services.pipespell_service.implementations.spell_check_coordinator import (
    SpellCheckCoordinator,
)
from services.pipespell_service.implementations.stub_engine import StubProcessSpawner
from services.pipespell_service.protocols import CheckRunnerProtocol


def create_test_app(
    settings: Settings, runner: CheckRunnerProtocol, metrics: dict[str, Any]
) -> Quart:
    """Create test Quart app with the route, middleware and a test DI container."""
    app = Quart(__name__)
    setup_correlation_middleware(app)
    register_error_handlers(app)
    app.register_blueprint(spellcheck_bp)

    provider = Provider()
    provider.provide(lambda: settings, scope=Scope.APP, provides=Settings)
    provider.provide(lambda: runner, scope=Scope.APP, provides=CheckRunnerProtocol)
    provider.provide(lambda: metrics, scope=Scope.APP, provides=dict[str, Any])
    provider.provide(
        lambda: g.correlation_context, scope=Scope.REQUEST, provides=CorrelationContext
    )

    container = make_async_container(provider)
    QuartDishka(app=app, container=container)
    return app


@pytest.fixture
async def stub_app(
    test_settings: Settings, test_metrics: dict[str, Any]
) -> AsyncIterator[Quart]:
    coordinator = SpellCheckCoordinator(
        test_settings, StubProcessSpawner(languages=["en", "sv"]), test_metrics
    )
    runner = ThreadedCheckRunner(coordinator, max_workers=2, check_timeout=5.0)
    yield create_test_app(test_settings, runner, test_metrics)
    runner.shutdown()


def failing_app(settings: Settings, metrics: dict[str, Any], error: CheckError) -> Quart:
    runner = AsyncMock()
    runner.run.side_effect = error
    return create_test_app(settings, runner, metrics)


class TestCheckEndpoint:
    """Tests for POST /v1/check against the stub engine."""

    @pytest.mark.asyncio
    async def test_check_reports_misspellings(self, stub_app: Quart) -> None:
        async with stub_app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "helo world"})

            assert response.status_code == 200
            data = await response.get_json()
            assert data["language"] == "en"
            assert data["charset"] == "ISO-8859-1"
            assert data["total_misspellings"] == 1
            assert data["processing_time_ms"] >= 1
            assert data["suggestions"] == [
                {
                    "term": "helo",
                    "position": 1,
                    "count": 2,
                    "candidates": ["hello", "help"],
                    "line": 1,
                }
            ]

    @pytest.mark.asyncio
    async def test_clean_text_has_no_suggestions(self, stub_app: Quart) -> None:
        async with stub_app.test_client() as client:
            response = await client.post(
                "/v1/check", json={"text": "all fine here", "charset": "UTF-8"}
            )

            assert response.status_code == 200
            data = await response.get_json()
            assert data["suggestions"] == []
            assert data["total_misspellings"] == 0
            assert data["charset"] == "UTF-8"

    @pytest.mark.asyncio
    async def test_language_from_accept_language_header(
        self, test_settings: Settings, test_metrics: dict[str, Any]
    ) -> None:
        settings = test_settings.model_copy(update={"SUPPORTED_LANGUAGES": ["en", "sv"]})
        coordinator = SpellCheckCoordinator(settings, StubProcessSpawner(languages=["en", "sv"]))
        runner = ThreadedCheckRunner(coordinator, max_workers=1, check_timeout=5.0)
        app = create_test_app(settings, runner, test_metrics)

        try:
            async with app.test_client() as client:
                response = await client.post(
                    "/v1/check",
                    json={"text": "teh"},
                    headers={"Accept-Language": "de, sv;q=0.8"},
                )

                assert response.status_code == 200
                data = await response.get_json()
                assert data["language"] == "sv"
        finally:
            runner.shutdown()

    @pytest.mark.asyncio
    async def test_missing_dictionary_returns_service_unavailable(self, stub_app: Quart) -> None:
        async with stub_app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "hola", "language": "es"})

            assert response.status_code == 503
            data = await response.get_json()
            assert data["error"]["error_code"] == "SERVICE_UNAVAILABLE"
            assert data["error"]["details"]["unavailable_service"] == "spellcheck_engine"

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, stub_app: Quart) -> None:
        correlation_id = "0b8f4c1e-9a63-4d0c-8b7e-5f2d8c1a7e44"

        async with stub_app.test_client() as client:
            response = await client.post(
                "/v1/check",
                json={"text": "helo", "language": "xx"},
                headers={"X-Correlation-ID": correlation_id},
            )

            assert response.headers["X-Correlation-ID"] == correlation_id
            data = await response.get_json()
            assert data["error"]["correlation_id"] == correlation_id


class TestCheckEndpointValidation:
    """Tests for request validation on POST /v1/check."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"data": "not json"},
            {"json": ["a", "list"]},
            {"json": {"language": "en"}},
            {"json": {"text": 42}},
            {"json": {"text": "helo", "charset": "no-such-charset"}},
        ],
    )
    async def test_invalid_requests_return_400(
        self, stub_app: Quart, kwargs: dict[str, Any]
    ) -> None:
        async with stub_app.test_client() as client:
            response = await client.post("/v1/check", **kwargs)

            assert response.status_code == 400
            data = await response.get_json()
            assert data["error"]["error_code"] == "VALIDATION_ERROR"
            assert data["error"]["service"] == "pipespell-service"
            assert data["error"]["operation"] == "spell_check"

    @pytest.mark.asyncio
    async def test_text_over_limit_returns_400(
        self, test_settings: Settings, test_metrics: dict[str, Any]
    ) -> None:
        settings = test_settings.model_copy(update={"MAX_TEXT_LENGTH": 5})
        runner = AsyncMock()
        app = create_test_app(settings, runner, test_metrics)

        async with app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "far too long"})

            assert response.status_code == 400
            data = await response.get_json()
            assert data["error"]["details"]["field"] == "text"
        runner.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_language_returns_400(
        self, test_settings: Settings, test_metrics: dict[str, Any]
    ) -> None:
        settings = test_settings.model_copy(update={"SUPPORTED_LANGUAGES": ["en"]})
        runner = AsyncMock()
        app = create_test_app(settings, runner, test_metrics)

        async with app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "hej", "language": "sv"})

            assert response.status_code == 400
            data = await response.get_json()
            assert data["error"]["details"]["field"] == "language"
        runner.run.assert_not_called()


class TestCheckErrorMapping:
    """Tests for translating engine failures into HTTP errors."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, status_code, error_code",
        [
            (ProcessStartError("no dictionary"), 503, "SERVICE_UNAVAILABLE"),
            (EngineTimeoutError("too slow", timeout_seconds=1.5), 504, "TIMEOUT"),
            (PipeIOError("pipe closed"), 502, "EXTERNAL_SERVICE_ERROR"),
            (ProtocolError("bad reply", raw_line="%%"), 500, "PARSING_ERROR"),
            (CheckError("unexpected"), 500, "PROCESSING_ERROR"),
        ],
    )
    async def test_check_errors_map_to_status(
        self,
        test_settings: Settings,
        test_metrics: dict[str, Any],
        error: CheckError,
        status_code: int,
        error_code: str,
    ) -> None:
        app = failing_app(test_settings, test_metrics, error)

        async with app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "helo"})

            assert response.status_code == status_code
            data = await response.get_json()
            assert data["error"]["error_code"] == error_code
            assert data["error"]["message"] == error.message
            UUID(data["error"]["correlation_id"])

    @pytest.mark.asyncio
    async def test_protocol_error_includes_raw_line(
        self, test_settings: Settings, test_metrics: dict[str, Any]
    ) -> None:
        app = failing_app(
            test_settings, test_metrics, ProtocolError("bad reply", raw_line="& x 1:")
        )

        async with app.test_client() as client:
            response = await client.post("/v1/check", json={"text": "x"})

            data = await response.get_json()
            assert data["error"]["details"]["raw_line"] == "& x 1:"
            assert data["error"]["details"]["parse_target"] == "engine_reply"


class TestResolveLanguage:
    """Tests for request language resolution."""

    def test_explicit_language_wins(self, test_settings: Settings) -> None:
        accept = LanguageAccept([("sv", 1)])

        assert resolve_language(" de ", accept, test_settings) == "de"

    def test_blank_language_falls_through(self, test_settings: Settings) -> None:
        assert resolve_language("  ", None, test_settings) == "en"

    def test_accept_language_tag_is_normalized(self, test_settings: Settings) -> None:
        accept = LanguageAccept([("sv-SE", 1), ("en", 0.5)])

        assert resolve_language(None, accept, test_settings) == "sv_SE"

    def test_wildcard_accept_language_uses_default(self, test_settings: Settings) -> None:
        accept = LanguageAccept([("*", 1)])

        assert resolve_language(None, accept, test_settings) == "en"

    def test_supported_languages_restrict_negotiation(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"SUPPORTED_LANGUAGES": ["en_US", "de"]})
        accept = LanguageAccept([("fr", 1), ("en-US", 0.7)])

        assert resolve_language(None, accept, settings) == "en_US"

    def test_no_supported_match_uses_default(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"SUPPORTED_LANGUAGES": ["de"]})
        accept = LanguageAccept([("fr", 1)])

        assert resolve_language(None, accept, settings) == "en"
