"""Shared fixtures for Pipespell Service tests."""

from __future__ import annotations

from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from services.libs.pipespell_service_libs.config_enums import Environment

from services.pipespell_service.config import Settings
from services.pipespell_service.metrics import _create_metrics


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Fresh registry so metric assertions are isolated per test."""
    return CollectorRegistry()


@pytest.fixture
def test_metrics(metrics_registry: CollectorRegistry) -> dict[str, Any]:
    return _create_metrics(metrics_registry)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with short deadlines and the stub engine."""
    return Settings(
        ENVIRONMENT=Environment.TESTING,
        SERVICE_NAME="test-pipespell",
        VERSION="9.9.9",
        USE_STUB_ENGINE=True,
        DEFAULT_LANGUAGE="en",
        SUPPORTED_LANGUAGES=[],
        ENGINE_STARTUP_TIMEOUT_SECONDS=1.0,
        ENGINE_READ_TIMEOUT_SECONDS=1.0,
        CHECK_TIMEOUT_SECONDS=5.0,
        MAX_CONCURRENT_CHECKS=2,
    )
