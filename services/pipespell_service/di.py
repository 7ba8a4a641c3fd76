"""Dependency injection configuration for the Pipespell Service using Dishka."""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from typing import Any

from dishka import Provider, Scope, provide
from prometheus_client import REGISTRY, CollectorRegistry
from quart import g, request

from services.libs.pipespell_service_libs.error_handling.correlation import (
    CorrelationContext,
    extract_correlation_context_from_request,
)
from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.config import Settings, settings
from services.pipespell_service.implementations.async_runner import ThreadedCheckRunner
from services.pipespell_service.implementations.spell_check_coordinator import (
    SpellCheckCoordinator,
)
from services.pipespell_service.implementations.stub_engine import StubProcessSpawner
from services.pipespell_service.implementations.subprocess_spawner import SubprocessSpawner
from services.pipespell_service.metrics import METRICS
from services.pipespell_service.protocols import (
    CheckRunnerProtocol,
    ProcessSpawnerProtocol,
    SpellCheckCoordinatorProtocol,
)

logger = create_service_logger("pipespell_service.di")


class CoreInfrastructureProvider(Provider):
    """Provider for core infrastructure dependencies (settings, metrics, correlation context)."""

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide service settings."""
        return settings

    @provide(scope=Scope.APP)
    def provide_metrics_registry(self) -> CollectorRegistry:
        """Provide the global Prometheus metrics registry shared across collectors."""
        return REGISTRY

    @provide(scope=Scope.APP)
    def provide_metrics(self) -> dict[str, Any]:
        """Provide shared Prometheus metrics dictionary."""
        return METRICS

    @provide(scope=Scope.REQUEST)
    def provide_correlation_context(self) -> CorrelationContext:
        """Provide correlation context set by the middleware, or read it from the request."""
        ctx = getattr(g, "correlation_context", None)
        if isinstance(ctx, CorrelationContext):
            return ctx

        return extract_correlation_context_from_request(request)


class ServiceImplementationsProvider(Provider):
    """Provider for service implementation dependencies."""

    @provide(scope=Scope.APP)
    def provide_process_spawner(self, settings: Settings) -> ProcessSpawnerProtocol:
        """Provide the engine spawner, falling back to the stub when the engine is missing."""
        if settings.USE_STUB_ENGINE:
            return StubProcessSpawner()

        if shutil.which(settings.ENGINE_COMMAND) is None:
            logger.warning(
                f"Engine executable {settings.ENGINE_COMMAND!r} not found on PATH, "
                "using stub implementation"
            )
            return StubProcessSpawner()

        return SubprocessSpawner(
            env=settings.ENGINE_ENVIRONMENT,
            terminate_grace_seconds=settings.ENGINE_TERMINATE_GRACE_SECONDS,
        )

    @provide(scope=Scope.APP)
    def provide_spell_check_coordinator(
        self,
        settings: Settings,
        spawner: ProcessSpawnerProtocol,
        metrics: dict[str, Any],
    ) -> SpellCheckCoordinator:
        """Provide the coordinator that runs one-shot engine sessions."""
        return SpellCheckCoordinator(settings, spawner, metrics)

    @provide(scope=Scope.APP)
    def provide_spell_check_coordinator_protocol(
        self, coordinator: SpellCheckCoordinator
    ) -> SpellCheckCoordinatorProtocol:
        """Provide the coordinator as protocol interface."""
        return coordinator

    @provide(scope=Scope.APP)
    def provide_check_runner(
        self,
        settings: Settings,
        coordinator: SpellCheckCoordinator,
    ) -> Iterator[CheckRunnerProtocol]:
        """Provide the worker pool for blocking checks, shut down with the container."""
        runner = ThreadedCheckRunner(
            coordinator,
            max_workers=settings.MAX_CONCURRENT_CHECKS,
            check_timeout=settings.CHECK_TIMEOUT_SECONDS,
        )
        try:
            yield runner
        finally:
            runner.shutdown()
