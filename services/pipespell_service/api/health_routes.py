"""Health and metrics routes for the Pipespell Service."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from dishka import FromDishka
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from quart import Blueprint, Response, current_app, jsonify
from quart_dishka import inject

from services.libs.pipespell_service_libs.error_handling.correlation import CorrelationContext
from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.config import Settings
from services.pipespell_service.implementations.spell_check_coordinator import (
    SpellCheckCoordinator,
)
from services.pipespell_service.implementations.stub_engine import StubProcessSpawner
from services.pipespell_service.models import CheckRequest

logger = create_service_logger("pipespell_service.api.health")
health_bp = Blueprint("health_routes", __name__)


def check_engine_health(
    coordinator: SpellCheckCoordinator, settings: Settings
) -> dict[str, Any]:
    """Start and stop one engine session for the default language."""
    check_start = time.perf_counter()
    session = coordinator.open_session(
        CheckRequest(text="", language=settings.DEFAULT_LANGUAGE, charset=settings.DEFAULT_CHARSET)
    )
    started = session.start()
    if started:
        session.stop()

    status: dict[str, Any] = {
        "status": "healthy" if started else "unhealthy",
        "language": settings.DEFAULT_LANGUAGE,
        "banner": session.banner,
        "response_time_ms": int((time.perf_counter() - check_start) * 1000),
    }
    if session.last_error is not None:
        status["error"] = session.last_error.message
    return status


@health_bp.route("/healthz")
@inject
async def health_check(
    settings: FromDishka[Settings],
    corr: FromDishka[CorrelationContext],
    coordinator: FromDishka[SpellCheckCoordinator],
) -> tuple[Response, int]:
    """Standardized health check endpoint with engine status."""
    checks = {"service_responsive": True, "dependencies_available": True}
    dependencies: dict[str, Any] = {}

    try:
        engine_status = await asyncio.to_thread(check_engine_health, coordinator, settings)
    except Exception as e:
        logger.warning(f"Engine health check failed: {e}", correlation_id=corr.original)
        engine_status = {"status": "unhealthy", "error": str(e)}

    engine_status["implementation"] = (
        "stub" if isinstance(coordinator.spawner, StubProcessSpawner) else "process"
    )
    engine_status["command"] = settings.ENGINE_COMMAND
    dependencies["spellcheck_engine"] = engine_status
    if engine_status["status"] != "healthy":
        checks["dependencies_available"] = False

    uptime_seconds = 0.0
    start_time = current_app.extensions.get("service_start_time")
    if start_time:
        uptime_seconds = time.time() - start_time

    overall_status = "healthy" if all(checks.values()) else "unhealthy"
    health_response = {
        "service": settings.SERVICE_NAME,
        "status": overall_status,
        "message": f"Pipespell Service is {overall_status}",
        "version": settings.VERSION,
        "uptime_seconds": uptime_seconds,
        "checks": checks,
        "dependencies": dependencies,
        "environment": settings.ENVIRONMENT.value,
        "correlation_id": corr.original,
    }

    status_code = 200 if overall_status == "healthy" else 503
    return jsonify(health_response), status_code


@health_bp.route("/metrics")
@inject
async def metrics(registry: FromDishka[CollectorRegistry]) -> Response:
    """Prometheus metrics endpoint."""
    try:
        metrics_data = generate_latest(registry)
        return Response(metrics_data, content_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        logger.error(f"Error generating metrics: {e}", exc_info=True)
        return Response("Error generating metrics", status=500)
