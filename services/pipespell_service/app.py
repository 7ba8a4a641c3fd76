"""
Pipespell Service Application.

This module implements the Pipespell Service HTTP API using the Quart
framework. The service checks text for misspellings by driving the
external spell-check engine in pipe mode.
"""

from __future__ import annotations

import time

from quart import Quart

from services.libs.pipespell_service_libs.correlation_middleware import (
    setup_correlation_middleware,
)
from services.libs.pipespell_service_libs.error_handling.quart import register_error_handlers
from services.libs.pipespell_service_libs.logging_utils import (
    configure_service_logging,
    create_service_logger,
)
from services.libs.pipespell_service_libs.metrics_middleware import setup_metrics_middleware

from services.pipespell_service.api.health_routes import health_bp
from services.pipespell_service.api.spellcheck_routes import spellcheck_bp
from services.pipespell_service.config import settings
from services.pipespell_service.startup_setup import initialize_services, shutdown_services

configure_service_logging(
    "pipespell-service",
    environment=settings.ENVIRONMENT.value,
    log_level=settings.LOG_LEVEL,
)
logger = create_service_logger("pipespell_service.app")

app = Quart(__name__)

# Track service startup time for uptime calculation
SERVICE_START_TIME = time.time()

setup_correlation_middleware(app)
register_error_handlers(app)
setup_metrics_middleware(
    app=app,
    request_count_metric_name="request_count",
    request_duration_metric_name="request_duration",
    status_label_name="status",
    logger_name="pipespell_service.metrics",
)


@app.before_serving
async def startup() -> None:
    """Initialize services."""
    await initialize_services(app, settings)
    app.extensions["service_start_time"] = SERVICE_START_TIME
    logger.info("Pipespell Service startup completed successfully")


@app.after_serving
async def shutdown() -> None:
    """Gracefully shutdown all services."""
    await shutdown_services(app)


app.register_blueprint(health_bp)
app.register_blueprint(spellcheck_bp)
