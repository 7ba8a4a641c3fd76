"""Startup and shutdown logic for the Pipespell Service."""

from __future__ import annotations

from dishka import make_async_container
from quart import Quart
from quart_dishka import QuartDishka

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

from services.pipespell_service.config import Settings
from services.pipespell_service.di import (
    CoreInfrastructureProvider,
    ServiceImplementationsProvider,
)
from services.pipespell_service.metrics import METRICS

logger = create_service_logger("pipespell_service.startup")


async def initialize_services(app: Quart, settings: Settings) -> None:
    """Initialize DI container, Quart-Dishka integration, and metrics."""
    try:
        container = make_async_container(
            CoreInfrastructureProvider(),
            ServiceImplementationsProvider(),
        )
        QuartDishka(app=app, container=container)

        app.extensions["dishka_container"] = container
        app.extensions["metrics"] = METRICS

        logger.info(
            "Pipespell Service DI container, quart-dishka integration "
            "and metrics initialized successfully.",
            engine_command=settings.ENGINE_COMMAND,
            use_stub_engine=settings.USE_STUB_ENGINE,
        )
    except Exception as e:
        logger.critical(f"Failed to initialize Pipespell Service: {e}", exc_info=True)
        raise


async def shutdown_services(app: Quart) -> None:
    """Close the DI container, which shuts down the check worker pool."""
    try:
        container = app.extensions.pop("dishka_container", None)
        if container is not None:
            await container.close()
        logger.info("Pipespell Service shutdown completed")
    except Exception as e:
        logger.error(f"Error during service shutdown: {e}", exc_info=True)
