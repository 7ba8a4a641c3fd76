"""Shared Prometheus metrics middleware for pipespell HTTP services."""

from __future__ import annotations

import time

from quart import Quart, Response, current_app, g, request

from services.libs.pipespell_service_libs.logging_utils import create_service_logger

logger = create_service_logger("pipespell.metrics_middleware")


def setup_metrics_middleware(
    app: Quart,
    request_count_metric_name: str = "request_count",
    request_duration_metric_name: str = "request_duration",
    status_label_name: str = "status_code",
    logger_name: str | None = None,
) -> None:
    """Setup Prometheus metrics middleware for a Quart application.

    Args:
        app: The Quart application to configure
        request_count_metric_name: Name of the request counter metric
        request_duration_metric_name: Name of the request duration metric
        status_label_name: Name of the status code label
        logger_name: Optional custom logger name for this service

    Note:
        The metrics instances must be stored in app.extensions["metrics"] as a dict
        containing the metric objects.
    """
    service_logger = create_service_logger(logger_name) if logger_name else logger

    @app.before_request
    async def record_start_time() -> None:
        g.start_time = time.perf_counter()

    @app.after_request
    async def record_request_metrics(response: Response) -> Response:
        try:
            start_time = getattr(g, "start_time", None)
            extensions = getattr(current_app, "extensions", {})
            metrics = extensions.get("metrics", {}) if extensions else {}

            if start_time is not None and metrics:
                duration = time.perf_counter() - start_time
                endpoint = request.path
                method = request.method

                request_count = metrics.get(request_count_metric_name)
                request_duration = metrics.get(request_duration_metric_name)

                if request_count:
                    request_count.labels(
                        method=method,
                        endpoint=endpoint,
                        **{status_label_name: str(response.status_code)},
                    ).inc()
                if request_duration:
                    request_duration.labels(method=method, endpoint=endpoint).observe(duration)

        except Exception as e:
            service_logger.error(f"Error recording request metrics: {e}")

        return response
