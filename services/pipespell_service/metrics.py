"""Shared Prometheus metrics for the Pipespell Service.

This module defines a singleton dictionary `METRICS` containing all
Prometheus collectors used by the Pipespell Service. The metrics are created
once at import-time and are injected via Dishka so HTTP routes, the
coordinator and engine sessions share the same collectors.
"""

from __future__ import annotations

from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


def _create_metrics(registry: CollectorRegistry = REGISTRY) -> dict[str, Any]:
    """Create Prometheus metric collectors for the Pipespell Service."""

    return {
        # HTTP request metrics
        "request_count": Counter(
            "pipespell_service_http_requests_total",
            "Total number of HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        ),
        "request_duration": Histogram(
            "pipespell_service_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        ),
        # Spell check metrics
        "spellcheck_total": Counter(
            "pipespell_service_spellcheck_total",
            "Total spell checks by outcome",
            ["status"],
            registry=registry,
        ),
        "spellcheck_duration_seconds": Histogram(
            "pipespell_service_spellcheck_duration_seconds",
            "Time spent in one complete check, engine spawn included",
            ["language"],
            registry=registry,
        ),
        "misspellings_found": Histogram(
            "pipespell_service_misspellings_found",
            "Misspelled terms reported per successful check",
            buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250),
            registry=registry,
        ),
        # Engine process lifecycle metrics
        "engine_starts_total": Counter(
            "pipespell_service_engine_starts_total",
            "Engine process start attempts by outcome",
            ["outcome"],
            registry=registry,
        ),
        "engine_cleanup_failures_total": Counter(
            "pipespell_service_engine_cleanup_failures_total",
            "Failures while releasing engine streams or the process",
            ["resource"],
            registry=registry,
        ),
        # API error tracking metrics
        "api_errors_total": Counter(
            "pipespell_service_api_errors_total",
            "Total API errors by endpoint and error type",
            ["endpoint", "error_type"],
            registry=registry,
        ),
    }


# Singleton instance shared across the application
METRICS: dict[str, Any] = _create_metrics()
