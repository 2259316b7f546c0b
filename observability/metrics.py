"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

from feza_assistant.models import ErrorKind

ASSISTANT_PATH = "/api/v1/assistant"

BLOCKED_OUTCOMES = {ErrorKind.NOT_SELECT_ONLY.value, ErrorKind.FORBIDDEN_KEYWORD.value}
MODEL_OUTCOMES = {ErrorKind.SERVICE_UNAVAILABLE.value, ErrorKind.INVALID_RESPONSE.value}

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "feza_assistant",
    "Financial assistant application information",
    registry=REGISTRY,
)

# Request metrics
REQUESTS_TOTAL = Counter(
    "feza_assistant_requests_total",
    "Assistant requests by outcome (general, database or an error kind)",
    ["outcome"],
    registry=REGISTRY,
)

REQUEST_DURATION = Histogram(
    "feza_assistant_request_duration_seconds",
    "Pipeline duration in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

RESULT_ROWS = Histogram(
    "feza_assistant_result_rows",
    "Rows returned by executed queries",
    buckets=[0, 1, 5, 10, 25, 50, 100],
    registry=REGISTRY,
)

# Guard and model metrics
BLOCKED_SQL_TOTAL = Counter(
    "feza_assistant_blocked_sql_total",
    "Generated statements rejected by the SQL guard",
    ["kind"],
    registry=REGISTRY,
)

MODEL_FAILURES_TOTAL = Counter(
    "feza_assistant_model_failures_total",
    "Requests failed because the model gave no usable answer",
    ["kind"],
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

ACTIVE_REQUESTS = Gauge(
    "feza_assistant_active_requests",
    "Number of assistant requests currently being processed",
    registry=REGISTRY,
)


def setup_metrics(app: FastAPI, version: str = "0.1.0", environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Reported application version
        environment: Reported deployment environment
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_assistant_endpoint = request.url.path == ASSISTANT_PATH
        if is_assistant_endpoint:
            ACTIVE_REQUESTS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_assistant_endpoint:
                ACTIVE_REQUESTS.dec()


def track_assistant_request(
    outcome: str,
    duration_seconds: float,
    result_count: int | None = None,
) -> None:
    """
    Track metrics for a completed assistant request.

    Args:
        outcome: ``general``, ``database`` or the failure's error kind
        duration_seconds: Pipeline time
        result_count: Rows returned, for database answers
    """
    REQUESTS_TOTAL.labels(outcome=outcome).inc()
    REQUEST_DURATION.observe(duration_seconds)

    if result_count is not None:
        RESULT_ROWS.observe(result_count)
    if outcome in BLOCKED_OUTCOMES:
        BLOCKED_SQL_TOTAL.labels(kind=outcome).inc()
    if outcome in MODEL_OUTCOMES:
        MODEL_FAILURES_TOTAL.labels(kind=outcome).inc()


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        # Not in multiprocess mode
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )
