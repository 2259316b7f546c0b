"""
Observability
=============

Structured logging, Prometheus metrics and OpenTelemetry tracing for the
assistant service.
"""

from observability.logging_config import bind_context, clear_context, get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics, track_assistant_request
from observability.tracing import setup_tracing

__all__ = [
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "setup_metrics",
    "metrics_endpoint",
    "track_assistant_request",
    "setup_tracing",
]
