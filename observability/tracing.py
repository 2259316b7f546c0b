"""
OpenTelemetry Tracing
=====================

Distributed tracing for request flow visualization.

The pipeline opens its own spans (``assistant.handle``, ``assistant.generate``,
``assistant.execute``, ``assistant.narrate``); this module wires the provider
and the FastAPI instrumentation around them.
"""

import os

import structlog
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = structlog.get_logger(__name__)

_provider: TracerProvider | None = None


def setup_tracing(
    app: FastAPI,
    service_name: str = "feza-assistant",
    otlp_endpoint: str | None = None,
) -> None:
    """
    Set up OpenTelemetry tracing for the application.

    Args:
        app: FastAPI application instance
        service_name: Name of the service for traces
        otlp_endpoint: OTLP collector endpoint (default: from
                       OTEL_EXPORTER_OTLP_ENDPOINT, ``disabled`` when unset)
    """
    global _provider

    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "disabled")

    # The global provider can only be set once per process
    if _provider is None:
        resource = Resource.create({
            SERVICE_NAME: service_name,
            "service.version": "0.1.0",
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        })
        _provider = TracerProvider(resource=resource)

        if endpoint and endpoint != "disabled":
            _provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
            )
            logger.info("tracing_exporter_configured", endpoint=endpoint)

        trace.set_tracer_provider(_provider)

    FastAPIInstrumentor.instrument_app(app)

