"""API Middleware."""

from api.middleware.session import SessionMiddleware
from api.middleware.telemetry import TelemetryMiddleware

__all__ = ["SessionMiddleware", "TelemetryMiddleware"]
