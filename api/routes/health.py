"""
Health Check Routes
===================

Kubernetes-compatible health and readiness endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from api import __version__
from api.schemas import HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the service and its dependencies",
)
def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    The database is required; a model server that does not answer only
    degrades the service, since conversational failures are handled.

    Returns:
        HealthResponse with current service status
    """
    assistant = request.app.state.assistant
    checks = {
        "api": True,
        "database": assistant.executor.ping(),
        "model": assistant.gateway.ping(),
    }

    if not checks["database"]:
        status = HealthStatus.UNHEALTHY
    elif not checks["model"]:
        status = HealthStatus.DEGRADED
    else:
        status = HealthStatus.HEALTHY

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to handle requests",
)
def readiness_check(request: Request) -> ReadinessResponse:
    """
    Readiness check for Kubernetes.

    Used to determine if the pod should receive traffic.

    Returns:
        ReadinessResponse indicating readiness status
    """
    assistant = getattr(request.app.state, "assistant", None)
    checks = {
        "assistant_configured": assistant is not None,
        "database": assistant is not None and assistant.executor.ping(),
    }

    return ReadinessResponse(
        ready=all(checks.values()),
        checks=checks,
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Simple liveness probe",
)
async def liveness_check() -> dict:
    """
    Liveness check for Kubernetes.

    Returns:
        Simple OK response
    """
    return {"status": "ok"}
