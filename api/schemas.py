"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AssistantRequest(BaseModel):
    """Request body for an assistant question."""

    query: str | None = Field(
        default=None,
        description="Natural language question about the books or a general finance topic",
        examples=["List top 5 clients by payment"],
    )


class ResponseTypeEnum(str, Enum):
    """Kind of answer returned."""

    GENERAL = "general"
    DATABASE = "database"
    ERROR = "error"


class StageRecordResponse(BaseModel):
    """Single stage transition of a request."""

    timestamp: str = Field(..., description="ISO 8601 timestamp")
    state: str = Field(..., description="Pipeline state entered")
    data: dict[str, Any] = Field(default_factory=dict)


class AssistantResponseBody(BaseModel):
    """Response body for an assistant question."""

    success: bool = Field(..., description="Whether the question was answered")
    response: str | None = Field(None, description="Answer text")
    sql: str | None = Field(None, description="Executed SQL, for transparency")
    type: ResponseTypeEnum | None = Field(None, description="Kind of answer")
    result_count: int | None = Field(None, description="Rows returned by the query")
    execution_time_ms: int | None = Field(None, description="Pipeline time in milliseconds")
    error: str | None = Field(None, description="Error code or input error message")
    user_message: str | None = Field(None, description="Safe message to show the user")
    request_id: str | None = Field(None, description="Correlation identifier")
    trail: list[StageRecordResponse] | None = Field(
        None,
        description="Stage trail (if requested)",
    )


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
