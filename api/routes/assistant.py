"""
Assistant Routes
================

Main API endpoint for natural-language questions.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.schemas import (
    AssistantRequest,
    AssistantResponseBody,
    ErrorResponse,
    StageRecordResponse,
)
from feza_assistant.assistant import FinancialAssistant
from feza_assistant.models import AssistantResponse, ErrorKind
from observability.metrics import track_assistant_request

router = APIRouter(prefix="/api/v1", tags=["Assistant"])


def get_assistant(request: Request) -> FinancialAssistant:
    """Dependency to get the configured assistant from app state."""
    return request.app.state.assistant


def run_assistant(
    request: Request,
    assistant: FinancialAssistant,
    query: str | None,
) -> AssistantResponse:
    """Answer ``query`` for the caller's session and record request metrics."""
    result = assistant.handle(
        query,
        user_id=request.state.user_id,
        session_id=request.state.session_id,
        request_id=getattr(request.state, "request_id", None),
    )

    outcome = result.type.value if result.success else result.error_kind.value
    track_assistant_request(
        outcome=outcome,
        duration_seconds=(result.execution_time_ms or 0) / 1000,
        result_count=result.result_count,
    )
    return result


def input_error_response(result: AssistantResponse, request_id: str | None) -> JSONResponse:
    """Build the 400 reply for a rejected question."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=result.error, request_id=request_id).model_dump(
            exclude_none=True
        ),
    )


@router.post(
    "/assistant",
    response_model=AssistantResponseBody,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing, malformed or over-long query"},
        401: {"model": ErrorResponse, "description": "No authenticated session"},
    },
    summary="Ask the financial assistant",
    description=(
        "Answers general finance questions directly and company-data questions "
        "through read-only SQL against the books"
    ),
)
def ask_assistant(
    request: Request,
    body: AssistantRequest | None = None,
    include_trail: bool = False,
    assistant: FinancialAssistant = Depends(get_assistant),
):
    """
    Answer one question.

    Pipeline failures are reported with HTTP 200, ``success: false`` and a
    ``user_message``; only a missing, malformed or over-long query is a 400.

    Args:
        request: Incoming request carrying the session identity
        body: Question payload
        include_trail: Include the stage trail in the response
        assistant: Injected FinancialAssistant instance

    Returns:
        AssistantResponseBody, or a 400 JSON error for a rejected query
    """
    request_id = getattr(request.state, "request_id", None)
    result = run_assistant(request, assistant, body.query if body else None)

    if result.error_kind == ErrorKind.INPUT_ERROR:
        return input_error_response(result, request_id)

    trail = None
    if include_trail:
        trail = [
            StageRecordResponse(
                timestamp=record.timestamp,
                state=record.state.value,
                data=record.data,
            )
            for record in result.trail
        ]

    return AssistantResponseBody(
        **result.to_payload(),
        request_id=request_id,
        trail=trail,
    )
