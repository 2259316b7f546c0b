"""
FastAPI Application
===================

HTTP front end of the Feza Logistics financial assistant.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api import __version__
from api.middleware.session import SessionMiddleware
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.assistant import ask_assistant, input_error_response, run_assistant
from api.routes.assistant import router as assistant_router
from api.routes.health import router as health_router
from api.schemas import ErrorResponse
from feza_assistant import (
    AssistantConfig,
    CompositeInteractionLog,
    FinancialAssistant,
    InteractionLog,
    JsonlInteractionLog,
    MockGateway,
    OllamaGateway,
    QueryExecutor,
    SqlInteractionLog,
)
from feza_assistant.assistant import QUERY_REQUIRED
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing

logger = get_logger(__name__)

# Canned answers served when FEZA_USE_MOCK_MODEL is set
DEMO_RESPONSES = {
    "top 5 clients": [
        "SQL: SELECT client_name, SUM(paid_amount) AS total FROM clients "
        "GROUP BY client_name ORDER BY total DESC LIMIT 5"
    ],
    "unpaid": ["SQL: SELECT COUNT(*) AS unpaid FROM clients WHERE status = 'NOT PAID'"],
    "latest": ["SQL: SELECT * FROM clients ORDER BY date DESC LIMIT 1"],
    "gross profit": [
        "Gross profit is revenue minus the cost of goods sold. It shows how much "
        "a business earns from its core operations before overheads."
    ],
}


def create_assistant(config: AssistantConfig) -> FinancialAssistant:
    """Create and configure the assistant from ``config``."""
    if config.use_mock_model:
        gateway = MockGateway(responses=DEMO_RESPONSES)
    else:
        gateway = OllamaGateway(config)

    executor = QueryExecutor.from_url(config.database_url)

    sql_log = SqlInteractionLog(executor.engine)
    sql_log.ensure_table()
    sinks: list[InteractionLog] = [sql_log]
    if config.interaction_log_path:
        sinks.append(JsonlInteractionLog(config.interaction_log_path))

    return FinancialAssistant(
        gateway=gateway,
        executor=executor,
        interaction_log=CompositeInteractionLog(sinks),
        config=config,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    logger.info("Starting financial assistant API", version=__version__)

    if getattr(app.state, "assistant", None) is None:
        app.state.assistant = create_assistant(app.state.config)

    yield

    gateway = app.state.assistant.gateway
    if isinstance(gateway, OllamaGateway):
        gateway.close()
    logger.info("Shutting down financial assistant API")


def create_app(
    config: AssistantConfig | None = None,
    assistant: FinancialAssistant | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Assistant configuration (default: from ``FEZA_*`` env vars)
        assistant: Prebuilt assistant; built at startup when omitted
    """
    setup_logging()

    app = FastAPI(
        title="Feza Logistics Financial Assistant",
        description=(
            "Answers finance questions in plain language. Company-data questions "
            "are answered through validated, read-only SQL."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config or (assistant.config if assistant else AssistantConfig.from_env())
    app.state.assistant = assistant

    # Last added runs first: CORS, then telemetry, then session
    app.add_middleware(SessionMiddleware)
    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(assistant_router)

    setup_metrics(app, version=__version__, environment=os.getenv("ENVIRONMENT", "development"))
    app.add_route("/metrics", metrics_endpoint)
    setup_tracing(app)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Report malformed request bodies as a missing query.

        A malformed question body still goes through the assistant as an
        empty query, so it gets its interaction-log entry.
        """
        request_id = getattr(request.state, "request_id", None)
        if request.scope.get("endpoint") is ask_assistant and hasattr(request.state, "user_id"):
            logger.info("assistant_body_rejected", request_id=request_id, errors=len(exc.errors()))
            result = await run_in_threadpool(
                run_assistant, request, request.app.state.assistant, None
            )
            return input_error_response(result, request_id)

        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=QUERY_REQUIRED,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, "request_id", None)
        logger.exception("unhandled_api_error", request_id=request_id)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
