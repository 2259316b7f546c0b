"""
Financial Assistant
===================

Orchestrates one assistant request end to end.

Stages run strictly in sequence:

    received -> prompt_built -> model_called -> classified
        conversational: -> responded
        database query: -> extracted/validated -> executed -> narrated -> responded

Any stage may move the request to ``failed``. Every request, whatever its
path, produces exactly one response and one attempted interaction-log entry.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

import structlog
from opentelemetry import trace

from feza_assistant.classifier import ResponseClassifier
from feza_assistant.config import AssistantConfig
from feza_assistant.context import BusinessSnapshot
from feza_assistant.executor import QueryExecutor
from feza_assistant.guard import SqlGuard
from feza_assistant.interaction_log import InteractionLog
from feza_assistant.llm.base import ModelGateway
from feza_assistant.models import (
    AssistantResponse,
    ErrorKind,
    GenerationOptions,
    InteractionLogEntry,
    InteractionStatus,
    PipelineState,
    ResponseType,
    StageError,
    StageRecord,
    utc_now,
)
from feza_assistant.narrator import ResultNarrator
from feza_assistant.prompts import PromptBuilder

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

QUERY_REQUIRED = "Query required"
QUERY_TOO_LONG = "Query too long"

UNAVAILABLE_MESSAGE = "The assistant is temporarily unavailable. Please try again in a moment."
READ_ONLY_MESSAGE = "I can only retrieve data, not modify it."
EXECUTION_MESSAGE = "I had trouble running that query. Could you try rephrasing your question?"
REPHRASE_MESSAGE = "I'm having trouble processing that. Could you rephrase your question?"

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INPUT_ERROR: "Please type a question for the assistant.",
    ErrorKind.SERVICE_UNAVAILABLE: UNAVAILABLE_MESSAGE,
    ErrorKind.INVALID_RESPONSE: UNAVAILABLE_MESSAGE,
    ErrorKind.NO_SQL_FOUND: REPHRASE_MESSAGE,
    ErrorKind.NOT_SELECT_ONLY: READ_ONLY_MESSAGE,
    ErrorKind.FORBIDDEN_KEYWORD: READ_ONLY_MESSAGE,
    ErrorKind.EXECUTION_ERROR: EXECUTION_MESSAGE,
    ErrorKind.INTERNAL_ERROR: REPHRASE_MESSAGE,
}

BLOCKED_KINDS = {ErrorKind.NOT_SELECT_ONLY, ErrorKind.FORBIDDEN_KEYWORD}


@dataclass
class _RequestState:
    """Per-request bookkeeping. Never shared between requests."""

    trail: list[StageRecord] = field(default_factory=list)
    generated_sql: Optional[str] = None
    result_count: int = 0
    status: InteractionStatus = InteractionStatus.ERROR
    error_detail: Optional[str] = None

    def transition(self, state: PipelineState, **data) -> None:
        self.trail.append(StageRecord(timestamp=utc_now(), state=state, data=data))


class FinancialAssistant:
    """
    Main entry point of the assistant pipeline.

    The assistant:
    1. Builds the hybrid prompt, with a live business snapshot when available
    2. Asks the model for either a direct answer or a ``SQL:`` request
    3. Validates and executes requested SQL read-only
    4. Narrates the rows back into prose
    5. Logs the interaction, best-effort
    """

    def __init__(
        self,
        gateway: ModelGateway,
        executor: QueryExecutor,
        interaction_log: InteractionLog,
        config: AssistantConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
        classifier: ResponseClassifier | None = None,
        guard: SqlGuard | None = None,
        narrator: ResultNarrator | None = None,
        snapshot: BusinessSnapshot | None = None,
    ) -> None:
        """
        Initialize the assistant.

        Args:
            gateway: Text-generation gateway
            executor: Read-only query executor
            interaction_log: Audit sink, one entry per request
            config: Shared configuration (defaults to ``AssistantConfig()``)
            prompt_builder, classifier, guard, narrator: Stage overrides
            snapshot: Live-metrics collector; defaults to one backed by
                      ``executor`` when ``config.include_live_metrics`` is set
        """
        self.config = config or AssistantConfig()
        self.gateway = gateway
        self.executor = executor
        self.interaction_log = interaction_log
        self.prompt_builder = prompt_builder or PromptBuilder(self.config)
        self.classifier = classifier or ResponseClassifier()
        self.guard = guard or SqlGuard(self.config)
        self.narrator = narrator or ResultNarrator(gateway, self.config, self.prompt_builder)
        if snapshot is None and self.config.include_live_metrics:
            snapshot = BusinessSnapshot(executor)
        self.snapshot = snapshot

    @property
    def generation_options(self) -> GenerationOptions:
        return GenerationOptions(
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            top_p=self.config.top_p,
            stop=self.config.stop_sequences,
        )

    def handle(
        self,
        query: str | None,
        user_id: str,
        session_id: str,
        request_id: str | None = None,
    ) -> AssistantResponse:
        """
        Answer one user question.

        Args:
            query: Free-text question from the user, at most
                   ``config.max_query_chars`` characters after stripping
            user_id: Trusted identity from the session layer
            session_id: Session identifier from the session layer
            request_id: Correlation id for logs

        Returns:
            AssistantResponse; never raises
        """
        start_time = time.perf_counter()
        state = _RequestState()
        state.transition(PipelineState.RECEIVED)
        question = (query or "").strip()

        with tracer.start_as_current_span("assistant.handle") as span:
            try:
                response = self._run(question, state)
            except Exception as e:
                logger.exception("assistant_unhandled_error", request_id=request_id)
                response = self._fail(
                    state, StageError(kind=ErrorKind.INTERNAL_ERROR, detail=str(e))
                )

            response.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
            response.trail = state.trail
            span.set_attribute("assistant.status", state.status.value)
            span.set_attribute("assistant.result_count", state.result_count)

        self._record(
            InteractionLogEntry(
                user_id=str(user_id),
                session_id=str(session_id),
                user_query=question[: self.config.max_query_chars],
                status=state.status,
                elapsed_ms=response.execution_time_ms,
                result_count=state.result_count,
                generated_sql=state.generated_sql,
                narrative_response=response.response or response.user_message,
                error_detail=state.error_detail,
                request_id=request_id,
            )
        )

        logger.info(
            "assistant_request_completed",
            request_id=request_id,
            status=state.status.value,
            result_count=state.result_count,
            execution_time_ms=response.execution_time_ms,
        )
        return response

    def _run(self, question: str, state: _RequestState) -> AssistantResponse:
        if not question:
            return self._fail(
                state,
                StageError(kind=ErrorKind.INPUT_ERROR, detail=QUERY_REQUIRED),
                error=QUERY_REQUIRED,
            )
        if len(question) > self.config.max_query_chars:
            return self._fail(
                state,
                StageError(
                    kind=ErrorKind.INPUT_ERROR,
                    detail=f"{QUERY_TOO_LONG}: {len(question)} characters",
                ),
                error=QUERY_TOO_LONG,
                user_message=(
                    f"Please keep your question to {self.config.max_query_chars} "
                    "characters or fewer."
                ),
            )

        live_metrics = self.snapshot.collect() if self.snapshot is not None else None
        prompt = self.prompt_builder.build(question, live_metrics)
        state.transition(PipelineState.PROMPT_BUILT, live_metrics=bool(live_metrics))

        with tracer.start_as_current_span("assistant.generate"):
            generated = self.gateway.generate(prompt, self.generation_options)
        if not generated.ok:
            return self._fail(state, generated.error)
        state.transition(PipelineState.MODEL_CALLED, characters=len(generated.value))

        intent = self.classifier.classify(generated.value)
        state.transition(PipelineState.CLASSIFIED, intent=intent.kind.value)

        if not intent.is_database_query:
            state.status = InteractionStatus.CONVERSATIONAL
            state.transition(PipelineState.RESPONDED, type=ResponseType.GENERAL.value)
            return AssistantResponse(
                success=True,
                response=intent.text.strip(),
                type=ResponseType.GENERAL,
            )

        validated = self.guard.extract_and_validate(intent.text)
        if not validated.ok:
            return self._fail(state, validated.error)
        sql = str(validated.value)
        state.generated_sql = sql
        state.transition(PipelineState.EXTRACTED)
        state.transition(PipelineState.VALIDATED, sql=sql)

        with tracer.start_as_current_span("assistant.execute"):
            executed = self.executor.execute(validated.value)
        if not executed.ok:
            return self._fail(state, executed.error)
        rows = executed.value
        state.result_count = len(rows)
        state.transition(PipelineState.EXECUTED, result_count=len(rows))

        with tracer.start_as_current_span("assistant.narrate"):
            narrative = self.narrator.narrate(question, rows)
        state.transition(PipelineState.NARRATED)

        state.status = InteractionStatus.SUCCESS
        state.transition(PipelineState.RESPONDED, type=ResponseType.DATABASE.value)
        return AssistantResponse(
            success=True,
            response=narrative,
            sql=sql,
            type=ResponseType.DATABASE,
            result_count=len(rows),
        )

    def _fail(
        self,
        state: _RequestState,
        failure: StageError,
        error: str | None = None,
        user_message: str | None = None,
    ) -> AssistantResponse:
        state.status = (
            InteractionStatus.BLOCKED if failure.kind in BLOCKED_KINDS else InteractionStatus.ERROR
        )
        state.error_detail = f"{failure.kind.value}: {failure.detail}"
        if state.generated_sql is None:
            state.generated_sql = failure.details.get("sql")
        state.transition(PipelineState.FAILED, kind=failure.kind.value, **failure.details)
        return AssistantResponse(
            success=False,
            type=ResponseType.ERROR,
            error=error or failure.kind.value,
            error_kind=failure.kind,
            user_message=user_message or USER_MESSAGES[failure.kind],
        )

    def _record(self, entry: InteractionLogEntry) -> None:
        try:
            self.interaction_log.record(entry)
        except Exception as e:
            logger.warning(
                "interaction_log_failed",
                request_id=entry.request_id,
                error=str(e),
            )
