"""
Data Models
===========

Core data structures for the financial assistant pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

QueryResult = list[dict[str, Any]]


class ErrorKind(str, Enum):
    """Failure kinds a pipeline stage can report."""

    INPUT_ERROR = "input_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_RESPONSE = "invalid_response"
    NO_SQL_FOUND = "no_sql_found"
    NOT_SELECT_ONLY = "not_select_only"
    FORBIDDEN_KEYWORD = "forbidden_keyword"
    EXECUTION_ERROR = "execution_error"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class StageError:
    """A typed failure returned across a component boundary."""

    kind: ErrorKind
    detail: str
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success value or ``StageError`` returned by every pipeline stage."""

    value: Optional[T] = None
    error: Optional[StageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str, **details: Any) -> "Outcome[T]":
        return cls(error=StageError(kind=kind, detail=detail, details=details))


class ModelFailureKind(str, Enum):
    """Why a single call to the text-generation service failed."""

    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    MALFORMED_BODY = "malformed_body"
    EMPTY_TEXT = "empty_text"

    @property
    def is_connectivity(self) -> bool:
        return self in {
            ModelFailureKind.TIMEOUT,
            ModelFailureKind.CONNECTION_ERROR,
            ModelFailureKind.HTTP_ERROR,
        }


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call generation settings sent alongside a prompt."""

    temperature: float
    max_tokens: int
    top_p: float = 0.9
    stop: tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptContext:
    """Everything the prompt builder needs for one request."""

    schema_description: str
    business_rules: tuple[str, ...]
    few_shot_examples: tuple[tuple[str, str], ...]
    live_metrics: Optional[dict[str, str]] = None


class IntentKind(str, Enum):
    """What the model's first answer asks the backend to do."""

    CONVERSATIONAL = "conversational"
    DATABASE_QUERY = "database_query"


@dataclass(frozen=True)
class ClassifiedIntent:
    """Classified model response."""

    kind: IntentKind
    text: str

    @property
    def is_database_query(self) -> bool:
        return self.kind == IntentKind.DATABASE_QUERY


@dataclass(frozen=True)
class SqlCandidate:
    """
    Statement pulled out of model text, before validation.

    ``trailing`` holds whatever was chained after the first semicolon in the
    same span, so that keyword checks still see a smuggled second statement.
    """

    text: str
    trailing: str = ""
    source: str = "select"


class ValidatedSql(str):
    """SQL text that passed the read-only allow-list and carries a LIMIT."""


class VerificationStatus(Enum):
    """Status of a verification check."""

    PASSED = "passed"
    FAILED = "failed"


@dataclass
class VerificationResult:
    """Result of a single verification step."""

    verifier_name: str
    status: VerificationStatus
    message: str
    error_kind: Optional[ErrorKind] = None
    details: dict = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == VerificationStatus.PASSED


class InteractionStatus(str, Enum):
    """Outcome recorded in the interaction log."""

    SUCCESS = "success"
    BLOCKED = "blocked"
    ERROR = "error"
    CONVERSATIONAL = "conversational"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class InteractionLogEntry:
    """One audited request. Created once, never mutated."""

    user_id: str
    session_id: str
    user_query: str
    status: InteractionStatus
    elapsed_ms: int
    result_count: int = 0
    generated_sql: Optional[str] = None
    narrative_response: Optional[str] = None
    error_detail: Optional[str] = None
    request_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "session_id": self.session_id,
            "user_query": self.user_query,
            "generated_sql": self.generated_sql,
            "narrative_response": self.narrative_response,
            "result_count": self.result_count,
            "elapsed_ms": self.elapsed_ms,
            "status": self.status.value,
            "error_detail": self.error_detail,
            "request_id": self.request_id,
            "created_at": self.created_at,
        }


class PipelineState(str, Enum):
    """States a request moves through inside the orchestrator."""

    RECEIVED = "received"
    PROMPT_BUILT = "prompt_built"
    MODEL_CALLED = "model_called"
    CLASSIFIED = "classified"
    EXTRACTED = "extracted"
    VALIDATED = "validated"
    EXECUTED = "executed"
    NARRATED = "narrated"
    RESPONDED = "responded"
    FAILED = "failed"


@dataclass
class StageRecord:
    """Single entry in a request's stage trail."""

    timestamp: str
    state: PipelineState
    data: dict = field(default_factory=dict)


class ResponseType(str, Enum):
    """``type`` field of the outbound response."""

    GENERAL = "general"
    DATABASE = "database"
    ERROR = "error"


@dataclass
class AssistantResponse:
    """Final result of one assistant request."""

    success: bool
    response: Optional[str] = None
    sql: Optional[str] = None
    type: Optional[ResponseType] = None
    result_count: Optional[int] = None
    execution_time_ms: Optional[int] = None
    error: Optional[str] = None
    user_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    trail: list[StageRecord] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Outbound JSON body; unset fields are omitted."""
        payload: dict[str, Any] = {"success": self.success}
        for name in (
            "response",
            "sql",
            "result_count",
            "execution_time_ms",
            "error",
            "user_message",
        ):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.type is not None:
            payload["type"] = self.type.value
        return payload
