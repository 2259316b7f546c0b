"""
Feza Financial Assistant
========================

Natural-language questions over the Feza Logistics books, answered by a
locally hosted model with read-only SQL mediation.
"""

from feza_assistant.assistant import FinancialAssistant
from feza_assistant.classifier import ResponseClassifier
from feza_assistant.config import AssistantConfig
from feza_assistant.context import BusinessSnapshot
from feza_assistant.executor import QueryExecutor
from feza_assistant.guard import SqlExtractor, SqlGuard, ensure_limit, strip_sql_comments
from feza_assistant.interaction_log import (
    CompositeInteractionLog,
    InteractionLog,
    JsonlInteractionLog,
    MemoryInteractionLog,
    SqlInteractionLog,
)
from feza_assistant.llm import MockGateway, ModelGateway, OllamaGateway
from feza_assistant.models import (
    AssistantResponse,
    ClassifiedIntent,
    ErrorKind,
    IntentKind,
    InteractionLogEntry,
    InteractionStatus,
    Outcome,
    ValidatedSql,
)
from feza_assistant.narrator import ResultNarrator
from feza_assistant.prompts import PromptBuilder

__version__ = "0.1.0"

__all__ = [
    # Models
    "AssistantResponse",
    "ClassifiedIntent",
    "ErrorKind",
    "IntentKind",
    "InteractionLogEntry",
    "InteractionStatus",
    "Outcome",
    "ValidatedSql",
    # Pipeline
    "AssistantConfig",
    "FinancialAssistant",
    "PromptBuilder",
    "BusinessSnapshot",
    "ResponseClassifier",
    "SqlExtractor",
    "SqlGuard",
    "ensure_limit",
    "strip_sql_comments",
    "QueryExecutor",
    "ResultNarrator",
    # Logging sinks
    "CompositeInteractionLog",
    "InteractionLog",
    "JsonlInteractionLog",
    "MemoryInteractionLog",
    "SqlInteractionLog",
    # LLM
    "ModelGateway",
    "MockGateway",
    "OllamaGateway",
]
