"""
Interaction Log
===============

Append-only audit sinks for assistant requests.

Sinks may raise; the orchestrator treats persistence as best-effort and never
lets a sink failure change the response.
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    insert,
)
from sqlalchemy.engine import Engine

from feza_assistant.models import InteractionLogEntry

metadata = MetaData()

ai_chat_logs = Table(
    "ai_chat_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False),
    Column("session_id", String(128), nullable=False),
    Column("request_id", String(64)),
    Column("user_query", Text, nullable=False),
    Column("sql_executed", Text),
    Column("ai_response", Text),
    Column("result_count", Integer, nullable=False, default=0),
    Column("elapsed_ms", Integer, nullable=False, default=0),
    Column("status", String(20), nullable=False),
    Column("error_detail", Text),
    Column("created_at", DateTime, server_default=func.now()),
)


class InteractionLog(ABC):
    """Destination for one ``InteractionLogEntry`` per request."""

    @abstractmethod
    def record(self, entry: InteractionLogEntry) -> None:
        """Persist ``entry``. May raise on storage failure."""
        pass


class SqlInteractionLog(InteractionLog):
    """Writes entries to the ``ai_chat_logs`` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def ensure_table(self) -> None:
        """Create ``ai_chat_logs`` if it does not exist yet."""
        metadata.create_all(self.engine, tables=[ai_chat_logs])

    def record(self, entry: InteractionLogEntry) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                insert(ai_chat_logs).values(
                    user_id=entry.user_id,
                    session_id=entry.session_id,
                    request_id=entry.request_id,
                    user_query=entry.user_query,
                    sql_executed=entry.generated_sql,
                    ai_response=entry.narrative_response,
                    result_count=entry.result_count,
                    elapsed_ms=entry.elapsed_ms,
                    status=entry.status.value,
                    error_detail=entry.error_detail,
                )
            )


class JsonlInteractionLog(InteractionLog):
    """
    JSON Lines file sink.

    One record per line for streaming processing.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, entry: InteractionLogEntry) -> None:
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read(self) -> list[dict]:
        """Load every record written so far."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


class MemoryInteractionLog(InteractionLog):
    """Keeps entries in memory. For local development and tests."""

    def __init__(self) -> None:
        self.entries: list[InteractionLogEntry] = []
        self._lock = threading.Lock()

    def record(self, entry: InteractionLogEntry) -> None:
        with self._lock:
            self.entries.append(entry)


class CompositeInteractionLog(InteractionLog):
    """Fans an entry out to several sinks; re-raises the first failure after all ran."""

    def __init__(self, sinks: list[InteractionLog]) -> None:
        self.sinks = sinks

    def record(self, entry: InteractionLogEntry) -> None:
        first_error: Exception | None = None
        for sink in self.sinks:
            try:
                sink.record(entry)
            except Exception as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error
