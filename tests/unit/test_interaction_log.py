"""
Unit Tests for Interaction Log Sinks
====================================
"""

import pytest
from sqlalchemy import select
from sqlalchemy.engine import Engine

from feza_assistant.interaction_log import (
    CompositeInteractionLog,
    InteractionLog,
    JsonlInteractionLog,
    MemoryInteractionLog,
    SqlInteractionLog,
    ai_chat_logs,
)
from feza_assistant.models import InteractionLogEntry, InteractionStatus


def make_entry(**overrides) -> InteractionLogEntry:
    fields = {
        "user_id": "42",
        "session_id": "sess-1",
        "user_query": "List top 5 clients by payment",
        "status": InteractionStatus.SUCCESS,
        "elapsed_ms": 120,
        "result_count": 5,
        "generated_sql": "SELECT client_name FROM clients LIMIT 5",
        "narrative_response": "Kigali Freight leads.",
        "request_id": "req-1",
    }
    fields.update(overrides)
    return InteractionLogEntry(**fields)


class FailingLog(InteractionLog):
    def record(self, entry: InteractionLogEntry) -> None:
        raise RuntimeError("disk full")


class TestInteractionLogEntry:
    """Tests for the entry record."""

    def test_to_dict(self) -> None:
        data = make_entry(status=InteractionStatus.BLOCKED, error_detail="forbidden_keyword: DROP").to_dict()
        assert data["status"] == "blocked"
        assert data["error_detail"] == "forbidden_keyword: DROP"
        assert data["created_at"]


class TestSqlInteractionLog:
    """Tests for the ai_chat_logs table sink."""

    def test_record(self, engine: Engine) -> None:
        log = SqlInteractionLog(engine)
        log.ensure_table()
        log.record(make_entry())
        log.record(make_entry(status=InteractionStatus.ERROR, result_count=0, generated_sql=None))

        with engine.connect() as conn:
            rows = conn.execute(select(ai_chat_logs).order_by(ai_chat_logs.c.id)).mappings().all()

        assert len(rows) == 2
        assert rows[0]["user_id"] == "42"
        assert rows[0]["sql_executed"] == "SELECT client_name FROM clients LIMIT 5"
        assert rows[0]["status"] == "success"
        assert rows[0]["created_at"] is not None
        assert rows[1]["status"] == "error"
        assert rows[1]["sql_executed"] is None

    def test_ensure_table_is_repeatable(self, engine: Engine) -> None:
        log = SqlInteractionLog(engine)
        log.ensure_table()
        log.ensure_table()


class TestJsonlInteractionLog:
    """Tests for the JSON Lines sink."""

    def test_append_and_read(self, tmp_path) -> None:
        log = JsonlInteractionLog(tmp_path / "logs" / "interactions.jsonl")
        log.record(make_entry())
        log.record(make_entry(user_query="Hi", status=InteractionStatus.CONVERSATIONAL))

        records = log.read()
        assert [r["user_query"] for r in records] == ["List top 5 clients by payment", "Hi"]
        assert records[1]["status"] == "conversational"

    def test_read_missing_file(self, tmp_path) -> None:
        assert JsonlInteractionLog(tmp_path / "none.jsonl").read() == []


class TestCompositeInteractionLog:
    """Tests for fan-out to several sinks."""

    def test_all_sinks_receive_entry(self) -> None:
        first, second = MemoryInteractionLog(), MemoryInteractionLog()
        CompositeInteractionLog([first, second]).record(make_entry())
        assert len(first.entries) == len(second.entries) == 1

    def test_failure_still_reaches_other_sinks(self) -> None:
        memory = MemoryInteractionLog()
        with pytest.raises(RuntimeError, match="disk full"):
            CompositeInteractionLog([FailingLog(), memory]).record(make_entry())
        assert len(memory.entries) == 1
