"""
Query Executor
==============

Runs validated SQL against the relational store.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from feza_assistant.models import ErrorKind, Outcome, QueryResult, ValidatedSql

logger = structlog.get_logger(__name__)


def _scalar(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


class QueryExecutor:
    """
    Executes statements that already passed the SQL guard.

    The statement is the complete query text, so it goes to the driver as is
    with no bound parameters. The connection is never committed; leaving the ``with`` block
    rolls back whatever the driver opened.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "QueryExecutor":
        """Create an executor with its own SQLAlchemy engine."""
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_engine(database_url, **engine_kwargs))

    def execute(self, sql: ValidatedSql) -> Outcome[QueryResult]:
        """
        Run ``sql`` and return its rows.

        Args:
            sql: Statement produced by ``SqlGuard``

        Returns:
            Outcome with rows as ``{column: scalar}`` dicts in store order, or
            an ``execution_error`` failure
        """
        try:
            with self.engine.connect() as conn:
                result = conn.exec_driver_sql(str(sql))
                if not result.returns_rows:
                    return Outcome.success([])
                rows = [
                    {key: _scalar(value) for key, value in row._mapping.items()}
                    for row in result
                ]
                conn.rollback()
        except Exception as e:
            # Driver errors SQLAlchemy does not wrap still belong to this stage
            logger.error(
                "query_execution_failed",
                sql=str(sql),
                error=str(e),
                error_type=type(e).__name__,
            )
            return Outcome.failure(
                ErrorKind.EXECUTION_ERROR,
                "Database query failed",
                error_type=type(e).__name__,
            )

        return Outcome.success(rows)

    def ping(self) -> bool:
        """Check that the store answers ``SELECT 1``."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
