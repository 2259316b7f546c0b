"""
Business Context Snapshot
=========================

Live aggregate figures embedded in the main prompt so the model can answer
simple questions about the current state of the books.
"""

import structlog

from feza_assistant.executor import QueryExecutor
from feza_assistant.formatting import format_amount
from feza_assistant.models import ValidatedSql

logger = structlog.get_logger(__name__)

CLIENT_COUNT_SQL = ValidatedSql("SELECT COUNT(*) AS total_clients FROM clients LIMIT 1")
STATUS_COUNTS_SQL = ValidatedSql(
    "SELECT status, COUNT(*) AS clients FROM clients GROUP BY status ORDER BY status LIMIT 10"
)
CURRENCY_TOTALS_SQL = ValidatedSql(
    "SELECT currency, SUM(amount) AS billed, SUM(paid_amount) AS paid, "
    "SUM(due_amount) AS due FROM clients GROUP BY currency ORDER BY currency LIMIT 10"
)


class BusinessSnapshot:
    """Collects a small set of read-only aggregates from the clients table."""

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    def collect(self) -> dict[str, str] | None:
        """
        Gather the snapshot.

        Returns:
            Metric name to formatted value, or ``None`` if anything fails
        """
        try:
            return self._collect()
        except Exception as e:
            return self._omit(str(e))

    def _collect(self) -> dict[str, str] | None:
        metrics: dict[str, str] = {}

        count = self.executor.execute(CLIENT_COUNT_SQL)
        if not count.ok:
            return self._omit(count.error.detail)
        total = count.value[0]["total_clients"] if count.value else 0
        metrics["Total clients"] = format_amount(total or 0)

        statuses = self.executor.execute(STATUS_COUNTS_SQL)
        if not statuses.ok:
            return self._omit(statuses.error.detail)
        for row in statuses.value:
            metrics[f"Clients {row['status']}"] = format_amount(row["clients"])

        totals = self.executor.execute(CURRENCY_TOTALS_SQL)
        if not totals.ok:
            return self._omit(totals.error.detail)
        for row in totals.value:
            currency = row["currency"]
            metrics[f"Billed ({currency})"] = format_amount(row["billed"] or 0)
            metrics[f"Collected ({currency})"] = format_amount(row["paid"] or 0)
            metrics[f"Outstanding ({currency})"] = format_amount(row["due"] or 0)

        return metrics

    @staticmethod
    def _omit(detail: str) -> None:
        logger.warning("business_snapshot_unavailable", error=detail)
        return None
