"""
Pytest Fixtures
===============

Shared fixtures for financial assistant tests.
"""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from feza_assistant.assistant import FinancialAssistant
from feza_assistant.config import AssistantConfig
from feza_assistant.executor import QueryExecutor
from feza_assistant.guard import SqlGuard
from feza_assistant.interaction_log import MemoryInteractionLog
from feza_assistant.llm.mock import MockGateway
from feza_assistant.verifiers.base import VerificationChain
from feza_assistant.verifiers.keywords import ForbiddenKeywordVerifier
from feza_assistant.verifiers.select_only import SelectOnlyVerifier

TOP_CLIENTS_ANSWER = (
    "SQL: SELECT client_name, SUM(paid_amount) AS total FROM clients "
    "GROUP BY client_name ORDER BY total DESC LIMIT 5"
)
TOP_CLIENTS_NARRATION = "Your top client is Kigali Freight with 9,000,000 RWF paid."
GREETING_ANSWER = "Hello! I'm doing great. How can I help with your finances today?"
GROSS_PROFIT_ANSWER = (
    "Gross profit is revenue minus the cost of goods sold. It shows how much a "
    "business earns from its core operations before overheads and taxes."
)

CLIENT_ROWS = [
    ("FZ-001", "Kigali Freight", "2024-05-02", 9000000, 9000000, 0, "PAID", "RWF"),
    ("FZ-002", "Lake Kivu Traders", "2024-05-03", 8000000, 7000000, 1000000, "PARTIALLY PAID", "RWF"),
    ("FZ-003", "Nyabugogo Imports", "2024-05-04", 6000000, 6000000, 0, "PAID", "RWF"),
    ("FZ-004", "Huye Agro", "2024-05-05", 5000000, 4000000, 1000000, "PARTIALLY PAID", "RWF"),
    ("FZ-005", "Rubavu Textiles", "2024-05-06", 3000000, 3000000, 0, "PAID", "RWF"),
    ("FZ-006", "Musanze Coffee", "2024-05-07", 2500, 0, 2500, "NOT PAID", "USD"),
    ("FZ-007", "Akagera Tours", "2024-05-08", 1200.5, 100.25, 1100.25, "PARTIALLY PAID", "EUR"),
]


@pytest.fixture
def config() -> AssistantConfig:
    """Configuration with no retry delay and no live snapshot."""
    return AssistantConfig(
        retry_delay_seconds=0,
        include_live_metrics=False,
        database_url="sqlite://",
    )


@pytest.fixture
def engine() -> Engine:
    """In-memory SQLite store seeded with a clients table."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE clients ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, reg_no TEXT, client_name TEXT, "
                "date TEXT, amount NUMERIC, paid_amount NUMERIC, due_amount NUMERIC, "
                "status TEXT, currency TEXT)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO clients "
                "(reg_no, client_name, date, amount, paid_amount, due_amount, status, currency) "
                "VALUES (:reg_no, :client_name, :date, :amount, :paid, :due, :status, :currency)"
            ),
            [
                dict(
                    zip(
                        ("reg_no", "client_name", "date", "amount", "paid", "due", "status", "currency"),
                        row,
                    )
                )
                for row in CLIENT_ROWS
            ],
        )
    yield engine
    engine.dispose()


@pytest.fixture
def executor(engine: Engine) -> QueryExecutor:
    """Create a QueryExecutor on the seeded store."""
    return QueryExecutor(engine)


@pytest.fixture
def mock_gateway() -> MockGateway:
    """Create a mock gateway with canned answers for common questions."""
    return MockGateway(
        responses={
            "top 5 clients": [TOP_CLIENTS_ANSWER],
            "how are you": [GREETING_ANSWER],
            "gross profit": [GROSS_PROFIT_ANSWER],
            "delete the clients": ["SQL: DELETE FROM clients"],
            "drop everything": ["SQL: SELECT * FROM clients; DROP TABLE clients"],
            "broken query": ["SQL: SELECT * FROM no_such_table"],
            "no statement": ["SQL:\n```sql\n```"],
        },
        narrations={"top 5 clients": [TOP_CLIENTS_NARRATION]},
    )


@pytest.fixture
def interaction_log() -> MemoryInteractionLog:
    """Create an in-memory interaction log."""
    return MemoryInteractionLog()


@pytest.fixture
def assistant(
    mock_gateway: MockGateway,
    executor: QueryExecutor,
    interaction_log: MemoryInteractionLog,
    config: AssistantConfig,
) -> FinancialAssistant:
    """Create an assistant wired to the mock gateway and the seeded store."""
    return FinancialAssistant(
        gateway=mock_gateway,
        executor=executor,
        interaction_log=interaction_log,
        config=config,
    )


@pytest.fixture
def guard(config: AssistantConfig) -> SqlGuard:
    """Create a SqlGuard with the default allow-list."""
    return SqlGuard(config)


@pytest.fixture
def select_only_verifier() -> SelectOnlyVerifier:
    """Create a SelectOnlyVerifier instance."""
    return SelectOnlyVerifier()


@pytest.fixture
def keyword_verifier() -> ForbiddenKeywordVerifier:
    """Create a ForbiddenKeywordVerifier instance."""
    return ForbiddenKeywordVerifier()


@pytest.fixture
def verification_chain() -> VerificationChain:
    """Create a default verification chain."""
    return VerificationChain()
