"""
Unit Tests for the Response Classifier
======================================
"""

import pytest

from feza_assistant.classifier import ResponseClassifier
from feza_assistant.models import IntentKind


@pytest.fixture
def classifier() -> ResponseClassifier:
    return ResponseClassifier()


class TestDatabaseRouting:
    """Responses that ask the backend for data."""

    @pytest.mark.parametrize(
        "text",
        [
            "SQL: SELECT * FROM clients LIMIT 1",
            "  sql: select count(*) from invoices",
            "SELECT client_name FROM clients",
            "Let me check that.\nSQL: SELECT SUM(total) FROM invoices",
            "```sql\nSELECT 1\n```",
            "Sure, here is the list:\n  SELECT client_name FROM clients WHERE status = 'PAID'",
        ],
    )
    def test_database_query(self, classifier: ResponseClassifier, text: str) -> None:
        intent = classifier.classify(text)
        assert intent.kind == IntentKind.DATABASE_QUERY
        assert intent.is_database_query
        assert intent.text == text

    def test_marker_beats_greeting(self, classifier: ResponseClassifier) -> None:
        """Test that a SQL: line routes to the database even after a greeting."""
        intent = classifier.classify("Hello!\nSQL: SELECT * FROM clients")
        assert intent.is_database_query


class TestConversationalRouting:
    """Responses answered directly."""

    @pytest.mark.parametrize(
        "text",
        [
            "Hello! How can I help you today?",
            "Thanks for asking. Everything is running smoothly.",
            "Could you tell me which month you mean?",
            "Gross profit is revenue minus the cost of goods sold.",
            "You can select a reporting period from the dashboard menu.",
        ],
    )
    def test_conversational(self, classifier: ResponseClassifier, text: str) -> None:
        intent = classifier.classify(text)
        assert intent.kind == IntentKind.CONVERSATIONAL
        assert not intent.is_database_query

    def test_greeting_mentioning_select_from(self, classifier: ResponseClassifier) -> None:
        """Test that a greeting wins over SELECT/FROM prose."""
        intent = classifier.classify("Hi! Select from the menu any report you like.")
        assert intent.kind == IntentKind.CONVERSATIONAL
