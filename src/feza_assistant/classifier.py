"""
Response Classifier
===================

Decides whether the model answered in prose or asked for a database query.

This is a routing heuristic, not a security boundary: anything routed to the
database path still goes through the SQL guard.
"""

import re

from feza_assistant.models import ClassifiedIntent, IntentKind

LEADING_MARKER = re.compile(r"^\s*(?:SQL:|SELECT\b)", re.IGNORECASE)
LINE_MARKER = re.compile(r"^\s*SQL:", re.IGNORECASE | re.MULTILINE)
SQL_FENCE = re.compile(r"```\s*sql\b", re.IGNORECASE)
SELECT_LINE = re.compile(r"^\s*SELECT\s+.+?\bFROM\b", re.IGNORECASE | re.MULTILINE | re.DOTALL)

GREETING = re.compile(
    r"^\s*(?:hi|hello|hey|good (?:morning|afternoon|evening)|thanks|thank you|you're welcome)\b",
    re.IGNORECASE,
)
SHORT_REPLY_CHARS = 160


class ResponseClassifier:
    """Classifies raw model text as conversational or a database query."""

    def classify(self, text: str) -> ClassifiedIntent:
        """
        Classify a model response.

        Args:
            text: Raw generated text

        Returns:
            ClassifiedIntent carrying the original text
        """
        if LEADING_MARKER.match(text) or LINE_MARKER.search(text) or SQL_FENCE.search(text):
            return ClassifiedIntent(IntentKind.DATABASE_QUERY, text)

        stripped = text.strip()
        if GREETING.match(stripped) or (
            len(stripped) <= SHORT_REPLY_CHARS and stripped.endswith("?")
        ):
            return ClassifiedIntent(IntentKind.CONVERSATIONAL, text)

        if SELECT_LINE.search(text):
            return ClassifiedIntent(IntentKind.DATABASE_QUERY, text)

        return ClassifiedIntent(IntentKind.CONVERSATIONAL, text)
