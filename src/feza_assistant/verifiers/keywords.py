"""
Forbidden Keyword Verifier
==========================

Ensures no data-modifying or privilege keyword appears anywhere in the
statement or in text chained after it.
"""

import re

from feza_assistant.models import (
    ErrorKind,
    SqlCandidate,
    VerificationResult,
    VerificationStatus,
)
from feza_assistant.verifiers.base import Verifier

FORBIDDEN_KEYWORDS: tuple[str, ...] = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "REPLACE",
    "GRANT",
    "REVOKE",
)


class ForbiddenKeywordVerifier(Verifier):
    """
    Whole-word, case-insensitive keyword scan.

    Word boundaries keep identifiers such as ``update_count`` or
    ``created_at`` usable. This is a textual allow-list, not a parser:
    comments or string literals containing a keyword are rejected too.
    """

    def __init__(self, keywords: tuple[str, ...] = FORBIDDEN_KEYWORDS) -> None:
        self.keywords = keywords
        self._patterns = [
            (keyword, re.compile(rf"(?<![\w$]){keyword}(?![\w$])", re.IGNORECASE))
            for keyword in keywords
        ]

    @property
    def name(self) -> str:
        return "ForbiddenKeywordVerifier"

    def verify(self, candidate: SqlCandidate) -> VerificationResult:
        scanned = f"{candidate.text} {candidate.trailing}"
        for keyword, pattern in self._patterns:
            if pattern.search(scanned):
                return VerificationResult(
                    verifier_name=self.name,
                    status=VerificationStatus.FAILED,
                    message=f"Forbidden keyword detected: {keyword}",
                    error_kind=ErrorKind.FORBIDDEN_KEYWORD,
                    details={"keyword": keyword},
                )

        return VerificationResult(
            verifier_name=self.name,
            status=VerificationStatus.PASSED,
            message="No data-modifying keywords detected",
        )
