"""
Select-Only Verifier
====================

The statement must be a single SELECT.
"""

import re

from feza_assistant.models import (
    ErrorKind,
    SqlCandidate,
    VerificationResult,
    VerificationStatus,
)
from feza_assistant.verifiers.base import Verifier

SELECT_PATTERN = re.compile(r"^\s*SELECT\s+", re.IGNORECASE)


class SelectOnlyVerifier(Verifier):
    """Rejects anything that does not start with ``SELECT``."""

    @property
    def name(self) -> str:
        return "SelectOnlyVerifier"

    def verify(self, candidate: SqlCandidate) -> VerificationResult:
        if SELECT_PATTERN.match(candidate.text):
            return VerificationResult(
                verifier_name=self.name,
                status=VerificationStatus.PASSED,
                message="Statement is a SELECT",
            )

        first_word = candidate.text.split(maxsplit=1)[0] if candidate.text.split() else ""
        return VerificationResult(
            verifier_name=self.name,
            status=VerificationStatus.FAILED,
            message="Only SELECT statements are allowed",
            error_kind=ErrorKind.NOT_SELECT_ONLY,
            details={"statement_start": first_word.upper()},
        )
