"""
Base Verifier Classes
=====================

Abstract base class and verification chain implementation.
"""

from abc import ABC, abstractmethod

from feza_assistant.models import SqlCandidate, VerificationResult


class Verifier(ABC):
    """Base class for all verifiers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this verifier."""
        pass

    @abstractmethod
    def verify(self, candidate: SqlCandidate) -> VerificationResult:
        """
        Verify the candidate against this verifier's rule.

        Args:
            candidate: Extracted statement plus any chained trailing text

        Returns:
            VerificationResult indicating pass/fail with details
        """
        pass


class VerificationChain:
    """Runs verifiers in order; the first failure wins."""

    def __init__(self, verifiers: list[Verifier] | None = None) -> None:
        """
        Initialize the verification chain.

        Args:
            verifiers: Verifiers to run. Defaults to select-only, then
                       forbidden keywords.
        """
        if verifiers is not None:
            self.verifiers = verifiers
        else:
            from feza_assistant.verifiers.keywords import ForbiddenKeywordVerifier
            from feza_assistant.verifiers.select_only import SelectOnlyVerifier

            self.verifiers = [
                SelectOnlyVerifier(),
                ForbiddenKeywordVerifier(),
            ]

    def run(self, candidate: SqlCandidate) -> tuple[bool, list[VerificationResult]]:
        """
        Run all verifiers. Returns (all_passed, results).

        Stops at the first failure.
        """
        results = []

        for verifier in self.verifiers:
            result = verifier.verify(candidate)
            results.append(result)

            if not result.passed:
                return False, results

        return True, results
