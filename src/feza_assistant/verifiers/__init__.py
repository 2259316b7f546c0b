"""
Verifiers Module
================

Read-only allow-list checks run on every extracted statement.
"""

from feza_assistant.verifiers.base import Verifier, VerificationChain
from feza_assistant.verifiers.keywords import FORBIDDEN_KEYWORDS, ForbiddenKeywordVerifier
from feza_assistant.verifiers.select_only import SelectOnlyVerifier

__all__ = [
    "Verifier",
    "VerificationChain",
    "SelectOnlyVerifier",
    "ForbiddenKeywordVerifier",
    "FORBIDDEN_KEYWORDS",
]
