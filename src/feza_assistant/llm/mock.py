"""
Mock Gateway
============

Mock text-generation gateway for testing and local development.
"""

import re

from feza_assistant.llm.base import ModelGateway
from feza_assistant.models import ErrorKind, GenerationOptions, Outcome
from feza_assistant.prompts import NARRATION_MARKER

_QUESTION_PATTERN = re.compile(r"User(?: Question)?:\s*(.+?)(?:\n\n|\Z)", re.DOTALL)


class MockGateway(ModelGateway):
    """
    Canned-response gateway.

    Replace with ``OllamaGateway`` outside tests and demos.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        narrations: dict[str, list[str]] | None = None,
        failure: ErrorKind | None = None,
        default_response: str = "Hello! I'm your financial assistant. How can I help you today?",
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Maps question substrings to successive answers for the
                       main prompt. Each call advances to the next answer and
                       stays on the last one.
            narrations: Same mapping, used for result-narration prompts.
                        Unmatched narration prompts fail so the narrator falls
                        back to deterministic formatting.
            failure: When set, every call fails with this error kind
            default_response: Answer for unmatched main prompts
        """
        self.responses = responses or {}
        self.narrations = narrations or {}
        self.failure = failure
        self.default_response = default_response
        self.call_counts: dict[str, int] = {}
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str, options: GenerationOptions) -> Outcome[str]:
        """
        Return the next canned answer for the question inside ``prompt``.
        """
        if not prompt.strip():
            raise ValueError("prompt must not be empty")
        self.prompts.append(prompt)

        if self.failure is not None:
            return Outcome.failure(self.failure, "mock gateway configured to fail")

        is_narration = NARRATION_MARKER in prompt
        table = self.narrations if is_narration else self.responses
        question = self._question_of(prompt).lower()

        for key, answers in table.items():
            if key.lower() in question:
                count = self.call_counts.get(key, 0)
                self.call_counts[key] = count + 1
                return Outcome.success(answers[min(count, len(answers) - 1)])

        if is_narration:
            return Outcome.failure(ErrorKind.INVALID_RESPONSE, "no canned narration")
        return Outcome.success(self.default_response)

    def reset(self) -> None:
        """Reset call counts and recorded prompts."""
        self.call_counts = {}
        self.prompts = []

    @staticmethod
    def _question_of(prompt: str) -> str:
        matches = _QUESTION_PATTERN.findall(prompt)
        return matches[-1] if matches else prompt
