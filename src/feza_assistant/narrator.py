"""
Result Narrator
===============

Turns query rows back into natural-language text.
"""

import structlog

from feza_assistant.config import AssistantConfig
from feza_assistant.formatting import NO_RESULTS_MESSAGE, format_rows
from feza_assistant.llm.base import ModelGateway
from feza_assistant.models import GenerationOptions, QueryResult
from feza_assistant.prompts import PromptBuilder

logger = structlog.get_logger(__name__)


class ResultNarrator:
    """
    Narrates rows with a second, smaller model call.

    Never fails: an empty result set gets a fixed apology without calling the
    model, and a failed model call falls back to ``format_rows``.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        config: AssistantConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config or AssistantConfig()
        self.prompt_builder = prompt_builder or PromptBuilder(self.config)

    @property
    def options(self) -> GenerationOptions:
        return GenerationOptions(
            temperature=self.config.narration_temperature,
            max_tokens=self.config.narration_max_tokens,
            top_p=self.config.top_p,
            stop=self.config.stop_sequences,
        )

    def narrate(self, question: str, results: QueryResult) -> str:
        """
        Describe ``results`` as an answer to ``question``.

        Args:
            question: The user's original question
            results: Rows returned by the executor

        Returns:
            Prose answer, model-written or deterministic
        """
        if not results:
            return NO_RESULTS_MESSAGE

        prompt = self.prompt_builder.narration_prompt(question, results)
        outcome = self.gateway.generate(prompt, self.options)
        if outcome.ok and outcome.value.strip():
            return outcome.value.strip()

        reason = outcome.error.kind.value if outcome.error else "empty narration"
        logger.warning("narration_fallback", reason=reason, rows=len(results))
        return format_rows(results, limit=self.config.narration_preview_rows)
