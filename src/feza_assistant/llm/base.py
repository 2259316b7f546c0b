"""
Base Model Gateway
==================

Abstract interface for text-generation providers.
"""

from abc import ABC, abstractmethod

from feza_assistant.models import GenerationOptions, Outcome


class ModelGateway(ABC):
    """Abstract interface for text-generation providers."""

    @abstractmethod
    def generate(self, prompt: str, options: GenerationOptions) -> Outcome[str]:
        """
        Generate text for a prompt.

        Args:
            prompt: Complete prompt text, never empty
            options: Temperature, token budget and stop sequences

        Returns:
            Outcome holding the generated text, or a ``service_unavailable`` /
            ``invalid_response`` error once retries are exhausted
        """
        pass

    def ping(self) -> bool:
        """Whether the provider looks reachable."""
        return True
