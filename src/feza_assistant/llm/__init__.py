"""
LLM Module
==========

Pluggable text-generation gateways.
"""

from feza_assistant.llm.base import ModelGateway
from feza_assistant.llm.mock import MockGateway
from feza_assistant.llm.ollama import OllamaGateway

__all__ = [
    "ModelGateway",
    "MockGateway",
    "OllamaGateway",
]
