"""
Unit Tests for Model Gateways
=============================

Ollama calls are served by ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from feza_assistant.config import AssistantConfig
from feza_assistant.llm.mock import MockGateway
from feza_assistant.llm.ollama import OllamaGateway
from feza_assistant.models import ErrorKind, GenerationOptions
from feza_assistant.prompts import PromptBuilder

OPTIONS = GenerationOptions(temperature=0.7, max_tokens=800, top_p=0.9, stop=("\nUser:",))


def make_gateway(handler, **overrides) -> tuple[OllamaGateway, list[httpx.Request]]:
    """Build a gateway whose requests are answered by ``handler``."""
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    config = AssistantConfig(retry_delay_seconds=0, **overrides)
    client = httpx.Client(transport=httpx.MockTransport(recording))
    return OllamaGateway(config, client=client), seen


class TestOllamaGateway:
    """Tests for the Ollama HTTP gateway."""

    def test_success(self) -> None:
        gateway, seen = make_gateway(
            lambda request: httpx.Response(200, json={"response": "SQL: SELECT 1", "done": True})
        )
        outcome = gateway.generate("User: hi\n\nAssistant:", OPTIONS)
        assert outcome.ok
        assert outcome.value == "SQL: SELECT 1"
        assert len(seen) == 1

    def test_request_payload(self) -> None:
        gateway, seen = make_gateway(
            lambda request: httpx.Response(200, json={"response": "Hello"})
        )
        gateway.generate("prompt text", OPTIONS)

        body = json.loads(seen[0].content)
        assert str(seen[0].url) == "http://localhost:11434/api/generate"
        assert body["model"] == "qwen2.5:7b-instruct"
        assert body["prompt"] == "prompt text"
        assert body["stream"] is False
        assert body["options"] == {
            "num_predict": 800,
            "temperature": 0.7,
            "top_p": 0.9,
            "stop": ["\nUser:"],
        }

    def test_server_error_is_retried_then_unavailable(self) -> None:
        """Test that a 500 on every attempt gives exactly max_attempts calls."""
        gateway, seen = make_gateway(lambda request: httpx.Response(500, text="boom"))
        outcome = gateway.generate("prompt", OPTIONS)
        assert len(seen) == 3
        assert not outcome.ok
        assert outcome.error.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert outcome.error.details["attempts"] == 3
        assert outcome.error.details["status_code"] == 500

    def test_recovers_after_transient_failure(self) -> None:
        responses = iter(
            [
                httpx.Response(503),
                httpx.Response(200, json={"response": "Recovered"}),
            ]
        )
        gateway, seen = make_gateway(lambda request: next(responses))
        outcome = gateway.generate("prompt", OPTIONS)
        assert outcome.value == "Recovered"
        assert len(seen) == 2

    def test_connection_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway, seen = make_gateway(refuse, max_attempts=2)
        outcome = gateway.generate("prompt", OPTIONS)
        assert len(seen) == 2
        assert outcome.error.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert outcome.error.details["failure"] == "connection_error"

    def test_timeout(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway, _ = make_gateway(slow, max_attempts=1)
        outcome = gateway.generate("prompt", OPTIONS)
        assert outcome.error.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert outcome.error.details["failure"] == "timeout"

    @pytest.mark.parametrize(
        "body",
        [
            {"text": "not json"},
            {"json": {"done": True}},
            {"json": ["response"]},
            {"json": {"response": 42}},
        ],
    )
    def test_malformed_body(self, body: dict) -> None:
        gateway, seen = make_gateway(lambda request: httpx.Response(200, **body))
        outcome = gateway.generate("prompt", OPTIONS)
        assert len(seen) == 3
        assert outcome.error.kind == ErrorKind.INVALID_RESPONSE
        assert outcome.error.details["failure"] == "malformed_body"

    def test_blank_text(self) -> None:
        gateway, _ = make_gateway(lambda request: httpx.Response(200, json={"response": "  \n"}))
        outcome = gateway.generate("prompt", OPTIONS)
        assert outcome.error.kind == ErrorKind.INVALID_RESPONSE
        assert outcome.error.details["failure"] == "empty_text"

    @pytest.mark.parametrize("prompt", ["", "   "])
    def test_empty_prompt(self, prompt: str) -> None:
        gateway, seen = make_gateway(lambda request: httpx.Response(200, json={"response": "x"}))
        with pytest.raises(ValueError):
            gateway.generate(prompt, OPTIONS)
        assert seen == []

    def test_ping(self) -> None:
        gateway, seen = make_gateway(lambda request: httpx.Response(200, json={"models": []}))
        assert gateway.ping()
        assert seen[0].url.path == "/api/tags"

    def test_ping_unreachable(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway, _ = make_gateway(refuse)
        assert not gateway.ping()


class TestMockGateway:
    """Tests for the canned-response gateway."""

    def test_matches_last_question(self) -> None:
        gateway = MockGateway(responses={"top 5 clients": ["SQL: SELECT 1"]})
        prompt = PromptBuilder().build("Show the TOP 5 CLIENTS please")
        assert gateway.generate(prompt, OPTIONS).value == "SQL: SELECT 1"

    def test_few_shot_examples_do_not_match(self) -> None:
        """Test that only the final question is matched, not the examples."""
        gateway = MockGateway(responses={"gross profit": ["Explained"]})
        prompt = PromptBuilder().build("Hello there")
        assert gateway.generate(prompt, OPTIONS).value == gateway.default_response

    def test_successive_answers(self) -> None:
        gateway = MockGateway(responses={"q": ["first", "second"]})
        answers = [gateway.generate("User: q", OPTIONS).value for _ in range(3)]
        assert answers == ["first", "second", "second"]
        assert gateway.call_count == 3

    def test_narration_without_canned_answer_fails(self) -> None:
        gateway = MockGateway()
        prompt = PromptBuilder().narration_prompt("Who paid?", [{"client_name": "A"}])
        outcome = gateway.generate(prompt, OPTIONS)
        assert outcome.error.kind == ErrorKind.INVALID_RESPONSE

    def test_configured_failure(self) -> None:
        gateway = MockGateway(failure=ErrorKind.SERVICE_UNAVAILABLE)
        outcome = gateway.generate("User: hi", OPTIONS)
        assert outcome.error.kind == ErrorKind.SERVICE_UNAVAILABLE

    def test_reset(self) -> None:
        gateway = MockGateway(responses={"q": ["a", "b"]})
        gateway.generate("User: q", OPTIONS)
        gateway.reset()
        assert gateway.call_count == 0
        assert gateway.generate("User: q", OPTIONS).value == "a"

    def test_empty_prompt(self) -> None:
        with pytest.raises(ValueError):
            MockGateway().generate(" ", OPTIONS)
