"""
Ollama Gateway
==============

HTTP gateway to a locally hosted Ollama ``/api/generate`` endpoint.
"""

from urllib.parse import urlsplit, urlunsplit

import httpx
import structlog

from feza_assistant.config import AssistantConfig
from feza_assistant.llm.base import ModelGateway
from feza_assistant.models import ErrorKind, GenerationOptions, ModelFailureKind, Outcome
from feza_assistant.retry import bounded_retry

logger = structlog.get_logger(__name__)


class ModelFailure(Exception):
    """A single failed attempt. Never leaves the gateway."""

    def __init__(self, kind: ModelFailureKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class OllamaGateway(ModelGateway):
    """
    Synchronous, non-streaming Ollama client with bounded retries.

    Each attempt is one POST. Connection failures, timeouts, non-200
    statuses, unparseable bodies, a missing ``response`` field and blank
    generated text are all retried; the last failure is reported as
    ``service_unavailable`` (connectivity) or ``invalid_response`` (parsing).
    """

    def __init__(self, config: AssistantConfig, client: httpx.Client | None = None) -> None:
        """
        Initialize the gateway.

        Args:
            config: Endpoint, model name, retry and timeout settings
            client: Optional preconfigured ``httpx.Client`` (tests inject one
                    backed by ``httpx.MockTransport``)
        """
        self.config = config
        self.client = client or httpx.Client(timeout=httpx.Timeout(config.timeout_seconds))

    def _payload(self, prompt: str, options: GenerationOptions) -> dict:
        payload_options = {
            "num_predict": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
        }
        if options.stop:
            payload_options["stop"] = list(options.stop)
        return {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
            "options": payload_options,
        }

    def _attempt(self, payload: dict) -> str:
        try:
            response = self.client.post(
                self.config.ollama_url,
                json=payload,
                timeout=httpx.Timeout(self.config.timeout_seconds),
            )
        except httpx.TimeoutException as e:
            raise ModelFailure(ModelFailureKind.TIMEOUT, str(e)) from e
        except httpx.TransportError as e:
            raise ModelFailure(ModelFailureKind.CONNECTION_ERROR, str(e)) from e

        if response.status_code != 200:
            raise ModelFailure(
                ModelFailureKind.HTTP_ERROR,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ModelFailure(ModelFailureKind.MALFORMED_BODY, "response is not JSON") from e

        if not isinstance(body, dict) or not isinstance(body.get("response"), str):
            raise ModelFailure(ModelFailureKind.MALFORMED_BODY, "missing 'response' field")

        text = body["response"]
        if not text.strip():
            raise ModelFailure(ModelFailureKind.EMPTY_TEXT, "model returned empty text")
        return text

    def generate(self, prompt: str, options: GenerationOptions) -> Outcome[str]:
        """
        Send ``prompt`` to Ollama and return the generated text.

        Args:
            prompt: Complete prompt text
            options: Generation options for this call

        Returns:
            Outcome with the raw generated text or a typed failure
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        payload = self._payload(prompt, options)
        retrying = bounded_retry(
            self.config.max_attempts,
            self.config.retry_delay_seconds,
            ModelFailure,
        )
        attempts = 0

        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    try:
                        return Outcome.success(self._attempt(payload))
                    except ModelFailure as failure:
                        logger.warning(
                            "model_attempt_failed",
                            attempt=attempts,
                            failure=failure.kind.value,
                            error=str(failure),
                        )
                        raise
        except ModelFailure as failure:
            kind = (
                ErrorKind.SERVICE_UNAVAILABLE
                if failure.kind.is_connectivity
                else ErrorKind.INVALID_RESPONSE
            )
            details = {"failure": failure.kind.value, "attempts": attempts}
            if failure.status_code is not None:
                details["status_code"] = failure.status_code
            logger.error("model_call_exhausted", kind=kind.value, **details)
            return Outcome.failure(kind, str(failure), **details)

        return Outcome.failure(ErrorKind.SERVICE_UNAVAILABLE, "no attempt was made")

    def ping(self) -> bool:
        """Check that the Ollama server answers ``/api/tags``."""
        parts = urlsplit(self.config.ollama_url)
        tags_url = urlunsplit((parts.scheme, parts.netloc, "/api/tags", "", ""))
        try:
            return self.client.get(tags_url, timeout=5.0).status_code == 200
        except httpx.HTTPError:
            return False

    def close(self) -> None:
        self.client.close()
