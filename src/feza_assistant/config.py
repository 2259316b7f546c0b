"""
Assistant Configuration
=======================

Injected configuration for the assistant pipeline.

Every component receives an ``AssistantConfig`` at construction time so the
pipeline can be wired against stubs in tests and against Ollama/MySQL in
production without touching module globals.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AssistantConfig:
    """Settings shared by the prompt builder, model gateway and orchestrator."""

    ollama_url: str = "http://localhost:11434/api/generate"
    model: str = "qwen2.5:7b-instruct"
    temperature: float = 0.7
    top_p: float = 0.9
    max_tokens: int = 800
    narration_temperature: float = 0.7
    narration_max_tokens: int = 400
    stop_sequences: tuple[str, ...] = ("\nUser:",)
    max_attempts: int = 3
    retry_delay_seconds: float = 2.0
    timeout_seconds: float = 30.0
    default_row_limit: int = 100
    narration_preview_rows: int = 10
    max_query_chars: int = 2000
    database_url: str = "sqlite:///./feza_logistics.db"
    use_mock_model: bool = False
    include_live_metrics: bool = True
    interaction_log_path: str | None = None
    company_name: str = "Feza Logistics"

    def __post_init__(self) -> None:
        for name in ("temperature", "narration_temperature", "top_p"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        for name in ("max_tokens", "narration_max_tokens", "default_row_limit", "max_query_chars"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.narration_max_tokens >= self.max_tokens:
            raise ValueError("narration_max_tokens must be lower than max_tokens")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.retry_delay_seconds < 0:
            raise ValueError("retry_delay_seconds cannot be negative")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.narration_preview_rows <= 0:
            raise ValueError("narration_preview_rows must be positive")

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        """
        Build a configuration from ``FEZA_*`` environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        defaults = cls()
        stop = os.getenv("FEZA_STOP_SEQUENCES")
        return cls(
            ollama_url=os.getenv("FEZA_OLLAMA_URL", defaults.ollama_url),
            model=os.getenv("FEZA_MODEL", defaults.model),
            temperature=float(os.getenv("FEZA_TEMPERATURE", defaults.temperature)),
            top_p=float(os.getenv("FEZA_TOP_P", defaults.top_p)),
            max_tokens=int(os.getenv("FEZA_MAX_TOKENS", defaults.max_tokens)),
            narration_temperature=float(
                os.getenv("FEZA_NARRATION_TEMPERATURE", defaults.narration_temperature)
            ),
            narration_max_tokens=int(
                os.getenv("FEZA_NARRATION_MAX_TOKENS", defaults.narration_max_tokens)
            ),
            stop_sequences=(
                tuple(s for s in stop.split("|") if s) if stop else defaults.stop_sequences
            ),
            max_attempts=int(os.getenv("FEZA_MAX_ATTEMPTS", defaults.max_attempts)),
            retry_delay_seconds=float(
                os.getenv("FEZA_RETRY_DELAY_SECONDS", defaults.retry_delay_seconds)
            ),
            timeout_seconds=float(os.getenv("FEZA_TIMEOUT_SECONDS", defaults.timeout_seconds)),
            default_row_limit=int(
                os.getenv("FEZA_DEFAULT_ROW_LIMIT", defaults.default_row_limit)
            ),
            narration_preview_rows=int(
                os.getenv("FEZA_NARRATION_PREVIEW_ROWS", defaults.narration_preview_rows)
            ),
            max_query_chars=int(os.getenv("FEZA_MAX_QUERY_CHARS", defaults.max_query_chars)),
            database_url=os.getenv("FEZA_DATABASE_URL", defaults.database_url),
            use_mock_model=_env_bool("FEZA_USE_MOCK_MODEL", defaults.use_mock_model),
            include_live_metrics=_env_bool(
                "FEZA_INCLUDE_LIVE_METRICS", defaults.include_live_metrics
            ),
            interaction_log_path=os.getenv("FEZA_INTERACTION_LOG_PATH") or None,
            company_name=os.getenv("FEZA_COMPANY_NAME", defaults.company_name),
        )
