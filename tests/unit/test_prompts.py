"""
Unit Tests for the Prompt Builder
=================================
"""

import json

import pytest

from feza_assistant.config import AssistantConfig
from feza_assistant.prompts import (
    BUSINESS_RULES,
    FEW_SHOT_EXAMPLES,
    NARRATION_MARKER,
    PromptBuilder,
)


@pytest.fixture
def builder() -> PromptBuilder:
    return PromptBuilder(AssistantConfig(narration_preview_rows=3))


class TestMainPrompt:
    """Tests for the hybrid system prompt."""

    def test_ends_with_question_and_cue(self, builder: PromptBuilder) -> None:
        prompt = builder.build("  How many clients have paid?  ")
        assert prompt.endswith("User: How many clients have paid?\n\nAssistant:")

    def test_contains_every_section(self, builder: PromptBuilder) -> None:
        prompt = builder.build("Hi")
        assert "Feza Logistics" in prompt
        assert "GENERAL KNOWLEDGE MODE" in prompt
        assert "DATABASE MODE" in prompt
        assert "Table: clients" in prompt
        for rule in BUSINESS_RULES:
            assert rule in prompt
        for question, answer in FEW_SHOT_EXAMPLES:
            assert f"User: {question}\nAssistant: {answer}" in prompt

    def test_sections_in_order(self, builder: PromptBuilder) -> None:
        prompt = builder.build("Hi")
        positions = [
            prompt.index("GENERAL KNOWLEDGE MODE"),
            prompt.index("DATABASE SCHEMA"),
            prompt.index("SQL RULES"),
            prompt.index("RESPONSE STYLE"),
            prompt.index("EXAMPLES"),
            prompt.rindex("User: Hi"),
        ]
        assert positions == sorted(positions)

    def test_live_metrics_included(self, builder: PromptBuilder) -> None:
        prompt = builder.build("Hi", live_metrics={"Total clients": "7"})
        assert "CURRENT BUSINESS CONTEXT" in prompt
        assert "- Total clients: 7" in prompt
        assert prompt.index("CURRENT BUSINESS CONTEXT") < prompt.rindex("User: Hi")

    def test_live_metrics_omitted_when_empty(self, builder: PromptBuilder) -> None:
        assert "CURRENT BUSINESS CONTEXT" not in builder.build("Hi", live_metrics={})
        assert "CURRENT BUSINESS CONTEXT" not in builder.build("Hi")

    def test_company_name_is_configurable(self) -> None:
        prompt = PromptBuilder(AssistantConfig(company_name="Acme Cargo")).build("Hi")
        assert "Acme Cargo" in prompt

    def test_no_narration_marker(self, builder: PromptBuilder) -> None:
        assert NARRATION_MARKER not in builder.build("Hi")

    @pytest.mark.parametrize("question", ["", "   ", None])
    def test_empty_question(self, builder: PromptBuilder, question) -> None:
        with pytest.raises(ValueError):
            builder.build(question)


class TestNarrationPrompt:
    """Tests for the result-narration prompt."""

    def test_embeds_question_and_rows(self, builder: PromptBuilder) -> None:
        rows = [{"client_name": "Kigali Freight", "total": 9000000}]
        prompt = builder.narration_prompt("Who paid most?", rows)
        assert "User Question: Who paid most?" in prompt
        assert NARRATION_MARKER in prompt
        assert json.dumps(rows, indent=2) in prompt
        assert prompt.endswith("Natural Response:")
        assert "more rows not shown" not in prompt

    def test_truncates_preview(self, builder: PromptBuilder) -> None:
        rows = [{"n": i} for i in range(5)]
        prompt = builder.narration_prompt("List them", rows)
        assert json.dumps(rows[:3], indent=2) in prompt
        assert '"n": 3' not in prompt
        assert "(2 more rows not shown)" in prompt
