"""
Tests for the AI classification client.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from feedbacksense.exceptions import (
    AIServiceError,
    InvalidResponseError,
    PromptTooLargeError,
    ServiceUnavailableError,
    ValidationError,
)
from feedbacksense.llm.client import AIClassificationClient
from feedbacksense.models import DEFAULT_CATEGORIES, Category, ClassificationMethod


def make_agent(output: str) -> Mock:
    """Agent stub whose run() returns a fixed text output."""
    agent = Mock()
    agent.run = AsyncMock(return_value=Mock(output=output))
    return agent


@pytest.fixture(autouse=True)
def small_token_count():
    with patch("feedbacksense.llm.client.token_counter", return_value=100) as counter:
        yield counter


class TestAIClassificationClient:
    """Test AIClassificationClient functionality."""

    def test_not_configured_without_key(self) -> None:
        """Test fallback-only mode detection."""
        client = AIClassificationClient()

        assert client.model_name == "google-gla:gemini-1.5-flash"
        assert client.is_configured is False

    def test_configured_with_key(self, monkeypatch) -> None:
        """Test that a provider key enables the client."""
        monkeypatch.setenv("GEMINI_API_KEY", "abc123")

        assert AIClassificationClient().is_configured is True

    def test_configured_with_agent(self) -> None:
        """Test that an injected agent enables the client."""
        assert AIClassificationClient(agent=make_agent("{}")).is_configured is True

    @pytest.mark.asyncio
    async def test_unconfigured_raises(self) -> None:
        """Test that calls fail fast without credentials."""
        client = AIClassificationClient()

        with pytest.raises(ServiceUnavailableError):
            await client.classify_one("text", DEFAULT_CATEGORIES)
        with pytest.raises(ServiceUnavailableError):
            await client.classify_batch(["text"], DEFAULT_CATEGORIES)

    @pytest.mark.asyncio
    async def test_classify_one(self) -> None:
        """Test a successful single classification."""
        agent = make_agent(
            'Result: {"category": "bug_report", "confidence": 0.93, '
            '"reasoning": "Crash", "keyIndicators": ["crash"]}'
        )
        client = AIClassificationClient(agent=agent)

        result = await client.classify_one("It crashes", DEFAULT_CATEGORIES)

        assert result.category == "bug_report"
        assert result.confidence == 0.93
        assert result.method == ClassificationMethod.AI_SINGLE
        prompt = agent.run.call_args[0][0]
        assert 'Feedback text: "It crashes"' in prompt

    @pytest.mark.asyncio
    async def test_classify_batch(self) -> None:
        """Test a successful batch classification with reordering."""
        output = json.dumps(
            [
                {"index": 2, "category": "compliment", "confidence": 0.8},
                {"index": 1, "category": "bug_report", "confidence": 0.9},
            ]
        )
        client = AIClassificationClient(agent=make_agent(output))

        results = await client.classify_batch(["crash", "love"], DEFAULT_CATEGORIES)

        assert [r.category for r in results] == ["bug_report", "compliment"]
        assert all(r.method == ClassificationMethod.AI_BATCH for r in results)

    @pytest.mark.asyncio
    async def test_separate_batch_agent(self) -> None:
        """Test that batch calls use the batch agent when given."""
        single = make_agent("{}")
        batch = make_agent('[{"index": 1, "category": "compliment", "confidence": 0.7}]')
        client = AIClassificationClient(agent=single, batch_agent=batch)

        await client.classify_batch(["love"], DEFAULT_CATEGORIES)

        batch.run.assert_awaited_once()
        single.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        """Test that an empty batch makes no call."""
        agent = make_agent("[]")
        client = AIClassificationClient(agent=agent)

        assert await client.classify_batch([], DEFAULT_CATEGORIES) == []
        agent.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self) -> None:
        """Test that agent failures become AIServiceError."""
        agent = Mock()
        agent.run = AsyncMock(side_effect=ConnectionError("network down"))
        client = AIClassificationClient(agent=agent)

        with pytest.raises(AIServiceError) as exc_info:
            await client.classify_one("text", DEFAULT_CATEGORIES)
        assert exc_info.value.error_type == "ConnectionError"
        assert not isinstance(exc_info.value, InvalidResponseError)

    @pytest.mark.asyncio
    async def test_non_text_output(self) -> None:
        """Test a response without text output."""
        agent = Mock()
        agent.run = AsyncMock(return_value=Mock(output=None, data=None))
        client = AIClassificationClient(agent=agent)

        with pytest.raises(AIServiceError):
            await client.classify_one("text", DEFAULT_CATEGORIES)

    @pytest.mark.asyncio
    async def test_invalid_response_carries_model(self) -> None:
        """Test that validation errors name the model."""
        client = AIClassificationClient(
            model_name="openai:gpt-4o-mini", agent=make_agent("no json here")
        )

        with pytest.raises(InvalidResponseError) as exc_info:
            await client.classify_one("text", DEFAULT_CATEGORIES)
        assert exc_info.value.model == "openai:gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_prompt_too_large(self, small_token_count) -> None:
        """Test the prompt budget guard."""
        small_token_count.return_value = 10_000_000
        agent = make_agent("{}")
        client = AIClassificationClient(agent=agent)

        with pytest.raises(PromptTooLargeError) as exc_info:
            await client.classify_batch(["text"], DEFAULT_CATEGORIES)
        assert isinstance(exc_info.value, AIServiceError)
        assert exc_info.value.max_tokens == 500_000
        agent.run.assert_not_called()

    def test_token_count_falls_back_to_estimate(self, small_token_count) -> None:
        """Test the length estimate when litellm fails."""
        small_token_count.side_effect = RuntimeError("no tokenizer")
        client = AIClassificationClient()

        assert client.count_prompt_tokens("x" * 40) == 10

    @pytest.mark.asyncio
    async def test_no_active_categories(self) -> None:
        """Test that an empty registry is rejected before calling."""
        client = AIClassificationClient(agent=make_agent("{}"))

        with pytest.raises(ValidationError):
            await client.classify_one("text", [Category(id="a", name="A", active=False)])
