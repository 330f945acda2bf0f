"""
Tests for LLM agents and provider credential detection.
"""

from unittest.mock import Mock, patch

import pytest

from feedbacksense.exceptions import ConfigurationError
from feedbacksense.llm.agents import (
    BATCH_SYSTEM_PROMPT,
    SINGLE_SYSTEM_PROMPT,
    AgentFactory,
    create_batch_classification_agent,
    create_classification_agent,
    get_agent_factory,
    get_supported_providers,
    is_ai_configured,
    resolve_api_key_env,
    validate_model_name,
)
from feedbacksense.llm.schemas import ModelConfiguration


class TestAgentFactory:
    """Test AgentFactory functionality."""

    def test_agent_factory_initialization_defaults(self) -> None:
        """Test AgentFactory initialization with defaults."""
        factory = AgentFactory()

        assert factory.default_config.model_name == "google-gla:gemini-1.5-flash"
        assert factory.default_config.temperature == 0.1
        assert factory.default_config.timeout == 30
        assert factory.default_config.retry_attempts == 3

    @patch("feedbacksense.llm.agents.Agent")
    def test_create_classification_agent(self, mock_agent_class) -> None:
        """Test creating a single classification agent."""
        mock_agent = Mock()
        mock_agent_class.return_value = mock_agent

        factory = AgentFactory()
        agent = factory.create_classification_agent()

        assert agent == mock_agent
        mock_agent_class.assert_called_once()
        args, kwargs = mock_agent_class.call_args
        assert args[0] == "google-gla:gemini-1.5-flash"
        assert kwargs["output_type"] is str
        assert kwargs["system_prompt"] == SINGLE_SYSTEM_PROMPT
        assert kwargs["retries"] == 3
        assert kwargs["defer_model_check"] is True
        assert kwargs["model_settings"]["temperature"] == 0.1

        # Cached on the second call
        assert factory.create_classification_agent() == mock_agent
        assert mock_agent_class.call_count == 1

    @patch("feedbacksense.llm.agents.Agent")
    def test_create_batch_classification_agent(self, mock_agent_class) -> None:
        """Test creating a batch classification agent."""
        mock_agent_class.return_value = Mock()

        factory = AgentFactory()
        factory.create_batch_classification_agent()

        _, kwargs = mock_agent_class.call_args
        assert kwargs["system_prompt"] == BATCH_SYSTEM_PROMPT

    @patch("feedbacksense.llm.agents.Agent")
    def test_agent_with_custom_model(self, mock_agent_class) -> None:
        """Test that a model override creates a separate agent."""
        mock_agent_class.side_effect = [Mock(), Mock()]

        factory = AgentFactory()
        default_agent = factory.create_classification_agent()
        custom_agent = factory.create_classification_agent("openai:gpt-4o-mini")

        assert default_agent is not custom_agent
        assert mock_agent_class.call_args[0][0] == "openai:gpt-4o-mini"

    @patch("feedbacksense.llm.agents.Agent")
    def test_agent_with_max_tokens(self, mock_agent_class) -> None:
        """Test that max_tokens reaches the model settings."""
        config = ModelConfiguration(model_name="openai:gpt-4o", max_tokens=512)

        AgentFactory(config).create_classification_agent()

        _, kwargs = mock_agent_class.call_args
        assert kwargs["model_settings"]["max_tokens"] == 512

    @patch("feedbacksense.llm.agents.Agent")
    def test_agent_creation_error(self, mock_agent_class) -> None:
        """Test that creation failures become configuration errors."""
        mock_agent_class.side_effect = ValueError("unknown provider")

        with pytest.raises(ConfigurationError) as exc_info:
            AgentFactory().create_classification_agent()
        assert "unknown provider" in str(exc_info.value)

    def test_cache_management(self) -> None:
        """Test clearing the agent cache."""
        with patch("feedbacksense.llm.agents.Agent") as mock_agent_class:
            mock_agent_class.side_effect = [Mock(), Mock()]
            factory = AgentFactory()

            first = factory.create_classification_agent()
            factory.clear_cache()
            second = factory.create_classification_agent()

            assert first is not second
            assert mock_agent_class.call_count == 2

    def test_effective_config_model_override(self) -> None:
        """Test that model overrides leave the default config untouched."""
        factory = AgentFactory()

        config = factory._get_effective_config("openai:gpt-4o", None)

        assert config.model_name == "openai:gpt-4o"
        assert factory.default_config.model_name == "google-gla:gemini-1.5-flash"


class TestGlobalFactory:
    """Test global factory helpers."""

    def test_get_agent_factory_singleton(self) -> None:
        """Test that the global factory is reused."""
        assert get_agent_factory() is get_agent_factory()

    @patch("feedbacksense.llm.agents.get_agent_factory")
    def test_create_classification_agent_global(self, mock_get_factory) -> None:
        """Test the module-level single agent helper."""
        mock_factory = Mock()
        mock_get_factory.return_value = mock_factory

        create_classification_agent("openai:gpt-4o")

        mock_factory.create_classification_agent.assert_called_once_with(
            "openai:gpt-4o", None
        )

    @patch("feedbacksense.llm.agents.get_agent_factory")
    def test_create_batch_classification_agent_global(self, mock_get_factory) -> None:
        """Test the module-level batch agent helper."""
        mock_factory = Mock()
        mock_get_factory.return_value = mock_factory

        create_batch_classification_agent()

        mock_factory.create_batch_classification_agent.assert_called_once_with(
            None, None
        )


class TestProviderCredentials:
    """Test model name validation and key detection."""

    def test_validate_model_name(self) -> None:
        """Test model name format checks."""
        assert validate_model_name("openai:gpt-4o") is True
        assert validate_model_name("gpt-4o") is False
        assert validate_model_name(":gpt-4o") is False
        assert validate_model_name("") is False

    def test_supported_providers(self) -> None:
        """Test the provider list."""
        providers = get_supported_providers()

        assert "google-gla" in providers
        assert "openai" in providers

    def test_missing_key(self) -> None:
        """Test that no key means not configured."""
        assert is_ai_configured("google-gla:gemini-1.5-flash") is False

    def test_gemini_key(self, monkeypatch) -> None:
        """Test detection of the Gemini key."""
        monkeypatch.setenv("GEMINI_API_KEY", "abc123")

        assert resolve_api_key_env("google-gla:gemini-1.5-flash") == "GEMINI_API_KEY"
        assert is_ai_configured("google-gla:gemini-1.5-flash") is True

    def test_secondary_key(self, monkeypatch) -> None:
        """Test lookup order across provider variables."""
        monkeypatch.setenv("GOOGLE_API_KEY", "abc123")

        assert resolve_api_key_env("google-gla:gemini-1.5-flash") == "GOOGLE_API_KEY"

    def test_placeholder_key_ignored(self, monkeypatch) -> None:
        """Test that template placeholders count as absent."""
        monkeypatch.setenv("GEMINI_API_KEY", "your_gemini_api_key_here")

        assert is_ai_configured("google-gla:gemini-1.5-flash") is False

    def test_unknown_provider(self, monkeypatch) -> None:
        """Test that unknown providers are never configured."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        assert is_ai_configured("acme:model-1") is False
        assert is_ai_configured("openai:gpt-4o") is True
