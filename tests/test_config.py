"""
Tests for configuration management and validation.
"""

import pytest

from feedbacksense.config import FeedbackSenseConfig
from feedbacksense.exceptions import ConfigurationError


class TestFeedbackSenseConfig:
    """Test configuration validation."""

    def test_defaults(self) -> None:
        """Test that the zero-configuration defaults are valid."""
        config = FeedbackSenseConfig()

        assert config.model_name == "google-gla:gemini-1.5-flash"
        assert config.max_requests_per_minute == 15
        assert config.default_batch_size == 15
        assert config.min_batch_size == 5
        assert config.max_batch_size == 20
        assert config.batch_delay_ms == 2000
        assert config.max_tokens_per_request == 30000
        assert config.retry_on_invalid_response is True
        assert config.correction_history_size == 100
        assert config.database_url is None
        assert config.batch_delay_seconds == 2.0

    def test_model_name_validation(self) -> None:
        """Test that model names need a provider prefix."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(model_name="gemini-1.5-flash")
        assert "model_name" in str(exc_info.value)

    def test_temperature_validation(self) -> None:
        """Test temperature bounds."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(temperature=2.5)
        assert "temperature" in str(exc_info.value)

    def test_rate_limit_validation(self) -> None:
        """Test that the request quota must be positive."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(max_requests_per_minute=0)
        assert "max_requests_per_minute" in str(exc_info.value)

    def test_batch_size_validation(self) -> None:
        """Test batch size ordering."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(min_batch_size=10, max_batch_size=5, default_batch_size=7)
        assert "min_batch_size" in str(exc_info.value)

        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(default_batch_size=25)
        assert "default_batch_size" in str(exc_info.value)

    def test_negative_delay_validation(self) -> None:
        """Test that the inter-batch delay cannot be negative."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(batch_delay_ms=-1)
        assert "batch_delay_ms" in str(exc_info.value)

    def test_token_budget_validation(self) -> None:
        """Test token budget lower bound."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(max_tokens_per_request=10)
        assert "max_tokens_per_request" in str(exc_info.value)

    def test_blank_database_url(self) -> None:
        """Test that a blank database URL is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(database_url="   ")
        assert "database_url" in str(exc_info.value)

    def test_error_carries_suggestion(self) -> None:
        """Test that configuration errors include a suggested fix."""
        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig(correction_history_size=0)
        assert exc_info.value.parameter == "correction_history_size"
        assert "Suggested fix" in str(exc_info.value)

    def test_environment_variables(self, monkeypatch) -> None:
        """Test environment variable loading."""
        monkeypatch.setenv("FEEDBACKSENSE_MODEL_NAME", "openai:gpt-4o-mini")
        monkeypatch.setenv("FEEDBACKSENSE_MAX_REQUESTS_PER_MINUTE", "60")
        monkeypatch.setenv("FEEDBACKSENSE_BATCH_DELAY_MS", "0")
        monkeypatch.setenv("FEEDBACKSENSE_DATABASE_URL", "sqlite:///:memory:")

        config = FeedbackSenseConfig()

        assert config.model_name == "openai:gpt-4o-mini"
        assert config.max_requests_per_minute == 60
        assert config.database_url == "sqlite:///:memory:"

    def test_invalid_environment_value(self, monkeypatch) -> None:
        """Test that unparseable environment values raise."""
        monkeypatch.setenv("FEEDBACKSENSE_MAX_BATCH_SIZE", "many")

        with pytest.raises(ConfigurationError) as exc_info:
            FeedbackSenseConfig()
        assert "FEEDBACKSENSE_MAX_BATCH_SIZE" in str(exc_info.value)

    def test_environment_values_are_revalidated(self, monkeypatch) -> None:
        """Test that environment overrides go through validation."""
        monkeypatch.setenv("FEEDBACKSENSE_MIN_BATCH_SIZE", "30")

        with pytest.raises(ConfigurationError):
            FeedbackSenseConfig()
