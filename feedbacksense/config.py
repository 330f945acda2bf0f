"""Configuration management and validation for FeedbackSense."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class FeedbackSenseConfig:
    """Configuration class with comprehensive validation.

    Every field has a default so the pipeline runs in fallback-only mode with
    zero configuration. Environment variables prefixed with ``FEEDBACKSENSE_``
    override the constructor values.
    """

    # LLM settings
    model_name: str = "google-gla:gemini-1.5-flash"
    temperature: float = 0.1
    request_timeout: int = 30
    max_retries: int = 3

    # Rate limiting
    max_requests_per_minute: int = 15

    # Batch settings
    default_batch_size: int = 15
    min_batch_size: int = 5
    max_batch_size: int = 20
    batch_delay_ms: int = 2000
    max_tokens_per_request: int = 30000

    # Recovery policy
    retry_on_invalid_response: bool = True

    # Correction tracking
    correction_history_size: int = 100
    database_url: Optional[str] = None

    # Additional settings
    extra_config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        self._validate_all_parameters()
        self._load_environment_variables()

    def _validate_all_parameters(self):
        """Run all validation checks."""
        self._validate_llm_settings()
        self._validate_rate_limit()
        self._validate_batch_sizes()
        self._validate_token_budget()
        self._validate_correction_settings()

    def _validate_llm_settings(self):
        """Validate model identifier and generation settings."""
        if not self.model_name or ":" not in self.model_name:
            raise ConfigurationError(
                f"model_name ({self.model_name!r}) must use the 'provider:model' format",
                parameter="model_name",
                suggested_fix="Use a value such as 'google-gla:gemini-1.5-flash' or 'openai:gpt-4o-mini'",
            )

        if not (0.0 <= self.temperature <= 2.0):
            raise ConfigurationError(
                f"temperature ({self.temperature}) must be between 0.0 and 2.0",
                parameter="temperature",
                suggested_fix="Set temperature to a value between 0.0 and 2.0",
            )

        if self.request_timeout < 1:
            raise ConfigurationError(
                f"request_timeout ({self.request_timeout}) must be at least 1 second",
                parameter="request_timeout",
                suggested_fix="Set request_timeout to a positive number of seconds",
            )

        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries ({self.max_retries}) cannot be negative",
                parameter="max_retries",
                suggested_fix="Set max_retries to 0 or more",
            )

    def _validate_rate_limit(self):
        """Validate the requests-per-minute quota."""
        if self.max_requests_per_minute <= 0:
            raise ConfigurationError(
                f"max_requests_per_minute ({self.max_requests_per_minute}) must be a positive integer",
                parameter="max_requests_per_minute",
                suggested_fix="Set max_requests_per_minute to the provider quota (15 for free tiers)",
            )

    def _validate_batch_sizes(self):
        """Validate batch size bounds and pacing."""
        if self.min_batch_size < 1:
            raise ConfigurationError(
                f"min_batch_size ({self.min_batch_size}) must be at least 1",
                parameter="min_batch_size",
                suggested_fix="Set min_batch_size to 1 or more",
            )

        if self.min_batch_size > self.max_batch_size:
            raise ConfigurationError(
                f"min_batch_size ({self.min_batch_size}) must not exceed "
                f"max_batch_size ({self.max_batch_size})",
                parameter="min_batch_size",
                suggested_fix="Ensure min_batch_size <= max_batch_size",
            )

        if not (self.min_batch_size <= self.default_batch_size <= self.max_batch_size):
            raise ConfigurationError(
                f"default_batch_size ({self.default_batch_size}) must be between "
                f"{self.min_batch_size} and {self.max_batch_size}",
                parameter="default_batch_size",
                suggested_fix="Set default_batch_size within the min/max batch size range",
            )

        if self.batch_delay_ms < 0:
            raise ConfigurationError(
                f"batch_delay_ms ({self.batch_delay_ms}) cannot be negative",
                parameter="batch_delay_ms",
                suggested_fix="Set batch_delay_ms to 0 or more",
            )

    def _validate_token_budget(self):
        """Validate the per-request token budget."""
        # One item is estimated at no less than 50 tokens
        if self.max_tokens_per_request < 50:
            raise ConfigurationError(
                f"max_tokens_per_request ({self.max_tokens_per_request}) must be at least 50",
                parameter="max_tokens_per_request",
                suggested_fix="Set max_tokens_per_request to 50 or more",
            )

    def _validate_correction_settings(self):
        """Validate correction history settings."""
        if self.correction_history_size <= 0:
            raise ConfigurationError(
                f"correction_history_size ({self.correction_history_size}) must be a positive integer",
                parameter="correction_history_size",
                suggested_fix="Set correction_history_size to a positive integer",
            )

        if self.database_url is not None and not self.database_url.strip():
            raise ConfigurationError(
                "database_url cannot be blank",
                parameter="database_url",
                suggested_fix="Omit database_url or provide a URL such as 'sqlite:///feedbacksense.db'",
            )

    def _load_environment_variables(self):
        """Load configuration from environment variables."""
        env_mappings = {
            "FEEDBACKSENSE_MODEL_NAME": "model_name",
            "FEEDBACKSENSE_TEMPERATURE": ("temperature", float),
            "FEEDBACKSENSE_REQUEST_TIMEOUT": ("request_timeout", int),
            "FEEDBACKSENSE_MAX_RETRIES": ("max_retries", int),
            "FEEDBACKSENSE_MAX_REQUESTS_PER_MINUTE": ("max_requests_per_minute", int),
            "FEEDBACKSENSE_DEFAULT_BATCH_SIZE": ("default_batch_size", int),
            "FEEDBACKSENSE_MIN_BATCH_SIZE": ("min_batch_size", int),
            "FEEDBACKSENSE_MAX_BATCH_SIZE": ("max_batch_size", int),
            "FEEDBACKSENSE_BATCH_DELAY_MS": ("batch_delay_ms", int),
            "FEEDBACKSENSE_MAX_TOKENS_PER_REQUEST": ("max_tokens_per_request", int),
            "FEEDBACKSENSE_CORRECTION_HISTORY_SIZE": ("correction_history_size", int),
            "FEEDBACKSENSE_DATABASE_URL": "database_url",
        }

        loaded = []
        for env_var, config_attr in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value:
                if isinstance(config_attr, tuple):
                    attr_name, attr_type = config_attr
                    try:
                        setattr(self, attr_name, attr_type(env_value))
                    except ValueError:
                        raise ConfigurationError(
                            f"Invalid value for {env_var}: {env_value}",
                            parameter=attr_name,
                            suggested_fix=f"Provide a valid {attr_type.__name__} value",
                        )
                else:
                    setattr(self, config_attr, env_value)
                loaded.append(env_var)

        if loaded:
            logger.debug("Loaded configuration overrides from %s", ", ".join(loaded))

        # Re-validate after loading environment variables
        self._validate_all_parameters()

    @property
    def batch_delay_seconds(self) -> float:
        """Inter-batch delay expressed in seconds."""
        return self.batch_delay_ms / 1000.0
