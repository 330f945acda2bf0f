"""
Pydantic AI agents for feedback classification.

This module provides the agent factory and the provider credential checks
that decide whether the AI path is available at all.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from ..exceptions import ConfigurationError
from .schemas import ModelConfiguration

logger = logging.getLogger(__name__)


SINGLE_SYSTEM_PROMPT = (
    "You are an AI assistant specialized in categorizing customer feedback "
    "with enhanced confidence scoring. Always answer with a single JSON object."
)

BATCH_SYSTEM_PROMPT = (
    "You are an AI assistant specialized in categorizing customer feedback "
    "with enhanced confidence scoring. Always answer with a single JSON array "
    "holding one object per feedback item, in request order."
)

# Environment variables read by each provider, in lookup order
PROVIDER_API_KEY_ENV: Dict[str, Tuple[str, ...]] = {
    "google-gla": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "google": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "groq": ("GROQ_API_KEY",),
    "mistral": ("MISTRAL_API_KEY",),
    "cohere": ("CO_API_KEY",),
    "deepseek": ("DEEPSEEK_API_KEY",),
}

_PLACEHOLDER_PREFIXES = ("your_", "your-", "<")


class AgentFactory:
    """
    Factory class for creating Pydantic AI agents with proper configuration.

    Classification agents return plain text; parsing and validation of the
    JSON inside that text is done by the caller.
    """

    def __init__(self, default_config: Optional[ModelConfiguration] = None):
        """
        Initialize the agent factory.

        Args:
            default_config: Default configuration for all agents
        """
        self.default_config = default_config or ModelConfiguration(
            model_name="google-gla:gemini-1.5-flash",
            temperature=0.1,
            timeout=30,
            retry_attempts=3,
        )
        self._agent_cache: Dict[str, Agent] = {}

    def create_classification_agent(
        self,
        model_name: Optional[str] = None,
        config: Optional[ModelConfiguration] = None,
    ) -> Agent:
        """
        Create an agent for single feedback classification.

        Args:
            model_name: Model to use (overrides config)
            config: Model configuration

        Returns:
            Configured Pydantic AI agent
        """
        return self._get_or_create(
            "classification", SINGLE_SYSTEM_PROMPT, model_name, config
        )

    def create_batch_classification_agent(
        self,
        model_name: Optional[str] = None,
        config: Optional[ModelConfiguration] = None,
    ) -> Agent:
        """
        Create an agent for batch feedback classification.

        Args:
            model_name: Model to use (overrides config)
            config: Model configuration

        Returns:
            Configured Pydantic AI agent
        """
        return self._get_or_create(
            "batch_classification", BATCH_SYSTEM_PROMPT, model_name, config
        )

    def _get_or_create(
        self,
        purpose: str,
        system_prompt: str,
        model_name: Optional[str],
        config: Optional[ModelConfiguration],
    ) -> Agent:
        effective_config = self._get_effective_config(model_name, config)
        cache_key = (
            f"{purpose}_{effective_config.model_name}_{effective_config.temperature}"
        )

        if cache_key in self._agent_cache:
            return self._agent_cache[cache_key]

        agent = self._create_text_agent(
            model_name=effective_config.model_name,
            config=effective_config,
            system_prompt=system_prompt,
            agent_name=purpose,
        )

        self._agent_cache[cache_key] = agent
        return agent

    def _create_text_agent(
        self,
        model_name: str,
        config: ModelConfiguration,
        system_prompt: str,
        agent_name: str,
    ) -> Agent:
        """
        Create a plain-text agent with the specified configuration.

        Args:
            model_name: Model name to use
            config: Model configuration
            system_prompt: Instructions sent with every request
            agent_name: Name used in log messages

        Returns:
            Configured Pydantic AI agent
        """
        settings: Dict[str, Any] = {
            "temperature": config.temperature,
            "timeout": config.timeout,
        }
        if config.max_tokens is not None:
            settings["max_tokens"] = config.max_tokens

        try:
            agent = Agent(
                model_name,
                output_type=str,
                system_prompt=system_prompt,
                model_settings=ModelSettings(**settings),
                retries=config.retry_attempts,
                defer_model_check=True,
            )
        except Exception as e:
            logger.error(
                f"Failed to create agent {agent_name} for model {model_name}: {e}"
            )
            raise ConfigurationError(
                f"Failed to create {agent_name} agent: {str(e)}",
                parameter="model_name",
            )

        logger.info(f"Created {agent_name} agent for model {model_name}")
        return agent

    def _get_effective_config(
        self, model_name: Optional[str], config: Optional[ModelConfiguration]
    ) -> ModelConfiguration:
        """Merge an optional model name override into the configuration."""
        if config is None:
            config = self.default_config

        if model_name is not None:
            config = config.model_copy(update={"model_name": model_name})

        return config

    def clear_cache(self):
        """Clear the agent cache."""
        self._agent_cache.clear()
        logger.info("Agent cache cleared")


# Global agent factory instance
_default_factory: Optional[AgentFactory] = None


def get_agent_factory(config: Optional[ModelConfiguration] = None) -> AgentFactory:
    """
    Get the global agent factory instance.

    Args:
        config: Optional configuration for the factory

    Returns:
        AgentFactory instance
    """
    global _default_factory

    if _default_factory is None or config is not None:
        _default_factory = AgentFactory(config)

    return _default_factory


def create_classification_agent(
    model_name: Optional[str] = None, config: Optional[ModelConfiguration] = None
) -> Agent:
    """Create a single-item classification agent using the global factory."""
    return get_agent_factory().create_classification_agent(model_name, config)


def create_batch_classification_agent(
    model_name: Optional[str] = None, config: Optional[ModelConfiguration] = None
) -> Agent:
    """Create a batch classification agent using the global factory."""
    return get_agent_factory().create_batch_classification_agent(model_name, config)


def validate_model_name(model_name: str) -> bool:
    """
    Validate that a model name is properly formatted.

    Args:
        model_name: Model name to validate

    Returns:
        True if valid, False otherwise
    """
    if not model_name or not isinstance(model_name, str):
        return False

    if ":" not in model_name:
        return False

    provider, model = model_name.split(":", 1)
    return bool(provider.strip() and model.strip())


def get_supported_providers() -> List[str]:
    """Providers whose credentials can be detected."""
    return list(PROVIDER_API_KEY_ENV)


def _is_real_key(value: Optional[str]) -> bool:
    if not value or not value.strip():
        return False
    return not value.strip().lower().startswith(_PLACEHOLDER_PREFIXES)


def resolve_api_key_env(model_name: str) -> Optional[str]:
    """
    Find the environment variable holding a usable key for a model's provider.

    Args:
        model_name: Model name in ``provider:model`` format

    Returns:
        The variable name, or None when no real key is configured
    """
    if not validate_model_name(model_name):
        return None

    provider = model_name.split(":", 1)[0].strip().lower()
    for env_var in PROVIDER_API_KEY_ENV.get(provider, ()):
        if _is_real_key(os.getenv(env_var)):
            return env_var
    return None


def is_ai_configured(model_name: str) -> bool:
    """Whether credentials for the model's provider are present."""
    return resolve_api_key_env(model_name) is not None
