"""
LLM integration for FeedbackSense.
"""

from .agents import (
    AgentFactory,
    create_batch_classification_agent,
    create_classification_agent,
    get_agent_factory,
    is_ai_configured,
    resolve_api_key_env,
    validate_model_name,
)
from .client import AIClassificationClient
from .interactions import (
    build_batch_classification_prompt,
    build_single_classification_prompt,
    extract_json_payload,
    parse_batch_response,
    parse_single_response,
)
from .llm_models import Model, Models, get_model
from .schemas import BatchItemClassification, ItemClassification, ModelConfiguration

__all__ = [
    "AgentFactory",
    "AIClassificationClient",
    "BatchItemClassification",
    "ItemClassification",
    "Model",
    "ModelConfiguration",
    "Models",
    "build_batch_classification_prompt",
    "build_single_classification_prompt",
    "create_batch_classification_agent",
    "create_classification_agent",
    "extract_json_payload",
    "get_agent_factory",
    "get_model",
    "is_ai_configured",
    "parse_batch_response",
    "parse_single_response",
    "resolve_api_key_env",
    "validate_model_name",
]
