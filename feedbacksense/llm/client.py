"""
AI classification client.

Wraps the pydantic-ai agents behind two coroutines, ``classify_one`` and
``classify_batch``. The client reports failures as exceptions and never falls
back on its own; recovery is the orchestrator's job.
"""

import logging
import time
from typing import Any, List, Optional, Sequence

from litellm import token_counter
from pydantic_ai import Agent

from ..config import FeedbackSenseConfig
from ..exceptions import (
    AIServiceError,
    PromptTooLargeError,
    ServiceUnavailableError,
    ValidationError,
)
from ..models import Category, ClassificationResult, active_categories
from .agents import AgentFactory, is_ai_configured
from .interactions import (
    build_batch_classification_prompt,
    build_single_classification_prompt,
    parse_batch_response,
    parse_single_response,
)
from .llm_models import get_model
from .schemas import ModelConfiguration

logger = logging.getLogger(__name__)

FALLBACK_CHARS_PER_TOKEN = 4


class AIClassificationClient:
    """
    Client for the generative classification service.

    Args:
        model_name: Model identifier in ``provider:model`` format
        agent: Pre-built agent for single classification (mainly for tests)
        batch_agent: Pre-built agent for batch classification; defaults to ``agent``
        config: Configuration supplying model name, temperature and timeouts
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        agent: Optional[Agent] = None,
        batch_agent: Optional[Agent] = None,
        config: Optional[FeedbackSenseConfig] = None,
    ):
        self.config = config or FeedbackSenseConfig()
        self.model_name = model_name or self.config.model_name
        self.model = get_model(self.model_name)

        self._single_agent = agent
        self._batch_agent = batch_agent or agent
        self._factory: Optional[AgentFactory] = None

    @property
    def is_configured(self) -> bool:
        """True when an agent was injected or provider credentials are present."""
        if self._single_agent is not None:
            return True
        return is_ai_configured(self.model_name)

    def _get_factory(self) -> AgentFactory:
        if self._factory is None:
            self._factory = AgentFactory(
                ModelConfiguration(
                    model_name=self.model_name,
                    temperature=self.config.temperature,
                    timeout=self.config.request_timeout,
                    retry_attempts=self.config.max_retries,
                )
            )
        return self._factory

    def _get_single_agent(self) -> Agent:
        if self._single_agent is None:
            self._single_agent = self._get_factory().create_classification_agent()
        return self._single_agent

    def _get_batch_agent(self) -> Agent:
        if self._batch_agent is None:
            self._batch_agent = self._get_factory().create_batch_classification_agent()
        return self._batch_agent

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise ServiceUnavailableError(model=self.model_name)

    def count_prompt_tokens(self, prompt: str) -> int:
        """Count prompt tokens with litellm, estimating from length if it fails."""
        if not prompt:
            return 0
        try:
            return token_counter(model=self.model.litellm_name, text=prompt)
        except Exception as e:
            logger.warning(f"litellm token counting failed: {e}, using estimate")
            return max(1, len(prompt) // FALLBACK_CHARS_PER_TOKEN)

    def _check_prompt_size(self, prompt: str) -> None:
        prompt_tokens = self.count_prompt_tokens(prompt)
        budget = self.model.max_prompt_tokens
        if prompt_tokens > budget:
            raise PromptTooLargeError(
                f"Prompt for {self.model_name} exceeds the input budget",
                prompt_tokens=prompt_tokens,
                max_tokens=budget,
            )

    async def _call(self, agent: Agent, prompt: str) -> str:
        start_time = time.perf_counter()
        try:
            response = await agent.run(prompt)
        except Exception as exc:
            raise AIServiceError(
                f"Request failed: {exc}",
                model=self.model_name,
                error_type=type(exc).__name__,
            ) from exc

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(f"AI response received in {latency_ms}ms")

        text: Any = getattr(response, "output", None)
        if text is None:
            text = getattr(response, "data", None)
        if not isinstance(text, str):
            raise AIServiceError(
                "AI service returned no text output",
                model=self.model_name,
                error_type="empty_response",
            )
        return text

    async def classify_one(
        self, text: str, categories: Sequence[Category]
    ) -> ClassificationResult:
        """
        Classify a single feedback text.

        Raises:
            ServiceUnavailableError: If no agent or credentials are available
            PromptTooLargeError: If the prompt exceeds the model's input budget
            InvalidResponseError: If the response fails validation
            AIServiceError: On transport failures
        """
        self._ensure_configured()
        active = _require_active(categories)

        prompt = build_single_classification_prompt(
            feedback_text=text, categories=active
        )
        self._check_prompt_size(prompt)
        logger.debug(f"Single classification prompt: {prompt}")

        raw_text = await self._call(self._get_single_agent(), prompt)
        try:
            return parse_single_response(raw_text, active)
        except AIServiceError as exc:
            exc.model = self.model_name
            raise

    async def classify_batch(
        self, texts: Sequence[str], categories: Sequence[Category]
    ) -> List[ClassificationResult]:
        """
        Classify several texts in one request.

        Returns:
            One result per input text, in input order

        Raises:
            Same as ``classify_one``; also ``InvalidResponseError`` on a count
            or index mismatch
        """
        self._ensure_configured()
        active = _require_active(categories)
        if not texts:
            return []

        prompt = build_batch_classification_prompt(
            feedback_texts=list(texts), categories=active
        )
        self._check_prompt_size(prompt)
        logger.debug(f"Batch classification prompt ({len(texts)} items): {prompt}")

        raw_text = await self._call(self._get_batch_agent(), prompt)
        try:
            return parse_batch_response(raw_text, len(texts), active)
        except AIServiceError as exc:
            exc.model = self.model_name
            raise


def _require_active(categories: Sequence[Category]) -> List[Category]:
    active = active_categories(categories)
    if not active:
        raise ValidationError("No active categories supplied", field="categories")
    return active
