"""
Core FeedbackSense class providing the main public API.

This module wires configuration, the AI client, the rate limiter, the batch
orchestrator and the correction tracker behind one object.
"""

import asyncio
import logging
import time
from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence

from .batching.rate_limiter import RateLimiter, get_rate_limiter
from .classification.batch_orchestrator import (
    BatchOrchestrator,
    ProgressCallback,
    ReanalysisResult,
)
from .config import FeedbackSenseConfig
from .database.correction_store import CorrectionStore
from .exceptions import ConfigurationError, DatabaseError, FeedbackSenseError
from .llm.agents import is_ai_configured
from .llm.client import AIClassificationClient
from .metrics.correction_tracker import CorrectionTracker
from .models import (
    DEFAULT_CATEGORIES,
    Category,
    CorrectionRecord,
    FeedbackAnalysis,
    validate_categories,
)

logger = logging.getLogger(__name__)

SELF_TEST_FEEDBACK = "This is a test feedback to verify AI service connectivity."


class FeedbackSense:
    """
    Main FeedbackSense class for classifying customer feedback.

    Features:
    - AI classification with batch and per-item requests
    - Deterministic keyword fallback when the AI path is unavailable
    - Sliding-window rate limiting and token-aware batch sizing
    - Local sentiment scoring and topic extraction
    - Accuracy tracking from user corrections, optionally persisted
    """

    def __init__(
        self,
        config: Optional[FeedbackSenseConfig] = None,
        categories: Optional[Sequence[Category]] = None,
        client: Optional[AIClassificationClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        store: Optional[CorrectionStore] = None,
    ) -> None:
        """
        Initialize FeedbackSense.

        Args:
            config: Configuration; defaults plus environment overrides if omitted
            categories: Default category registry for calls that pass none
            client: AI client, built from the configuration if omitted
            rate_limiter: Limiter gating AI calls; the shared one if omitted
            store: Correction store; built from ``config.database_url`` if set
        """
        self.config = config or FeedbackSenseConfig()
        self.categories = list(categories or DEFAULT_CATEGORIES)
        validate_categories(self.categories)

        self.client = client or AIClassificationClient(config=self.config)
        self.rate_limiter = rate_limiter or get_rate_limiter(
            self.config.max_requests_per_minute
        )
        self.orchestrator = BatchOrchestrator(
            client=self.client,
            rate_limiter=self.rate_limiter,
            config=self.config,
        )

        self.store = store
        if self.store is None and self.config.database_url:
            try:
                self.store = CorrectionStore(self.config.database_url)
            except DatabaseError as e:
                logger.error(f"Failed to initialize correction store: {e}")
                raise ConfigurationError(
                    f"Correction store initialization failed: {str(e)}",
                    parameter="database_url",
                )

        self.tracker = CorrectionTracker(
            max_history=self.config.correction_history_size, store=self.store
        )
        self.last_ai_error: Optional[str] = None

        if self.ai_available:
            logger.info(f"FeedbackSense ready with AI model {self.client.model_name}")
        else:
            logger.warning("AI service not configured, using keyword classification only")

    @property
    def ai_available(self) -> bool:
        """Whether AI classification can be attempted."""
        return self.client.is_configured

    def _categories(self, categories: Optional[Sequence[Category]]) -> List[Category]:
        return list(categories) if categories is not None else self.categories

    async def analyze(
        self, text: str, categories: Optional[Sequence[Category]] = None
    ) -> FeedbackAnalysis:
        """Analyze one feedback text."""
        return await self.orchestrator.analyze(text, self._categories(categories))

    async def analyze_batch(
        self,
        texts: Sequence[Any],
        categories: Optional[Sequence[Category]] = None,
        max_batch_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[FeedbackAnalysis]:
        """
        Analyze many feedback texts.

        Returns:
            One analysis per valid input text, in input order
        """
        return await self.orchestrator.run(
            texts,
            self._categories(categories),
            max_batch_size=max_batch_size,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

    async def reanalyze(
        self,
        items: Sequence[Dict[str, Any]],
        categories: Optional[Sequence[Category]] = None,
        max_batch_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ReanalysisResult]:
        """Re-classify stored feedback items, extending their history."""
        return await self.orchestrator.reanalyze(
            items,
            self._categories(categories),
            max_batch_size=max_batch_size,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

    def record_correction(
        self,
        text: str,
        ai_prediction: str,
        user_correction: str,
        ai_confidence: float,
    ) -> CorrectionRecord:
        """Record a user's verdict on an AI prediction."""
        return self.tracker.record_correction(
            text, ai_prediction, user_correction, ai_confidence
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Accuracy metrics derived from recorded corrections."""
        return self.tracker.get_metrics()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the FeedbackSense instance.

        Returns:
            Dictionary with configuration, rate limit and run statistics
        """
        return {
            "configuration": {
                "model_name": self.client.model_name,
                "max_requests_per_minute": self.config.max_requests_per_minute,
                "default_batch_size": self.config.default_batch_size,
                "batch_delay_ms": self.config.batch_delay_ms,
                "persistence": self.store is not None,
            },
            "ai_available": self.ai_available,
            "rate_limit": {
                "requests_in_window": self.rate_limiter.request_count,
                "remaining": self.rate_limiter.remaining(),
            },
            "runs": self.orchestrator.get_metrics_summary(),
            "accuracy": self.get_metrics(),
        }

    def get_service_health(self) -> Dict[str, Any]:
        """
        Report whether the AI service can be used and what is available.

        Returns:
            Dictionary with readiness flags, rate limit status, the last
            self-test error and per-feature capabilities
        """
        ai_ready = self.ai_available
        return {
            "initialized": ai_ready,
            "api_key_configured": is_ai_configured(self.client.model_name),
            "model_name": self.client.model_name,
            "rate_limit": {
                "requests_in_window": self.rate_limiter.request_count,
                "remaining": self.rate_limiter.remaining(),
                "max_requests": self.rate_limiter.max_requests,
                "window_seconds": self.rate_limiter.window_seconds,
            },
            "last_error": self.last_ai_error,
            "capabilities": {
                "ai_classification": ai_ready,
                "batch_classification": ai_ready,
                "keyword_fallback": True,
                "sentiment": True,
            },
        }

    async def test_ai_service(self) -> Dict[str, Any]:
        """
        Classify a fixed sample text to check the AI service end to end.

        The request counts against the rate limit. Failures are reported in
        the result, never raised.

        Returns:
            Dictionary with ``success``, the classification or an ``error``,
            the response time and the health report
        """
        if not self.ai_available:
            return {
                "success": False,
                "error": "AI service not configured",
                "details": self.get_service_health(),
            }

        start_time = time.perf_counter()
        try:
            self.rate_limiter.acquire()
            result = await self.client.classify_one(
                SELF_TEST_FEEDBACK, self.categories
            )
        except FeedbackSenseError as e:
            self.last_ai_error = str(e)
            logger.error(f"AI service self-test failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "details": self.get_service_health(),
            }

        self.last_ai_error = None
        return {
            "success": True,
            "result": result.to_dict(),
            "response_time_ms": int((time.perf_counter() - start_time) * 1000),
            "details": self.get_service_health(),
        }

    def close(self) -> None:
        """Close database connections and cleanup resources."""
        try:
            if self.store is not None:
                self.store.close()
            logger.info("FeedbackSense instance closed successfully")
        except Exception as e:
            logger.error(f"Error closing FeedbackSense instance: {e}")

    def __enter__(self) -> "FeedbackSense":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        """Context manager exit."""
        self.close()


def create_feedbacksense(
    model_name: Optional[str] = None,
    database_url: Optional[str] = None,
    **kwargs: Any,
) -> FeedbackSense:
    """
    Create a FeedbackSense instance with simplified configuration.

    Args:
        model_name: Model identifier in ``provider:model`` format
        database_url: Database URL for correction persistence
        **kwargs: Additional ``FeedbackSenseConfig`` fields

    Returns:
        Configured FeedbackSense instance
    """
    config_kwargs: Dict[str, Any] = dict(kwargs)
    if model_name is not None:
        config_kwargs["model_name"] = model_name
    if database_url is not None:
        config_kwargs["database_url"] = database_url
    return FeedbackSense(config=FeedbackSenseConfig(**config_kwargs))
