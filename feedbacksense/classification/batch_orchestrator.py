"""
Batch orchestration for feedback classification.

This module drives a list of feedback texts through the classification
pipeline: batches are sized to the token budget, each batch is gated by the
rate limiter, failed batches are retried item by item, and anything the AI
path cannot handle falls back to the keyword classifier. No input item is
ever dropped.
"""

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..batching.batch_sizer import log_batch_stats, optimal_batch_size
from ..batching.rate_limiter import RateLimiter, get_rate_limiter
from ..config import FeedbackSenseConfig
from ..exceptions import (
    ClassificationCancelledError,
    InvalidResponseError,
    NoValidInputError,
    RateLimitedError,
)
from ..llm.client import AIClassificationClient
from ..models import (
    BatchProgress,
    Category,
    ClassificationMethod,
    ClassificationResult,
    FeedbackAnalysis,
    SentimentResult,
    validate_categories,
)
from .keyword_classifier import KeywordFallbackClassifier
from .sentiment import analyze_sentiment

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], Union[None, Awaitable[None]]]


@dataclass
class BatchRunMetrics:
    """Metrics for one orchestrated run."""

    run_id: str
    operation: str
    items_total: int
    batches: int = 0
    ai_batch_items: int = 0
    ai_single_items: int = 0
    fallback_items: int = 0
    llm_calls: int = 0
    failed_batches: int = 0
    total_latency_ms: int = 0
    model_name: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ai_items(self) -> int:
        return self.ai_batch_items + self.ai_single_items

    @property
    def success_rate(self) -> float:
        """Share of items classified by the AI service."""
        return self.ai_items / self.items_total if self.items_total else 0.0


@dataclass
class ReanalysisResult:
    """Fresh analysis of a stored feedback item plus its extended history."""

    item_id: Any
    analysis: FeedbackAnalysis
    classification_history: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.item_id,
            "analysis": self.analysis.to_dict(),
            "classificationHistory": list(self.classification_history),
        }


def filter_valid_texts(texts: Sequence[Any]) -> List[str]:
    """Keep the strings that contain something other than whitespace."""
    return [text for text in texts if isinstance(text, str) and text.strip()]


class BatchOrchestrator:
    """
    Orchestrates batched classification with rate limiting and fallback.

    Recovery order for each chunk: one batch request, then one request per
    item, then the keyword classifier for whatever is still unclassified.
    """

    def __init__(
        self,
        client: Optional[AIClassificationClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        fallback: Optional[KeywordFallbackClassifier] = None,
        config: Optional[FeedbackSenseConfig] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            client: AI client; an unconfigured client means fallback-only mode
            rate_limiter: Limiter gating AI calls; defaults to the shared one
            fallback: Keyword classifier used when the AI path is unavailable
            config: Configuration for batch sizes, delays and retry policy
        """
        self.config = config or FeedbackSenseConfig()
        self.client = client or AIClassificationClient(config=self.config)
        self.rate_limiter = rate_limiter or get_rate_limiter(
            self.config.max_requests_per_minute
        )
        self.fallback = fallback or KeywordFallbackClassifier()

        self.metrics_history: List[BatchRunMetrics] = []

    async def run(
        self,
        texts: Sequence[Any],
        categories: Sequence[Category],
        max_batch_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[FeedbackAnalysis]:
        """
        Classify a list of feedback texts.

        Args:
            texts: Feedback texts; non-strings and blank strings are skipped
            categories: Category registry to classify against
            max_batch_size: Caller cap on the chunk size
            on_progress: Called after every chunk, may be a coroutine function
            cancel_event: Setting this event stops the run

        Returns:
            One analysis per valid input text, in input order

        Raises:
            NoValidInputError: If no valid text remains after filtering
            ValidationError: If the category registry is unusable
            ClassificationCancelledError: If the run was cancelled
        """
        return await self._run(
            texts,
            categories,
            max_batch_size=max_batch_size,
            on_progress=on_progress,
            cancel_event=cancel_event,
            operation="Batch Classification",
        )

    async def _run(
        self,
        texts: Sequence[Any],
        categories: Sequence[Category],
        max_batch_size: Optional[int],
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
        operation: str,
    ) -> List[FeedbackAnalysis]:
        active = validate_categories(categories)

        valid_texts = filter_valid_texts(texts)
        if not valid_texts:
            raise NoValidInputError(total_items=len(texts))

        batch_size = optimal_batch_size(valid_texts, max_batch_size, self.config)
        chunks = self._create_batches(valid_texts, batch_size)
        total_batches = len(chunks)

        metrics = BatchRunMetrics(
            run_id=f"run_{uuid.uuid4().hex[:8]}",
            operation=operation,
            items_total=len(valid_texts),
            model_name=self.client.model_name,
        )
        start_time = time.perf_counter()

        logger.info(
            f"Starting {operation} {metrics.run_id}: {len(valid_texts)} items "
            f"in {total_batches} batches of up to {batch_size}"
        )

        results: List[FeedbackAnalysis] = []

        for batch_number, chunk in enumerate(chunks, start=1):
            self._check_cancelled(cancel_event, len(results))

            sentiments, (classifications, ai_attempted) = await asyncio.gather(
                self._analyze_sentiments(chunk),
                self._classify_chunk(chunk, active, metrics),
            )

            for sentiment, classification in zip(sentiments, classifications):
                results.append(
                    FeedbackAnalysis.combine(
                        sentiment,
                        classification,
                        model_name=self.client.model_name,
                        batch_size=len(chunk),
                    )
                )
            metrics.batches += 1

            if on_progress is not None:
                await self._report_progress(
                    on_progress,
                    BatchProgress(
                        processed=len(results),
                        total=len(valid_texts),
                        percentage=round(len(results) / len(valid_texts) * 100),
                        batches_completed=batch_number,
                        total_batches=total_batches,
                    ),
                )

            # Chunks that never reached the AI service are not paced
            if ai_attempted and batch_number < total_batches:
                await self._wait_between_batches(cancel_event, len(results))

        metrics.total_latency_ms = int((time.perf_counter() - start_time) * 1000)
        self.metrics_history.append(metrics)

        log_batch_stats(
            operation=operation,
            total_items=len(valid_texts),
            total_batches=total_batches,
            average_batch_size=len(valid_texts) / total_batches,
            processing_time_ms=metrics.total_latency_ms,
            success_rate=metrics.success_rate,
        )

        return results

    @staticmethod
    def _create_batches(texts: List[str], batch_size: int) -> List[List[str]]:
        """Split texts into sequential chunks."""
        return [texts[i : i + batch_size] for i in range(0, len(texts), batch_size)]

    @staticmethod
    async def _analyze_sentiments(chunk: List[str]) -> List[SentimentResult]:
        return [analyze_sentiment(text) for text in chunk]

    async def _classify_chunk(
        self,
        chunk: List[str],
        categories: List[Category],
        metrics: BatchRunMetrics,
    ) -> Tuple[List[ClassificationResult], bool]:
        """
        Classify one chunk, degrading to per-item calls and then keywords.

        Returns:
            The results and whether an AI request was issued for the chunk
        """
        if not self.client.is_configured:
            logger.debug("AI service not configured, using keyword classification")
            return self._fallback_many(chunk, categories, metrics), False

        try:
            self.rate_limiter.acquire()
        except RateLimitedError as e:
            logger.warning(f"{e}, classifying {len(chunk)} items with keywords")
            return self._fallback_many(chunk, categories, metrics), False

        metrics.llm_calls += 1
        try:
            results = await self.client.classify_batch(chunk, categories)
        except Exception as e:
            metrics.failed_batches += 1
            logger.error(f"Batch classification failed for {len(chunk)} items: {e}")

            if (
                isinstance(e, InvalidResponseError)
                and not self.config.retry_on_invalid_response
            ):
                return self._fallback_many(chunk, categories, metrics), True

            return [
                await self._classify_single(text, categories, metrics)
                for text in chunk
            ], True

        metrics.ai_batch_items += len(results)
        return results, True

    async def _classify_single(
        self,
        text: str,
        categories: List[Category],
        metrics: BatchRunMetrics,
    ) -> ClassificationResult:
        """Classify one item with the AI service, falling back on any failure."""
        if not self.client.is_configured:
            return self._fallback_one(text, categories, metrics)
        try:
            self.rate_limiter.acquire()
        except RateLimitedError:
            return self._fallback_one(text, categories, metrics)

        metrics.llm_calls += 1
        try:
            result = await self.client.classify_one(text, categories)
        except Exception as e:
            logger.warning(f"Single classification failed, using keywords: {e}")
            return self._fallback_one(text, categories, metrics)

        metrics.ai_single_items += 1
        return result

    def _fallback_one(
        self, text: str, categories: List[Category], metrics: BatchRunMetrics
    ) -> ClassificationResult:
        metrics.fallback_items += 1
        return self.fallback.classify(text, categories)

    def _fallback_many(
        self, chunk: List[str], categories: List[Category], metrics: BatchRunMetrics
    ) -> List[ClassificationResult]:
        metrics.fallback_items += len(chunk)
        return self.fallback.classify_many(chunk, categories)

    @staticmethod
    async def _report_progress(
        on_progress: ProgressCallback, progress: BatchProgress
    ) -> None:
        outcome = on_progress(progress)
        if inspect.isawaitable(outcome):
            await outcome

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event], processed: int) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Classification run cancelled after {processed} items")
            raise ClassificationCancelledError(processed=processed)

    async def _wait_between_batches(
        self, cancel_event: Optional[asyncio.Event], processed: int
    ) -> None:
        delay = self.config.batch_delay_seconds
        if delay <= 0:
            return

        if cancel_event is None:
            await asyncio.sleep(delay)
            return

        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        self._check_cancelled(cancel_event, processed)

    async def analyze(
        self, text: str, categories: Sequence[Category]
    ) -> FeedbackAnalysis:
        """
        Analyze a single feedback text.

        Raises:
            NoValidInputError: If the text is empty or not a string
            ValidationError: If the category registry is unusable
        """
        active = validate_categories(categories)
        if not filter_valid_texts([text]):
            raise NoValidInputError("Feedback text is empty", total_items=1)

        metrics = BatchRunMetrics(
            run_id=f"single_{uuid.uuid4().hex[:8]}",
            operation="Single Analysis",
            items_total=1,
            model_name=self.client.model_name,
        )
        start_time = time.perf_counter()

        sentiments, classification = await asyncio.gather(
            self._analyze_sentiments([text]),
            self._classify_single(text, active, metrics),
        )

        metrics.batches = 1
        metrics.total_latency_ms = int((time.perf_counter() - start_time) * 1000)
        self.metrics_history.append(metrics)

        return FeedbackAnalysis.combine(
            sentiments[0], classification, model_name=self.client.model_name
        )

    async def reanalyze(
        self,
        items: Sequence[Dict[str, Any]],
        categories: Sequence[Category],
        max_batch_size: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ReanalysisResult]:
        """
        Re-classify stored feedback items.

        Each item is a mapping with ``id``, ``content`` and an optional
        ``classification_history`` list. Items without usable content are
        skipped. The new history entry is appended to a copy of the item's
        existing history.

        Raises:
            NoValidInputError: If no item has usable content
        """
        valid_items = [
            item for item in items if filter_valid_texts([item.get("content")])
        ]
        if not valid_items:
            raise NoValidInputError(
                "No feedback items with content to re-analyze", total_items=len(items)
            )

        skipped = len(items) - len(valid_items)
        if skipped:
            logger.warning(f"Skipping {skipped} items without content")

        analyses = await self._run(
            [item["content"] for item in valid_items],
            categories,
            max_batch_size=max_batch_size,
            on_progress=on_progress,
            cancel_event=cancel_event,
            operation="Feedback Re-analysis",
        )

        results: List[ReanalysisResult] = []
        for item, analysis in zip(valid_items, analyses):
            history = list(item.get("classification_history") or [])
            history.append(analysis.history_entry)
            results.append(
                ReanalysisResult(
                    item_id=item.get("id"),
                    analysis=analysis,
                    classification_history=history,
                )
            )
        return results

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of orchestration metrics."""
        if not self.metrics_history:
            return {
                "total_runs": 0,
                "total_items": 0,
                "success_rate": 0.0,
                "average_latency_ms": 0.0,
                "total_llm_calls": 0,
            }

        total_items = sum(m.items_total for m in self.metrics_history)
        total_ai = sum(m.ai_items for m in self.metrics_history)
        total_latency = sum(m.total_latency_ms for m in self.metrics_history)

        return {
            "total_runs": len(self.metrics_history),
            "total_items": total_items,
            "total_batches": sum(m.batches for m in self.metrics_history),
            "ai_batch_items": sum(m.ai_batch_items for m in self.metrics_history),
            "ai_single_items": sum(m.ai_single_items for m in self.metrics_history),
            "fallback_items": sum(m.fallback_items for m in self.metrics_history),
            "failed_batches": sum(m.failed_batches for m in self.metrics_history),
            "success_rate": total_ai / total_items if total_items > 0 else 0.0,
            "average_latency_ms": total_latency / len(self.metrics_history),
            "total_llm_calls": sum(m.llm_calls for m in self.metrics_history),
        }

    def clear_metrics(self) -> None:
        """Clear metrics history."""
        self.metrics_history.clear()
        logger.info("Cleared orchestration metrics history")
