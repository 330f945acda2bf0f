"""
Batch sizing for AI classification requests.

This module estimates how many feedback items fit in one request from their
average length and a conservative token budget, and keeps the per-operation
batch presets used by callers such as CSV import and bulk re-analysis.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..config import FeedbackSenseConfig

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 15
MIN_BATCH_SIZE = 5
MAX_BATCH_SIZE = 20
MAX_TOKENS_PER_REQUEST = 30000
MIN_TOKENS_PER_ITEM = 50
CHARS_PER_TOKEN = 4

DELAY_BETWEEN_BATCHES_MS = 2000
MAX_RETRIES = 3
RETRY_DELAY_MS = 1000


@dataclass
class BatchLimits:
    """Bounds used when sizing a batch."""

    default_batch_size: int = DEFAULT_BATCH_SIZE
    min_batch_size: int = MIN_BATCH_SIZE
    max_batch_size: int = MAX_BATCH_SIZE
    max_tokens_per_request: int = MAX_TOKENS_PER_REQUEST

    @classmethod
    def from_config(cls, config: Optional[FeedbackSenseConfig]) -> "BatchLimits":
        if config is None:
            return cls()
        return cls(
            default_batch_size=config.default_batch_size,
            min_batch_size=config.min_batch_size,
            max_batch_size=config.max_batch_size,
            max_tokens_per_request=config.max_tokens_per_request,
        )


@dataclass
class OperationBatchConfig:
    """Batch preset for one kind of caller operation."""

    batch_size: int
    delay_between_batches_ms: int
    max_retries: int
    retry_delay_ms: int
    description: str


def estimate_tokens_per_item(texts: Sequence[str]) -> int:
    """Rough token estimate for an average item (four characters per token)."""
    if not texts:
        return MIN_TOKENS_PER_ITEM
    average_length = sum(len(text) for text in texts) / len(texts)
    return max(MIN_TOKENS_PER_ITEM, math.ceil(average_length / CHARS_PER_TOKEN))


def optimal_batch_size(
    texts: Sequence[str],
    max_batch_size: Optional[int] = None,
    config: Optional[FeedbackSenseConfig] = None,
) -> int:
    """
    Calculate the batch size for a set of texts.

    Args:
        texts: Feedback texts that will be batched
        max_batch_size: Caller cap on the batch size
        config: Optional configuration overriding the default bounds

    Returns:
        A batch size within ``[min_batch_size, min(max_batch_size, cap)]``.
        The floor wins if the caller cap is below it.
    """
    limits = BatchLimits.from_config(config)
    cap = limits.max_batch_size if max_batch_size is None else max_batch_size

    if not texts:
        return max(limits.min_batch_size, min(limits.default_batch_size, cap, limits.max_batch_size))

    tokens_per_item = estimate_tokens_per_item(texts)
    max_items_per_request = limits.max_tokens_per_request // tokens_per_item

    size = min(cap, max_items_per_request, limits.max_batch_size)
    size = max(limits.min_batch_size, size)

    logger.debug(
        "Batch size %d for %d texts (%d tokens/item, cap %d)",
        size,
        len(texts),
        tokens_per_item,
        cap,
    )
    return size


def validate_batch_size(batch_size: Any, config: Optional[FeedbackSenseConfig] = None) -> int:
    """
    Coerce a proposed batch size into the configured range.

    Args:
        batch_size: Proposed batch size, possibly a string

    Returns:
        Batch size truncated and clamped to the limits; non-numeric input
        yields the minimum
    """
    limits = BatchLimits.from_config(config)
    try:
        size = int(float(batch_size))
    except (TypeError, ValueError, OverflowError):
        return limits.min_batch_size

    if size < limits.min_batch_size:
        return limits.min_batch_size
    if size > limits.max_batch_size:
        return limits.max_batch_size
    return size


def get_batch_config(
    operation_type: str = "default", config: Optional[FeedbackSenseConfig] = None
) -> OperationBatchConfig:
    """Get the batch preset for ``csv_import``, ``reanalysis`` or ``default``."""
    limits = BatchLimits.from_config(config)
    delay = config.batch_delay_ms if config else DELAY_BETWEEN_BATCHES_MS
    retries = config.max_retries if config else MAX_RETRIES

    descriptions = {
        "csv_import": "CSV Import Batch Processing",
        "reanalysis": "Feedback Re-analysis Batch Processing",
    }

    return OperationBatchConfig(
        batch_size=limits.default_batch_size,
        delay_between_batches_ms=delay,
        max_retries=retries,
        retry_delay_ms=RETRY_DELAY_MS,
        description=descriptions.get(operation_type, "General Batch Processing"),
    )


def log_batch_stats(
    operation: str = "Unknown",
    total_items: int = 0,
    total_batches: int = 0,
    average_batch_size: float = 0.0,
    processing_time_ms: float = 0.0,
    success_rate: float = 0.0,
) -> None:
    """Log a one-line summary of a finished batch run."""
    seconds = processing_time_ms / 1000
    items_per_second = total_items / seconds if seconds > 0 else 0.0

    logger.info(
        f"Batch processing complete - {operation}: {total_items} items, "
        f"{total_batches} batches, avg size {average_batch_size:.1f}, "
        f"{seconds:.2f}s, success rate {success_rate * 100:.1f}%, "
        f"{items_per_second:.2f} items/s"
    )
