"""
Request pacing and batch sizing.
"""

from .batch_sizer import (
    BatchLimits,
    OperationBatchConfig,
    estimate_tokens_per_item,
    get_batch_config,
    log_batch_stats,
    optimal_batch_size,
    validate_batch_size,
)
from .rate_limiter import RateLimiter, get_rate_limiter

__all__ = [
    "BatchLimits",
    "OperationBatchConfig",
    "RateLimiter",
    "estimate_tokens_per_item",
    "get_batch_config",
    "get_rate_limiter",
    "log_batch_stats",
    "optimal_batch_size",
    "validate_batch_size",
]
