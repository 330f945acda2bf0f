"""
Sliding-window rate limiter gating calls to the AI service.

The limiter keeps the timestamps of requests issued in the last window and
refuses new ones once the quota is used up. All state changes go through the
instance lock, so the same limiter can be shared by concurrent runs.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..exceptions import RateLimitedError

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS_PER_MINUTE = 15
DEFAULT_WINDOW_SECONDS = 60.0


class RateLimiter:
    """
    Sliding-window request counter.

    ``allow_request`` and ``record_request`` mirror a check-then-record
    protocol; ``try_acquire`` performs both under one lock acquisition and
    ``acquire`` raises ``RateLimitedError`` instead of returning False.
    """

    def __init__(
        self,
        max_requests_per_minute: int = DEFAULT_MAX_REQUESTS_PER_MINUTE,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests_per_minute
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Deque[float] = deque()
        self._lock = threading.RLock()

    def _evict_expired(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()

    def allow_request(self) -> bool:
        """Return True if another request fits in the current window."""
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._requests) < self.max_requests

    def record_request(self) -> None:
        """Record a request issued now."""
        with self._lock:
            self._requests.append(self._clock())

    def try_acquire(self) -> bool:
        """Atomically check the window and record a request if allowed."""
        with self._lock:
            if not self.allow_request():
                logger.warning(
                    "Rate limit reached: %d requests in the last %gs",
                    len(self._requests),
                    self.window_seconds,
                )
                return False
            self.record_request()
            return True

    def acquire(self) -> None:
        """
        Record a request, or raise if the window is exhausted.

        Raises:
            RateLimitedError: If the quota for the current window is used up
        """
        if not self.try_acquire():
            raise RateLimitedError(
                "Request quota exhausted",
                limit=self.max_requests,
                window_seconds=self.window_seconds,
            )

    def remaining(self) -> int:
        """Number of requests still available in the current window."""
        with self._lock:
            self._evict_expired(self._clock())
            return max(0, self.max_requests - len(self._requests))

    @property
    def request_count(self) -> int:
        """Requests recorded in the current window."""
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._requests)

    def set_max_requests(self, max_requests_per_minute: int) -> None:
        """Change the quota, keeping the requests already recorded."""
        if max_requests_per_minute <= 0:
            raise ValueError("max_requests_per_minute must be positive")
        with self._lock:
            self.max_requests = max_requests_per_minute

    def reset(self) -> None:
        """Forget all recorded requests."""
        with self._lock:
            self._requests.clear()
        logger.info("Rate limiter window cleared")


# Global rate limiter instance
_default_limiter: Optional[RateLimiter] = None
_default_limiter_lock = threading.Lock()


def get_rate_limiter(max_requests_per_minute: Optional[int] = None) -> RateLimiter:
    """
    Get the process-wide rate limiter.

    Every caller receives the same instance. A different quota is applied to
    that instance in place, so requests already recorded keep counting.

    Args:
        max_requests_per_minute: Quota for the shared limiter

    Returns:
        RateLimiter instance
    """
    global _default_limiter

    with _default_limiter_lock:
        if _default_limiter is None:
            _default_limiter = RateLimiter(
                max_requests_per_minute or DEFAULT_MAX_REQUESTS_PER_MINUTE
            )
        elif (
            max_requests_per_minute is not None
            and max_requests_per_minute != _default_limiter.max_requests
        ):
            logger.warning(
                "Changing shared rate limit from %d to %d requests per window",
                _default_limiter.max_requests,
                max_requests_per_minute,
            )
            _default_limiter.set_max_requests(max_requests_per_minute)
        return _default_limiter
