from __future__ import annotations

import logging
import threading
import time
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

RATE_LIMIT_MIN_REMAINING = 10


class RateLimiter:
    """Per-source request throttle based on requests per second.

    acquire() blocks the calling thread until the next page request of
    that source is allowed. A non-positive rate disables throttling."""

    def __init__(self, requests_per_second: float) -> None:
        self._interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._lock = threading.Lock()
        self._next_allowed = 0.0

    @property
    def interval(self) -> float:
        return self._interval

    def acquire(self) -> None:
        """Block until the next request is permitted."""
        if self._interval <= 0:
            return
        with self._lock:
            now = time.monotonic()
            if now < self._next_allowed:
                time.sleep(self._next_allowed - now)
            self._next_allowed = max(self._next_allowed + self._interval, time.monotonic())


def remaining_requests(headers: Mapping[str, str]) -> Optional[int]:
    """Read the X-RateLimit-Remaining header GitHub attaches to every response."""
    raw = headers.get("X-RateLimit-Remaining")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def warn_if_rate_limit_low(source: str, headers: Mapping[str, str]) -> None:
    remaining = remaining_requests(headers)
    if remaining is not None and remaining <= RATE_LIMIT_MIN_REMAINING:
        logger.warning(
            "%s: approaching API rate limit, %d requests remaining (resets at %s)",
            source,
            remaining,
            headers.get("X-RateLimit-Reset", "unknown"),
        )
