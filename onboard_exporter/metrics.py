from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Deque, List, Optional

from .models import FetchOutcome, SourceHealth


class FetchStatsCollector:
    """Thread-safe collector for page fetch outcomes.

    Every HTTP page request made by a source pipeline is recorded here,
    and SourceHealth snapshots are derived per source for the exporter's
    own health series."""

    def __init__(self, maxlen: int = 10000) -> None:
        self._lock = Lock()
        self._events: Deque[tuple[float, FetchOutcome]] = deque(maxlen=maxlen)

    def record(self, outcome: FetchOutcome) -> None:
        """Record a page fetch outcome with the current timestamp."""
        with self._lock:
            self._events.append((time.time(), outcome))

    def sources(self) -> List[str]:
        with self._lock:
            return sorted({e.source for _, e in self._events})

    def snapshot(self, source: str, window_secs: Optional[int] = None) -> SourceHealth:
        """Aggregate outcomes of one source, optionally limited to the last window_secs seconds."""
        cutoff = time.time() - window_secs if window_secs is not None else 0.0
        with self._lock:
            events = [e for ts, e in self._events if e.source == source and ts >= cutoff]
        total = len(events)
        failures = sum(1 for e in events if not e.success)
        avg_latency_ms = (sum(e.latency_ms for e in events) / total) if total else 0.0
        return SourceHealth(
            source=source,
            total_requests=total,
            failure_count=failures,
            avg_latency_ms=avg_latency_ms,
        )
