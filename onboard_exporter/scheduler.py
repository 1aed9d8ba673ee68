from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import AuthAbsent, DecodeFailure, FetchFailure, UpstreamError
from .metrics import FetchStatsCollector
from .models import AggregateResult, CycleReport, SourceSnapshot
from .pipeline import SourcePipeline
from .sink import MetricSink

logger = logging.getLogger(__name__)

SOURCE_UP = "onboard_exporter_source_up"
PAGE_FETCHES = "onboard_exporter_page_fetches"
FETCH_FAILURES = "onboard_exporter_fetch_failures"
FETCH_LATENCY = "onboard_exporter_fetch_latency_ms"
LAST_SUCCESS = "onboard_exporter_last_success_timestamp"

HEALTH_DESCRIPTIONS = {
    SOURCE_UP: "Whether the last refresh of a source succeeded",
    PAGE_FETCHES: "Page requests made per source within the stats window",
    FETCH_FAILURES: "Failed page requests per source within the stats window",
    FETCH_LATENCY: "Average page request latency per source in milliseconds",
    LAST_SUCCESS: "Unix time of the last published snapshot per source",
}


class SchedulerState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshScheduler:
    """Runs one fetch-aggregate cycle over every source pipeline per trigger.

    Pipelines run concurrently on a thread pool and never share state. Each
    one publishes its own snapshot as soon as it finishes; a pipeline that
    fails leaves its previous snapshot, and therefore its previous metric
    values, in place. refresh() returns only after every pipeline is done.
    """

    def __init__(
        self,
        pipelines: Iterable[SourcePipeline],
        sink: MetricSink,
        stats: Optional[FetchStatsCollector] = None,
        max_workers: int = 8,
        stats_window_secs: int = 3600,
    ) -> None:
        self._pipelines = list(pipelines)
        self._sink = sink
        self._stats = stats
        self._stats_window = stats_window_secs
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="pipeline")

        self._cycle_lock = threading.Lock()
        self._lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._snapshots: Dict[str, SourceSnapshot] = {}
        self._up: Dict[str, float] = {}

    @property
    def state(self) -> SchedulerState:
        return self._state

    def snapshot(self, source: str) -> Optional[SourceSnapshot]:
        with self._lock:
            return self._snapshots.get(source)

    def refresh(self) -> CycleReport:
        """Run one full cycle; blocks until every pipeline completed or failed."""
        with self._cycle_lock:
            self._state = SchedulerState.REFRESHING
            started = time.time()
            succeeded: List[str] = []
            failed: Dict[str, str] = {}
            try:
                futures = [(p.name, self._executor.submit(self._run_pipeline, p)) for p in self._pipelines]
                for name, future in futures:
                    error = future.result()
                    if error is None:
                        succeeded.append(name)
                    else:
                        failed[name] = error
                self._publish_health()
            finally:
                self._state = SchedulerState.IDLE

            report = CycleReport(
                started_at=started,
                duration_ms=int((time.time() - started) * 1000),
                succeeded=succeeded,
                failed=failed,
            )
            logger.info(
                json.dumps(
                    {
                        "event": "refresh_cycle",
                        "timestamp": started,
                        "duration_ms": report.duration_ms,
                        "succeeded": report.succeeded,
                        "failed": report.failed,
                    },
                    ensure_ascii=False,
                )
            )
            return report

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        for pipeline in self._pipelines:
            pipeline.close()

    def _run_pipeline(self, pipeline: SourcePipeline) -> Optional[str]:
        """Run one pipeline and publish its snapshot; return an error type on failure."""
        start = time.time()
        try:
            results = pipeline.run()
        except AuthAbsent as exc:
            logger.warning("%s; publishing empty result", exc)
            results = pipeline.empty_result()
        except (DecodeFailure, UpstreamError) as exc:
            logger.error(
                "%s rejected page %d, keeping previous snapshot: %s payload=%s",
                exc.source,
                exc.page_index,
                exc,
                exc.payload,
            )
            self._mark(pipeline.name, up=False)
            return type(exc).__name__
        except FetchFailure as exc:
            logger.error(
                "%s failed on page %d, keeping previous snapshot (%d partial records discarded): %s",
                exc.source,
                exc.page_index,
                len(exc.partial_records),
                exc,
            )
            self._mark(pipeline.name, up=False)
            return type(exc).__name__
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed, keeping previous snapshot", pipeline.name)
            self._mark(pipeline.name, up=False)
            return type(exc).__name__

        self._publish(pipeline.name, results)
        logger.debug("%s refreshed in %d ms", pipeline.name, int((time.time() - start) * 1000))
        return None

    def _publish(self, source: str, results: Tuple[AggregateResult, ...]) -> None:
        snapshot = SourceSnapshot(source=source, results=tuple(results), completed_at=time.time())
        with self._lock:
            self._snapshots[source] = snapshot
            self._up[source] = 1.0
        self._sink.publish(snapshot)

    def _mark(self, source: str, up: bool) -> None:
        with self._lock:
            self._up[source] = 1.0 if up else 0.0

    def _publish_health(self) -> None:
        with self._lock:
            up = dict(self._up)
            last_success = {name: snap.completed_at for name, snap in self._snapshots.items()}
        self._sink.set_labeled(SOURCE_UP, "source", up)
        self._sink.set_labeled(LAST_SUCCESS, "source", last_success)

        if not self._stats:
            return
        fetches: Dict[str, float] = {}
        failures: Dict[str, float] = {}
        latency: Dict[str, float] = {}
        for source in self._stats.sources():
            health = self._stats.snapshot(source, window_secs=self._stats_window)
            fetches[source] = health.total_requests
            failures[source] = health.failure_count
            latency[source] = health.avg_latency_ms
        self._sink.set_labeled(PAGE_FETCHES, "source", fetches)
        self._sink.set_labeled(FETCH_FAILURES, "source", failures)
        self._sink.set_labeled(FETCH_LATENCY, "source", latency)
