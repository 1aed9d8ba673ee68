from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

from .errors import DecodeFailure, TransportFailure
from .metrics import FetchStatsCollector
from .models import FetchOutcome, HttpRequest
from .rate_limiter import RateLimiter, warn_if_rate_limit_low

logger = logging.getLogger(__name__)

USER_AGENT = "onboard-exporter"


class HttpClient:
    """Sends the requests built by one source adapter and decodes JSON replies.

    One client exists per source: it owns that source's session, bearer
    token and throttle. Any 2xx status counts as success; everything else
    is turned into a FetchFailure subclass."""

    def __init__(
        self,
        source: str,
        token: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        stats: Optional[FetchStatsCollector] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._source = source
        self._token = token
        self._rate_limiter = rate_limiter
        self._stats = stats
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = USER_AGENT

    @property
    def source(self) -> str:
        return self._source

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def fetch(self, request: HttpRequest, page_index: int) -> Any:
        headers = dict(request.headers)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        if self._rate_limiter:
            self._rate_limiter.acquire()

        start_ms = self._now_ms()
        try:
            response = self._session.request(
                method=request.method,
                url=request.url,
                params=request.params or None,
                json=request.json,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._record(request, page_index, start_ms, None, type(exc).__name__)
            raise TransportFailure(self._source, page_index, f"{type(exc).__name__}: {exc}") from exc

        status_code = response.status_code
        warn_if_rate_limit_low(self._source, response.headers)

        if not 200 <= int(status_code) < 300:
            self._record(request, page_index, start_ms, status_code, f"HTTP_{status_code}")
            raise TransportFailure(
                self._source,
                page_index,
                f"HTTP {status_code} from {request.url}",
                status_code=status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            self._record(request, page_index, start_ms, status_code, "InvalidJSON")
            raise DecodeFailure(
                self._source,
                page_index,
                "response body is not valid JSON",
                payload=getattr(response, "text", ""),
            ) from exc

        self._record(request, page_index, start_ms, status_code, None)
        return payload

    def close(self) -> None:
        self._session.close()

    def _record(
        self,
        request: HttpRequest,
        page_index: int,
        start_ms: int,
        status_code: Optional[int],
        error_type: Optional[str],
    ) -> None:
        if not self._stats:
            return
        self._stats.record(
            FetchOutcome(
                source=self._source,
                page_index=page_index,
                url=request.url,
                success=error_type is None,
                status_code=status_code,
                latency_ms=self._now_ms() - start_ms,
                error_type=error_type,
            )
        )

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)
