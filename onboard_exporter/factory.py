from __future__ import annotations

from typing import List, Optional

import requests

from .client import HttpClient
from .config import ExporterConfig
from .metrics import FetchStatsCollector
from .pipeline import (
    ProjectsPipeline,
    PullRequestPipeline,
    SourcePipeline,
    SubmissionSearchPipeline,
    TransferPipeline,
    VerificationPipeline,
)
from .projects import ProjectDirectoryCounter
from .rate_limiter import RateLimiter
from .sources import PullRequestAdapter, PullRequestSearchAdapter, TransferAdapter, VerificationAdapter


class PipelineFactory:
    """Builds every source pipeline from one immutable configuration.

    Each pipeline gets its own HttpClient, so sessions, tokens and
    throttles are never shared between sources.
    """

    def __init__(self, config: ExporterConfig, stats: Optional[FetchStatsCollector] = None) -> None:
        self._config = config
        self._stats = stats

    def _client(self, source: str, token: Optional[str], requests_per_second: float) -> HttpClient:
        return HttpClient(
            source=source,
            token=token,
            rate_limiter=RateLimiter(requests_per_second),
            stats=self._stats,
            timeout=self._config.http_timeout,
            session=requests.Session(),
        )

    def create_pipelines(self) -> List[SourcePipeline]:
        hcb = self._config.hcb
        github = self._config.github
        airtable = self._config.airtable

        pipelines: List[SourcePipeline] = [
            TransferPipeline(
                self._client("hcb", None, hcb.requests_per_second),
                TransferAdapter(hcb, source="hcb"),
            ),
            PullRequestPipeline(
                self._client("github", github.token, github.requests_per_second),
                PullRequestAdapter(github, source="github"),
                label=github.submission_label,
            ),
            SubmissionSearchPipeline(
                self._client("github_graphql", github.token, github.requests_per_second),
                PullRequestSearchAdapter(github, source="github_graphql"),
                label=github.submission_label,
            ),
            VerificationPipeline(
                self._client("airtable", airtable.token, airtable.requests_per_second),
                approved=VerificationAdapter(airtable, airtable.approved_view, source="airtable"),
                pending=VerificationAdapter(airtable, airtable.pending_view, source="airtable"),
                configured=bool(airtable.app_id),
            ),
        ]
        if self._config.projects.enabled:
            pipelines.append(ProjectsPipeline(ProjectDirectoryCounter(self._config.projects)))
        return pipelines
