from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Tuple

from .aggregators import (
    SUBMITTED_PROJECTS,
    aggregate_pull_requests,
    aggregate_submission_search,
    aggregate_transfers,
    aggregate_verifications,
)
from .client import HttpClient
from .errors import AuthAbsent
from .models import AggregateResult
from .paginator import Paginator
from .projects import ProjectDirectoryCounter
from .sources import PullRequestAdapter, PullRequestSearchAdapter, TransferAdapter, VerificationAdapter

logger = logging.getLogger(__name__)


class SourcePipeline(ABC):
    """Fetch, paginate and fold one source into its aggregate results.

    run() either returns the complete result set for this cycle or raises;
    it never returns a partial one."""

    name: str = ""

    @abstractmethod
    def run(self) -> Tuple[AggregateResult, ...]:
        ...

    def empty_result(self) -> Tuple[AggregateResult, ...]:
        """Published instead of run() output when the source has no credential."""
        return ()

    def close(self) -> None:
        pass


class TransferPipeline(SourcePipeline):
    def __init__(self, client: HttpClient, adapter: TransferAdapter) -> None:
        self.name = adapter.source
        self._client = client
        self._adapter = adapter

    def run(self) -> Tuple[AggregateResult, ...]:
        transfers = Paginator(self._adapter, self._client.fetch).collect()
        return aggregate_transfers(transfers)

    def close(self) -> None:
        self._client.close()


class PullRequestPipeline(SourcePipeline):
    """REST listing; works anonymously, the token only raises the rate limit."""

    def __init__(self, client: HttpClient, adapter: PullRequestAdapter, label: str) -> None:
        self.name = adapter.source
        self._client = client
        self._adapter = adapter
        self._label = label

    def run(self) -> Tuple[AggregateResult, ...]:
        if not self._client.has_token:
            logger.debug("%s: no token, using anonymous access", self.name)
        pulls = Paginator(self._adapter, self._client.fetch).collect()
        return aggregate_pull_requests(pulls, self._label)

    def close(self) -> None:
        self._client.close()


class SubmissionSearchPipeline(SourcePipeline):
    """GraphQL search; GitHub rejects anonymous GraphQL so no token means zeros."""

    def __init__(self, client: HttpClient, adapter: PullRequestSearchAdapter, label: str) -> None:
        self.name = adapter.source
        self._client = client
        self._adapter = adapter
        self._label = label

    def run(self) -> Tuple[AggregateResult, ...]:
        if not self._client.has_token:
            raise AuthAbsent(self.name)
        pulls = Paginator(self._adapter, self._client.fetch).collect()
        return aggregate_submission_search(pulls, self._label)

    def empty_result(self) -> Tuple[AggregateResult, ...]:
        return aggregate_submission_search([], self._label)

    def close(self) -> None:
        self._client.close()


class VerificationPipeline(SourcePipeline):
    """Approved and pending counts, each from its own Airtable view."""

    def __init__(
        self,
        client: HttpClient,
        approved: VerificationAdapter,
        pending: VerificationAdapter,
        configured: bool = True,
    ) -> None:
        self.name = approved.source
        self._client = client
        self._approved = approved
        self._pending = pending
        self._configured = configured

    def run(self) -> Tuple[AggregateResult, ...]:
        if not (self._client.has_token and self._configured):
            raise AuthAbsent(self.name)
        approved = Paginator(self._approved, self._client.fetch).collect()
        pending = Paginator(self._pending, self._client.fetch).collect()
        return aggregate_verifications(approved, pending)

    def empty_result(self) -> Tuple[AggregateResult, ...]:
        return aggregate_verifications([], [])

    def close(self) -> None:
        self._client.close()


class ProjectsPipeline(SourcePipeline):
    name = "projects"

    def __init__(self, counter: ProjectDirectoryCounter) -> None:
        self._counter = counter

    def run(self) -> Tuple[AggregateResult, ...]:
        return (AggregateResult(SUBMITTED_PROJECTS, float(self._counter.count())),)
