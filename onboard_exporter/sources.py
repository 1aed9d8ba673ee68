from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .base import SourceAdapter
from .config import AirtableConfig, GitHubConfig, HcbConfig
from .errors import DecodeFailure, UpstreamError
from .models import (
    HttpRequest,
    Page,
    PagedRequest,
    PagingStyle,
    PullRequest,
    Transaction,
    Transfer,
    VerificationRecord,
)

logger = logging.getLogger(__name__)


def _expect_list(source: str, paged: PagedRequest, payload: Any) -> List[Any]:
    if not isinstance(payload, list):
        raise DecodeFailure(source, paged.page_index, "expected a JSON array", payload=payload)
    return payload


def _names(entries: Optional[Iterable[Any]], key: str) -> Tuple[str, ...]:
    """Pull one string field out of each dict entry, skipping blanks and nulls."""
    names = []
    for entry in entries or ():
        if isinstance(entry, dict) and entry.get(key):
            names.append(str(entry[key]))
    return tuple(names)


def pull_request_state(raw_state: Optional[str], merged_at: Optional[str]) -> str:
    """A merge timestamp wins over whatever state the API reports."""
    if merged_at:
        return "merged"
    state = (raw_state or "").lower()
    if state not in ("open", "closed", "merged"):
        raise ValueError(f"unknown pull request state: {raw_state!r}")
    return state


class TransferAdapter(SourceAdapter):
    """HCB organization transfers, numbered pages, ends on an empty array.

    Transfers above the configured ceiling are dropped while decoding so
    they reach neither the count nor the average."""

    style = PagingStyle.NUMBERED
    page_size = 100

    def __init__(self, config: HcbConfig, source: str = "hcb") -> None:
        self.source = source
        self._config = config

    def endpoint(self) -> str:
        return f"{self._config.base_url}/organizations/{self._config.organization}/transfers"

    def build_request(self, paged: PagedRequest) -> HttpRequest:
        return HttpRequest(
            method="GET",
            url=paged.endpoint,
            params={"per_page": paged.page_size, "expand": "transaction", "page": paged.cursor},
        )

    def decode_page(self, payload: Any, paged: PagedRequest) -> Page:
        items = _expect_list(self.source, paged, payload)
        transfers = []
        for item in items:
            transfer = self._decode_transfer(item)
            if transfer.amount_cents > self._config.amount_ceiling_cents:
                logger.debug(
                    "%s: skipping transfer %s of %d cents (ceiling %d)",
                    self.source,
                    transfer.id,
                    transfer.amount_cents,
                    self._config.amount_ceiling_cents,
                )
                continue
            transfers.append(transfer)
        return Page(records=tuple(transfers), next_cursor=paged.cursor + 1, is_terminal=not items)

    @staticmethod
    def _decode_transfer(item: Dict[str, Any]) -> Transfer:
        raw_txn = item.get("transaction")
        transaction = None
        if isinstance(raw_txn, dict):
            transaction = Transaction(
                id=str(raw_txn.get("id", "")),
                amount_cents=int(raw_txn.get("amount_cents", 0)),
                pending=bool(raw_txn.get("pending", False)),
                memo=raw_txn.get("memo") or "",
                date=raw_txn.get("date") or "",
                tags=tuple(str(t) for t in raw_txn.get("tags") or ()),
            )

        if "pending" in item:
            pending = bool(item["pending"])
        elif transaction is not None:
            pending = transaction.pending
        else:
            pending = item.get("status") == "pending"

        return Transfer(
            id=str(item.get("id", "")),
            amount_cents=int(item["amount_cents"]),
            pending=pending,
            status=item.get("status") or "",
            date=item.get("date") or "",
            transaction=transaction,
        )


class PullRequestAdapter(SourceAdapter):
    """GitHub REST pull request listing, numbered pages, ends on an empty array."""

    style = PagingStyle.NUMBERED
    page_size = 100

    def __init__(self, config: GitHubConfig, source: str = "github") -> None:
        self.source = source
        self._config = config

    def endpoint(self) -> str:
        return f"{self._config.base_url}/repos/{self._config.organization}/{self._config.repository}/pulls"

    def build_request(self, paged: PagedRequest) -> HttpRequest:
        return HttpRequest(
            method="GET",
            url=paged.endpoint,
            params={"state": "all", "per_page": paged.page_size, "page": paged.cursor},
            headers={"Accept": "application/vnd.github+json"},
        )

    def decode_page(self, payload: Any, paged: PagedRequest) -> Page:
        items = _expect_list(self.source, paged, payload)
        records = tuple(self._decode_pull(item) for item in items)
        return Page(records=records, next_cursor=paged.cursor + 1, is_terminal=not items)

    @staticmethod
    def _decode_pull(item: Dict[str, Any]) -> PullRequest:
        merged_at = item.get("merged_at")
        return PullRequest(
            number=int(item["number"]),
            state=pull_request_state(item["state"], merged_at),
            assignees=_names(item.get("assignees"), "login"),
            reviewers=_names(item.get("requested_reviewers"), "login"),
            labels=_names(item.get("labels"), "name"),
            merged_at=merged_at,
        )


SEARCH_QUERY = """
query($search: String!, $pageSize: Int!, $cursor: String) {
  search(query: $search, type: ISSUE, first: $pageSize, after: $cursor) {
    pageInfo {
      hasNextPage
      endCursor
    }
    nodes {
      ... on PullRequest {
        number
        state
        mergedAt
        labels(first: 20) { nodes { name } }
        assignees(first: 20) { nodes { login } }
        reviewRequests(first: 20) {
          nodes { requestedReviewer { ... on User { login } } }
        }
        reviews(first: 50) { nodes { author { login } } }
      }
    }
  }
}
"""


class PullRequestSearchAdapter(SourceAdapter):
    """GitHub GraphQL search over labeled submissions, cursor pages.

    Ends when pageInfo.hasNextPage is false. A payload with an "errors"
    array is an UpstreamError even when GitHub answers 200."""

    style = PagingStyle.CURSOR
    page_size = 100

    def __init__(self, config: GitHubConfig, source: str = "github_graphql") -> None:
        self.source = source
        self._config = config

    def endpoint(self) -> str:
        return self._config.graphql_url

    @property
    def search(self) -> str:
        return (
            f'repo:{self._config.organization}/{self._config.repository} '
            f'is:pr label:"{self._config.submission_label}"'
        )

    def build_request(self, paged: PagedRequest) -> HttpRequest:
        return HttpRequest(
            method="POST",
            url=paged.endpoint,
            json={
                "query": SEARCH_QUERY,
                "variables": {"search": self.search, "pageSize": paged.page_size, "cursor": paged.cursor},
            },
        )

    def decode_page(self, payload: Any, paged: PagedRequest) -> Page:
        if not isinstance(payload, dict):
            raise DecodeFailure(self.source, paged.page_index, "expected a JSON object", payload=payload)
        if payload.get("errors"):
            messages = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in payload["errors"])
            raise UpstreamError(self.source, paged.page_index, f"GraphQL errors: {messages}", payload=payload)

        search = payload["data"]["search"]
        page_info = search["pageInfo"]
        records = tuple(self._decode_node(node) for node in search["nodes"] if node)
        has_next = bool(page_info["hasNextPage"])
        return Page(
            records=records,
            next_cursor=page_info.get("endCursor") if has_next else None,
            is_terminal=not has_next,
        )

    @staticmethod
    def _decode_node(node: Dict[str, Any]) -> PullRequest:
        merged_at = node.get("mergedAt")
        reviewers = []
        for request in (node.get("reviewRequests") or {}).get("nodes") or ():
            login = ((request or {}).get("requestedReviewer") or {}).get("login")
            if login:
                reviewers.append(login)
        reviewed_by = []
        for review in (node.get("reviews") or {}).get("nodes") or ():
            login = ((review or {}).get("author") or {}).get("login")
            if login and login not in reviewed_by:
                reviewed_by.append(login)
        return PullRequest(
            number=int(node["number"]),
            state=pull_request_state(node["state"], merged_at),
            assignees=_names((node.get("assignees") or {}).get("nodes"), "login"),
            reviewers=tuple(reviewers),
            labels=_names((node.get("labels") or {}).get("nodes"), "name"),
            merged_at=merged_at,
            reviewed_by=tuple(reviewed_by),
        )


class VerificationAdapter(SourceAdapter):
    """Airtable records of one view, offset-token pages.

    Ends when the response carries no "offset" field. Records are only
    counted, so decoding keeps nothing but the record id."""

    style = PagingStyle.OFFSET_TOKEN
    page_size = 5000

    def __init__(self, config: AirtableConfig, view: str, source: str = "airtable") -> None:
        self.source = source
        self.view = view
        self._config = config

    def endpoint(self) -> str:
        return f"{self._config.base_url}/{self._config.app_id}/{self._config.table}"

    def build_request(self, paged: PagedRequest) -> HttpRequest:
        params: Dict[str, Any] = {"maxRecords": paged.page_size, "view": self.view}
        if paged.cursor:
            params["offset"] = paged.cursor
        return HttpRequest(method="GET", url=paged.endpoint, params=params)

    def decode_page(self, payload: Any, paged: PagedRequest) -> Page:
        if not isinstance(payload, dict):
            raise DecodeFailure(self.source, paged.page_index, "expected a JSON object", payload=payload)
        if payload.get("error"):
            raise UpstreamError(self.source, paged.page_index, f"Airtable error: {payload['error']}", payload=payload)

        records = tuple(VerificationRecord(id=str(r.get("id", ""))) for r in payload["records"])
        offset = payload.get("offset")
        return Page(records=records, next_cursor=offset, is_terminal=not offset)
