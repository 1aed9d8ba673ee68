"""Shared fakes for the test suite."""

from typing import Any, Iterable, List, Optional


class ScriptedFetch:
    """Fetch function that replays payloads in order and records every call.

    An Exception instance in the script is raised instead of returned.
    Running past the end of the script fails the test.
    """

    def __init__(self, payloads: Iterable[Any]) -> None:
        self._payloads: List[Any] = list(payloads)
        self.calls: List[tuple] = []

    def __call__(self, request, page_index: int) -> Any:
        self.calls.append((request, page_index))
        if not self._payloads:
            raise AssertionError(f"unexpected fetch of page {page_index}: {request}")
        item = self._payloads.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def remaining(self) -> int:
        return len(self._payloads)


class FakeClient:
    """Stands in for HttpClient inside pipelines."""

    def __init__(self, payloads: Iterable[Any] = (), token: Optional[str] = "token") -> None:
        self.fetch = ScriptedFetch(payloads)
        self.has_token = bool(token)
        self.closed = False

    def close(self) -> None:
        self.closed = True


def transfer(amount_cents: int, pending: bool = False, transfer_id: str = "xfr_1") -> dict:
    return {
        "id": transfer_id,
        "object": "transfer",
        "memo": "OnBoard grant",
        "amount_cents": amount_cents,
        "pending": pending,
        "status": "pending" if pending else "fulfilled",
        "date": "2024-01-01",
        "transaction": {
            "id": f"txn_{transfer_id}",
            "amount_cents": -amount_cents,
            "pending": pending,
            "memo": "OnBoard grant",
            "date": "2024-01-01",
            "tags": [],
        },
    }


def rest_pull(
    number: int,
    state: str = "open",
    merged_at: Optional[str] = None,
    labels: Iterable[str] = ("Submission",),
    assignees: Iterable[str] = (),
    reviewers: Iterable[str] = (),
) -> dict:
    return {
        "number": number,
        "state": state,
        "merged_at": merged_at,
        "labels": [{"name": name} for name in labels],
        "assignees": [{"login": login} for login in assignees],
        "requested_reviewers": [{"login": login} for login in reviewers],
    }


def graphql_page(nodes: List[dict], has_next: bool, end_cursor: Optional[str] = None) -> dict:
    return {
        "data": {
            "search": {
                "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
                "nodes": nodes,
            }
        }
    }


def graphql_pull(
    number: int,
    state: str = "OPEN",
    merged_at: Optional[str] = None,
    labels: Iterable[str] = ("Submission",),
    reviewed_by: Iterable[str] = (),
) -> dict:
    return {
        "number": number,
        "state": state,
        "mergedAt": merged_at,
        "labels": {"nodes": [{"name": name} for name in labels]},
        "assignees": {"nodes": []},
        "reviewRequests": {"nodes": []},
        "reviews": {"nodes": [{"author": {"login": login}} for login in reviewed_by]},
    }


def airtable_page(record_ids: Iterable[str], offset: Optional[str] = None) -> dict:
    payload = {"records": [{"id": rid, "fields": {}} for rid in record_ids]}
    if offset is not None:
        payload["offset"] = offset
    return payload
