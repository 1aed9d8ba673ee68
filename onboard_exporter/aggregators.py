"""Folds over a source's complete record list.

Labeled results hold only identifiers seen in the records passed in; an
identifier missing from the map means zero for this cycle.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar

from .models import AggregateResult, PullRequest, Transfer, VerificationRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

GRANTS_GIVEN = "onboard_grants_given"
GRANTS_PENDING = "onboard_grants_pending"
AVERAGE_GRANT = "onboard_average_grant_value"
PULL_REQUESTS = "onboard_pull_requests"
OPEN_BY_ASSIGNEE = "onboard_open_submissions_by_assignee"
MERGED_BY_ASSIGNEE = "onboard_merged_submissions_by_assignee"
OPEN_BY_REVIEWER = "onboard_open_submissions_by_reviewer"
READY_FOR_REVIEW = "onboard_submissions_ready_for_review"
REVIEWS_BY_REVIEWER = "onboard_submission_reviews_by_reviewer"
SUBMISSIONS_SEARCHED = "onboard_submissions_searched"
VERIFICATIONS = "onboard_verifications"
SUBMITTED_PROJECTS = "onboard_submitted_projects"


def count(records: Iterable[T], predicate: Callable[[T], bool] = lambda _: True) -> int:
    return sum(1 for r in records if predicate(r))


def average(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def label_tally(
    records: Iterable[T],
    identifiers: Callable[[T], Iterable[str]],
    predicate: Callable[[T], bool] = lambda _: True,
) -> Dict[str, int]:
    """Count records per identifier among those passing predicate.

    A record with several identifiers bumps each of them once; a record
    with none adds nothing."""
    tally: Counter = Counter()
    for record in records:
        if not predicate(record):
            logger.debug("tally: skipping %r", record)
            continue
        for identifier in identifiers(record):
            tally[identifier] += 1
    return dict(tally)


def is_ready_for_review(pr: PullRequest, label: str) -> bool:
    return pr.is_open and pr.has_label(label) and not pr.assignees and not pr.reviewers


def aggregate_transfers(transfers: List[Transfer]) -> Tuple[AggregateResult, ...]:
    return (
        AggregateResult(GRANTS_GIVEN, float(count(transfers))),
        AggregateResult(GRANTS_PENDING, float(count(transfers, lambda t: t.pending))),
        AggregateResult(AVERAGE_GRANT, average([t.amount_dollars for t in transfers])),
    )


def aggregate_pull_requests(pulls: List[PullRequest], label: str) -> Tuple[AggregateResult, ...]:
    by_state = Counter(pr.state for pr in pulls)
    return (
        AggregateResult(
            PULL_REQUESTS,
            {state: float(by_state.get(state, 0)) for state in ("open", "closed", "merged")},
            label="state",
        ),
        AggregateResult(
            OPEN_BY_ASSIGNEE,
            label_tally(pulls, lambda pr: pr.assignees, lambda pr: pr.is_open and pr.has_label(label)),
            label="assignee",
        ),
        AggregateResult(
            MERGED_BY_ASSIGNEE,
            label_tally(pulls, lambda pr: pr.assignees, lambda pr: pr.is_merged and pr.has_label(label)),
            label="assignee",
        ),
        AggregateResult(
            OPEN_BY_REVIEWER,
            label_tally(pulls, lambda pr: pr.reviewers, lambda pr: pr.is_open and pr.has_label(label)),
            label="reviewer",
        ),
        AggregateResult(READY_FOR_REVIEW, float(count(pulls, lambda pr: is_ready_for_review(pr, label)))),
    )


def aggregate_submission_search(pulls: List[PullRequest], label: str) -> Tuple[AggregateResult, ...]:
    return (
        AggregateResult(SUBMISSIONS_SEARCHED, float(count(pulls, lambda pr: pr.has_label(label)))),
        AggregateResult(
            REVIEWS_BY_REVIEWER,
            label_tally(pulls, lambda pr: pr.reviewed_by, lambda pr: pr.has_label(label)),
            label="reviewer",
        ),
    )


def aggregate_verifications(
    approved: List[VerificationRecord], pending: List[VerificationRecord]
) -> Tuple[AggregateResult, ...]:
    return (
        AggregateResult(
            VERIFICATIONS,
            {"approved": float(count(approved)), "pending": float(count(pending))},
            label="status",
        ),
    )


DESCRIPTIONS = {
    GRANTS_GIVEN: "Number of grant transfers sent from the OnBoard HCB organization",
    GRANTS_PENDING: "Number of grant transfers still pending",
    AVERAGE_GRANT: "Average grant transfer value in dollars",
    PULL_REQUESTS: "Pull requests in the OnBoard repository by state",
    OPEN_BY_ASSIGNEE: "Open submission pull requests per assignee",
    MERGED_BY_ASSIGNEE: "Merged submission pull requests per assignee",
    OPEN_BY_REVIEWER: "Open submission pull requests per requested reviewer",
    READY_FOR_REVIEW: "Open submissions with neither an assignee nor a requested reviewer",
    REVIEWS_BY_REVIEWER: "Submission pull requests reviewed per reviewer",
    SUBMISSIONS_SEARCHED: "Submission pull requests returned by the GitHub search",
    VERIFICATIONS: "Verification form records by status",
    SUBMITTED_PROJECTS: "Number of folders in the projects directory of the OnBoard repository",
}
