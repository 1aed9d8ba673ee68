from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class PagingStyle(str, Enum):
    NUMBERED = "numbered"
    OFFSET_TOKEN = "offset_token"
    CURSOR = "cursor"

    @property
    def initial_cursor(self) -> Any:
        """Starting cursor: page 1, no offset, no GraphQL cursor."""
        if self is PagingStyle.NUMBERED:
            return 1
        return None


@dataclass
class PagedRequest:
    """Position of one paginated query inside a refresh cycle.

    The cursor is only ever replaced as a whole through advance()."""

    endpoint: str
    page_size: int
    style: PagingStyle
    cursor: Any = None
    page_index: int = 1

    def __post_init__(self) -> None:
        if self.cursor is None:
            self.cursor = self.style.initial_cursor

    def advance(self, next_cursor: Any) -> None:
        self.cursor = next_cursor
        self.page_index += 1


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    params: Dict[str, Any] = field(default_factory=dict)
    json: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Page:
    records: Tuple[Any, ...]
    next_cursor: Any
    is_terminal: bool


@dataclass(frozen=True)
class Transaction:
    id: str
    amount_cents: int
    pending: bool
    memo: str = ""
    date: str = ""
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Transfer:
    id: str
    amount_cents: int
    pending: bool
    status: str = ""
    date: str = ""
    transaction: Optional[Transaction] = None

    @property
    def amount_dollars(self) -> float:
        return self.amount_cents / 100


@dataclass(frozen=True)
class PullRequest:
    number: int
    state: str
    assignees: Tuple[str, ...] = ()
    reviewers: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    merged_at: Optional[str] = None
    reviewed_by: Tuple[str, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @property
    def is_merged(self) -> bool:
        return self.state == "merged"

    def has_label(self, name: str) -> bool:
        return name in self.labels


@dataclass(frozen=True)
class VerificationRecord:
    id: str


@dataclass(frozen=True)
class AggregateResult:
    """A named scalar, or a labeled counter map when label is set."""

    name: str
    value: Union[float, Mapping[str, float]]
    label: Optional[str] = None

    @property
    def is_labeled(self) -> bool:
        return self.label is not None


@dataclass(frozen=True)
class SourceSnapshot:
    source: str
    results: Tuple[AggregateResult, ...]
    completed_at: float

    def get(self, name: str) -> Optional[AggregateResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None


@dataclass(frozen=True)
class FetchOutcome:
    source: str
    page_index: int
    url: str
    success: bool
    status_code: Optional[int]
    latency_ms: int
    error_type: Optional[str]


@dataclass(frozen=True)
class SourceHealth:
    source: str
    total_requests: int
    failure_count: int
    avg_latency_ms: float


@dataclass(frozen=True)
class CycleReport:
    """Outcome of one refresh cycle, keyed by source name."""

    started_at: float
    duration_ms: int
    succeeded: List[str]
    failed: Dict[str, str]
