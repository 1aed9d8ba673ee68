from __future__ import annotations

from typing import Any, List, Optional

PAYLOAD_EXCERPT_CHARS = 1000


def payload_excerpt(payload: Any) -> str:
    text = payload if isinstance(payload, str) else repr(payload)
    return text[:PAYLOAD_EXCERPT_CHARS]


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ExporterError):
    pass


class AuthAbsent(ExporterError):
    """A source that needs a credential was configured without one."""

    def __init__(self, source: str) -> None:
        super().__init__(f"{source}: no credential configured")
        self.source = source


class FetchFailure(ExporterError):
    """A page of a paginated query could not be fetched or understood.

    partial_records holds whatever the paginator had collected before the
    failing page; callers decide whether to keep it."""

    def __init__(self, source: str, page_index: int, message: str) -> None:
        super().__init__(f"{source} page {page_index}: {message}")
        self.source = source
        self.page_index = page_index
        self.partial_records: List[Any] = []


class TransportFailure(FetchFailure):
    def __init__(self, source: str, page_index: int, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(source, page_index, message)
        self.status_code = status_code


class DecodeFailure(FetchFailure):
    def __init__(self, source: str, page_index: int, message: str, payload: Any = None) -> None:
        super().__init__(source, page_index, message)
        self.payload = payload_excerpt(payload) if payload is not None else ""


class UpstreamError(FetchFailure):
    def __init__(self, source: str, page_index: int, message: str, payload: Any = None) -> None:
        super().__init__(source, page_index, message)
        self.payload = payload_excerpt(payload) if payload is not None else ""
