from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import HttpRequest, Page, PagedRequest, PagingStyle


class SourceAdapter(ABC):
    """Abstract base class for one paginated query against a remote API.

    An adapter knows how to turn the current PagedRequest position into an
    HTTP request, and how to turn one decoded JSON page back into typed
    records plus the next cursor and terminal flag. It never loops itself;
    the Paginator drives it one page at a time.
    """

    source: str = ""
    style: PagingStyle = PagingStyle.NUMBERED
    page_size: int = 100

    def new_request(self) -> PagedRequest:
        """Fresh PagedRequest positioned at this style's first page."""
        return PagedRequest(endpoint=self.endpoint(), page_size=self.page_size, style=self.style)

    @abstractmethod
    def endpoint(self) -> str:
        ...

    @abstractmethod
    def build_request(self, paged: PagedRequest) -> HttpRequest:
        ...

    @abstractmethod
    def decode_page(self, payload: Any, paged: PagedRequest) -> Page:
        """Decode one JSON page.

        May raise DecodeFailure or UpstreamError; KeyError, TypeError and
        ValueError from unexpected shapes are wrapped by the Paginator.
        """
