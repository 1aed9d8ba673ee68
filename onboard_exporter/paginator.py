from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List

from .base import SourceAdapter
from .errors import DecodeFailure, FetchFailure
from .models import HttpRequest, Page

logger = logging.getLogger(__name__)

# (request, page_index) -> decoded JSON payload
FetchPage = Callable[[HttpRequest, int], Any]


class Paginator:
    """Walks every page of one adapter's query, strictly in order.

    The terminal page is yielded with its records; the page after it is
    never requested. Any failure ends the walk with a FetchFailure."""

    def __init__(self, adapter: SourceAdapter, fetch: FetchPage) -> None:
        self._adapter = adapter
        self._fetch = fetch

    def pages(self) -> Iterator[Page]:
        paged = self._adapter.new_request()
        while True:
            request = self._adapter.build_request(paged)
            payload = self._fetch(request, paged.page_index)
            try:
                page = self._adapter.decode_page(payload, paged)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise DecodeFailure(
                    self._adapter.source,
                    paged.page_index,
                    f"unexpected response shape ({type(exc).__name__}: {exc})",
                    payload=payload,
                ) from exc

            logger.debug(
                "%s page %d: %d records, terminal=%s",
                self._adapter.source,
                paged.page_index,
                len(page.records),
                page.is_terminal,
            )
            yield page
            if page.is_terminal:
                return
            if page.next_cursor is None or page.next_cursor == paged.cursor:
                raise DecodeFailure(
                    self._adapter.source,
                    paged.page_index,
                    f"cursor did not advance past {paged.cursor!r}",
                    payload=payload,
                )
            paged.advance(page.next_cursor)

    def collect(self) -> List[Any]:
        """All records of all pages, in page order.

        On failure the records gathered so far ride along on the raised
        FetchFailure as partial_records."""
        records: List[Any] = []
        try:
            for page in self.pages():
                records.extend(page.records)
        except FetchFailure as exc:
            exc.partial_records = records
            raise
        return records
