"""Tests for the SourceAdapter abstract class."""

import unittest

from onboard_exporter.base import SourceAdapter
from onboard_exporter.models import HttpRequest, Page, PagingStyle


class DummyAdapter(SourceAdapter):
    source = "dummy"
    style = PagingStyle.OFFSET_TOKEN
    page_size = 50

    def endpoint(self):
        return "https://example.com/items"

    def build_request(self, paged):
        return HttpRequest(method="GET", url=paged.endpoint)

    def decode_page(self, payload, paged):
        return Page(records=tuple(payload), next_cursor=None, is_terminal=True)


class TestSourceAdapter(unittest.TestCase):
    """Verify the base class positions new requests on the first page."""

    def test_new_request_uses_adapter_settings(self):
        paged = DummyAdapter().new_request()
        self.assertEqual(paged.endpoint, "https://example.com/items")
        self.assertEqual(paged.page_size, 50)
        self.assertEqual(paged.style, PagingStyle.OFFSET_TOKEN)
        self.assertIsNone(paged.cursor)
        self.assertEqual(paged.page_index, 1)

    def test_each_request_starts_fresh(self):
        adapter = DummyAdapter()
        first = adapter.new_request()
        first.advance("itr1")
        self.assertIsNone(adapter.new_request().cursor)

    def test_abstract_methods_are_required(self):
        class Incomplete(SourceAdapter):
            def endpoint(self):
                return "https://example.com"

        with self.assertRaises(TypeError):
            Incomplete()


if __name__ == "__main__":
    unittest.main()
