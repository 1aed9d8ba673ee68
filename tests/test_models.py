"""Tests for data model classes."""

import unittest

from onboard_exporter.models import (
    AggregateResult,
    PagedRequest,
    PagingStyle,
    PullRequest,
    SourceSnapshot,
    Transfer,
)


class TestPagedRequest(unittest.TestCase):
    """Verify initial cursors and wholesale cursor replacement."""

    def test_initial_cursor_per_style(self):
        self.assertEqual(PagedRequest("u", 100, PagingStyle.NUMBERED).cursor, 1)
        self.assertIsNone(PagedRequest("u", 5000, PagingStyle.OFFSET_TOKEN).cursor)
        self.assertIsNone(PagedRequest("u", 100, PagingStyle.CURSOR).cursor)

    def test_advance_replaces_cursor(self):
        paged = PagedRequest("u", 100, PagingStyle.CURSOR)
        paged.advance("abc")
        paged.advance("def")
        self.assertEqual(paged.cursor, "def")
        self.assertEqual(paged.page_index, 3)


class TestRecords(unittest.TestCase):
    def test_transfer_amount_in_dollars(self):
        self.assertAlmostEqual(Transfer(id="x", amount_cents=5000, pending=False).amount_dollars, 50.0)

    def test_pull_request_is_immutable(self):
        pr = PullRequest(number=1, state="open")
        with self.assertRaises(AttributeError):
            pr.state = "closed"

    def test_pull_request_label_lookup(self):
        pr = PullRequest(number=1, state="open", labels=("Submission",))
        self.assertTrue(pr.has_label("Submission"))
        self.assertFalse(pr.has_label("submission"))


class TestSnapshot(unittest.TestCase):
    def test_get_by_name(self):
        scalar = AggregateResult("onboard_grants_given", 4.0)
        labeled = AggregateResult("onboard_verifications", {"approved": 1.0}, label="status")
        snapshot = SourceSnapshot("hcb", (scalar, labeled), completed_at=0.0)
        self.assertIs(snapshot.get("onboard_grants_given"), scalar)
        self.assertTrue(snapshot.get("onboard_verifications").is_labeled)
        self.assertIsNone(snapshot.get("missing"))


if __name__ == "__main__":
    unittest.main()
