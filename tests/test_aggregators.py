"""Tests for counts, averages and label tallies."""

import unittest

from onboard_exporter import aggregators as agg
from onboard_exporter.config import HcbConfig
from onboard_exporter.models import PullRequest, VerificationRecord
from onboard_exporter.sources import TransferAdapter

from fakes import transfer


def _results(results):
    return {r.name: r.value for r in results}


class TestPrimitives(unittest.TestCase):
    """Verify the generic folds."""

    def test_average_of_empty_is_zero(self):
        self.assertEqual(agg.average([]), 0.0)

    def test_average(self):
        self.assertAlmostEqual(agg.average([10.0, 20.0, 60.0]), 30.0)

    def test_count_with_predicate(self):
        self.assertEqual(agg.count([1, 2, 3, 4], lambda n: n % 2 == 0), 2)

    def test_label_tally_counts_each_identifier(self):
        records = [PullRequest(1, "open", assignees=("x", "y")), PullRequest(2, "open", assignees=("x",))]
        self.assertEqual(agg.label_tally(records, lambda pr: pr.assignees), {"x": 2, "y": 1})

    def test_label_tally_skips_records_failing_filter(self):
        records = [
            PullRequest(1, "open", assignees=("x",), labels=("Submission",)),
            PullRequest(2, "open", assignees=("x",), labels=("docs",)),
        ]
        tally = agg.label_tally(records, lambda pr: pr.assignees, lambda pr: pr.has_label("Submission"))
        self.assertEqual(tally, {"x": 1})

    def test_record_without_identifiers_adds_nothing(self):
        self.assertEqual(agg.label_tally([PullRequest(1, "open")], lambda pr: pr.assignees), {})


class TestAggregateTransfers(unittest.TestCase):
    """Verify grant metrics."""

    def test_ceiling_excludes_from_count_and_average(self):
        adapter = TransferAdapter(HcbConfig(amount_ceiling_cents=10000))
        page = adapter.decode_page(
            [transfer(5000, pending=False, transfer_id="a"), transfer(15000, pending=False, transfer_id="b")],
            adapter.new_request(),
        )
        values = _results(agg.aggregate_transfers(list(page.records)))
        self.assertEqual(values[agg.GRANTS_GIVEN], 1.0)
        self.assertAlmostEqual(values[agg.AVERAGE_GRANT], 50.0)
        self.assertEqual(values[agg.GRANTS_PENDING], 0.0)

    def test_no_transfers(self):
        values = _results(agg.aggregate_transfers([]))
        self.assertEqual(values[agg.GRANTS_GIVEN], 0.0)
        self.assertEqual(values[agg.AVERAGE_GRANT], 0.0)


class TestAggregatePullRequests(unittest.TestCase):
    """Verify state counts, tallies and readiness."""

    def test_merged_submission_counts_only_in_merged_tally(self):
        pulls = [
            PullRequest(
                1,
                "merged",
                assignees=("alice",),
                labels=("Submission",),
                merged_at="2024-01-01",
            )
        ]
        values = _results(agg.aggregate_pull_requests(pulls, "Submission"))
        self.assertEqual(values[agg.MERGED_BY_ASSIGNEE], {"alice": 1})
        self.assertNotIn("alice", values[agg.OPEN_BY_ASSIGNEE])
        self.assertEqual(values[agg.PULL_REQUESTS], {"open": 0.0, "closed": 0.0, "merged": 1.0})

    def test_unlabeled_pull_is_excluded_from_tallies_and_readiness(self):
        pulls = [PullRequest(2, "open", labels=())]
        values = _results(agg.aggregate_pull_requests(pulls, "Submission"))
        self.assertEqual(values[agg.OPEN_BY_ASSIGNEE], {})
        self.assertEqual(values[agg.OPEN_BY_REVIEWER], {})
        self.assertEqual(values[agg.READY_FOR_REVIEW], 0.0)
        self.assertEqual(values[agg.PULL_REQUESTS]["open"], 1.0)

    def test_ready_for_review_needs_no_assignee_and_no_reviewer(self):
        pulls = [
            PullRequest(1, "open", labels=("Submission",)),
            PullRequest(2, "open", labels=("Submission",), assignees=("alice",)),
            PullRequest(3, "open", labels=("Submission",), reviewers=("bob",)),
            PullRequest(4, "closed", labels=("Submission",)),
        ]
        values = _results(agg.aggregate_pull_requests(pulls, "Submission"))
        self.assertEqual(values[agg.READY_FOR_REVIEW], 1.0)
        self.assertEqual(values[agg.OPEN_BY_REVIEWER], {"bob": 1})

    def test_search_tally_of_reviewers(self):
        pulls = [
            PullRequest(1, "open", labels=("Submission",), reviewed_by=("carol",)),
            PullRequest(2, "merged", labels=("Submission",), reviewed_by=("carol", "dan")),
        ]
        values = _results(agg.aggregate_submission_search(pulls, "Submission"))
        self.assertEqual(values[agg.REVIEWS_BY_REVIEWER], {"carol": 2, "dan": 1})
        self.assertEqual(values[agg.SUBMISSIONS_SEARCHED], 2.0)


class TestAggregateVerifications(unittest.TestCase):
    def test_counts_per_view(self):
        (result,) = agg.aggregate_verifications(
            [VerificationRecord("rec1"), VerificationRecord("rec2")], [VerificationRecord("rec3")]
        )
        self.assertEqual(result.label, "status")
        self.assertEqual(result.value, {"approved": 2.0, "pending": 1.0})


if __name__ == "__main__":
    unittest.main()
