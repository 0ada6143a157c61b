"""Tests for ipsbench.compare: ranking, verdicts and re-run suggestions."""

from __future__ import annotations

import unittest

from bench_test_helpers import make_report_entry

from ipsbench.compare import (
    MIN_TIME_TO_BATCH_RATIO,
    ComparisonOutcome,
    Suggestion,
    Verdict,
    VerdictKind,
    compare,
    suggest_stricter_config,
)


class TestCompare(unittest.TestCase):
    def test_fewer_than_two_results(self) -> None:
        self.assertEqual(len(compare([])), 0)
        outcome = compare([make_report_entry("only", [100.0])], time_s=5.0)
        self.assertEqual(outcome.ranked, [])
        self.assertIsNone(outcome.best)
        self.assertIsNone(outcome.suggestion)

    def test_ranks_fastest_first(self) -> None:
        a = make_report_entry("a", [50.0, 50.0])
        b = make_report_entry("b", [100.0, 100.0])
        c = make_report_entry("c", [90.0, 90.0])
        outcome = compare([a, b, c])
        self.assertEqual([r.label for r, _ in outcome.ranked], ["b", "c", "a"])
        self.assertIs(outcome.best, b)

    def test_verdicts(self) -> None:
        a = make_report_entry("a", [100.0, 100.0])
        b = make_report_entry("b", [90.0, 90.0])
        c = make_report_entry("c", [50.0, 50.0])
        outcome = compare([a, b, c])

        verdicts = [v for _, v in outcome.ranked]
        self.assertEqual(verdicts[0], Verdict.best())
        self.assertIs(verdicts[1].kind, VerdictKind.SLOWER)
        self.assertAlmostEqual(verdicts[1].factor, 100.0 / 90.0)
        self.assertIsNone(verdicts[1].error)
        self.assertIs(verdicts[2].kind, VerdictKind.SLOWER)
        self.assertAlmostEqual(verdicts[2].factor, 2.0)

    def test_indistinguishable(self) -> None:
        best = make_report_entry("best", [95.0, 105.0])  # 100 +/- 5
        close = make_report_entry("close", [90.0, 100.0])  # 95 +/- 5
        outcome = compare([best, close])
        self.assertEqual(outcome.ranked[1][1], Verdict.indistinguishable())
        self.assertTrue(outcome.has_indistinguishable)

    def test_touching_intervals_are_slower(self) -> None:
        best = make_report_entry("best", [100.0, 100.0])
        other = make_report_entry("other", [80.0, 100.0])  # high == best low
        outcome = compare([best, other])
        self.assertIs(outcome.ranked[1][1].kind, VerdictKind.SLOWER)

    def test_ties_keep_input_order(self) -> None:
        first = make_report_entry("first", [100.0])
        second = make_report_entry("second", [100.0])
        outcome = compare([first, second])
        self.assertEqual([r.label for r, _ in outcome.ranked], ["first", "second"])

    def test_every_result_appears_once(self) -> None:
        results = [make_report_entry(f"e{i}", [float(10 * i + 10)]) for i in range(6)]
        outcome = compare(results)
        self.assertEqual(len(outcome), 6)
        self.assertEqual(
            sorted(r.label for r, _ in outcome.ranked),
            sorted(r.label for r in results),
        )
        ips = [r.ips for r, _ in outcome.ranked]
        self.assertEqual(ips, sorted(ips, reverse=True))

    def test_suggestion_only_when_indistinguishable(self) -> None:
        best = make_report_entry("best", [95.0, 105.0])
        close = make_report_entry("close", [90.0, 100.0])
        far = make_report_entry("far", [10.0, 10.0])

        outcome = compare([best, close], time_s=5.0, batch_s=0.1)
        self.assertEqual(outcome.suggestion, Suggestion(time=10.0, batch_time=0.4))

        outcome = compare([best, far], time_s=5.0, batch_s=0.1)
        self.assertIsNone(outcome.suggestion)

    def test_no_suggestion_without_time(self) -> None:
        best = make_report_entry("best", [95.0, 105.0])
        close = make_report_entry("close", [90.0, 100.0])
        self.assertIsNone(compare([best, close]).suggestion)


class TestSuggestStricterConfig(unittest.TestCase):
    def test_doubles_time_quadruples_batch(self) -> None:
        s = suggest_stricter_config(5.0, 0.1)
        self.assertAlmostEqual(s.time, 10.0)
        self.assertAlmostEqual(s.batch_time, 0.4)

    def test_caps_batch_to_keep_ratio(self) -> None:
        # 4s / 0.2s is exactly the minimum ratio, so the batch is capped.
        s = suggest_stricter_config(2.0, 0.05)
        self.assertAlmostEqual(s.time, 4.0)
        self.assertAlmostEqual(s.batch_time, 4.0 / (MIN_TIME_TO_BATCH_RATIO + 1))

    def test_never_shrinks_batch(self) -> None:
        # Doubling 1s gives only 20 batches of 0.1s, so the time grows.
        s = suggest_stricter_config(1.0, 0.1)
        self.assertAlmostEqual(s.batch_time, 0.1)
        self.assertAlmostEqual(s.time, 0.1 * (MIN_TIME_TO_BATCH_RATIO + 1))
        self.assertGreater(s.time / s.batch_time, MIN_TIME_TO_BATCH_RATIO)

    def test_ratio_always_above_minimum(self) -> None:
        for time_s, batch_s in [(5.0, 0.1), (2.0, 0.05), (1.0, 0.1), (0.5, 0.2), (0.01, 1.0)]:
            s = suggest_stricter_config(time_s, batch_s)
            self.assertGreater(s.time / s.batch_time, MIN_TIME_TO_BATCH_RATIO, (time_s, batch_s))
            self.assertGreaterEqual(s.batch_time, batch_s)


class TestComparisonOutcome(unittest.TestCase):
    def test_empty(self) -> None:
        outcome = ComparisonOutcome()
        self.assertFalse(outcome.has_indistinguishable)
        self.assertIsNone(outcome.best)


if __name__ == "__main__":
    unittest.main()
