import unittest

from helpers import TempDatabase, draw_dates, seed_last2, seed_last3

from thai_lotto.models import DigitType
from thai_lotto.results import ErrorKind
from thai_lotto.trends import TrendAnalyzer, analyze_series, monotonic_runs, oscillating_runs, stable_runs


def _dates(n):
    return ["d%d" % i for i in range(n)]


class TestTrendFunctions(unittest.TestCase):
    def test_increasing_run(self):
        result = analyze_series(DigitType.FIRST_PRIZE_LAST3, [100, 105, 110, 115], _dates(4))
        self.assertEqual(len(result.monotonic), 1)
        run = result.monotonic[0]
        self.assertEqual((run.kind, run.start, run.end, run.length), ("increasing", 0, 3, 3))
        self.assertEqual(run.values, [100, 105, 110, 115])
        self.assertEqual((run.start_date, run.end_date), ("d0", "d3"))
        self.assertEqual([d.difference for d in result.differences], [5, 5, 5])
        self.assertEqual(result.trend_points[0], ("d0", 100))

    def test_long_strict_sequence_is_one_run(self):
        values = [900, 800, 700, 600, 500, 400, 300]
        runs = monotonic_runs(values, _dates(len(values)))
        self.assertEqual(len(runs), 1)
        self.assertEqual((runs[0].kind, runs[0].start, runs[0].end), ("decreasing", 0, 6))
        self.assertEqual(runs[0].values, values)

    def test_no_three_same_sign_steps(self):
        values = [10, 20, 30, 25, 35, 45, 40]
        self.assertEqual(monotonic_runs(values, _dates(len(values))), [])

    def test_zero_step_breaks_run(self):
        values = [1, 2, 3, 3, 4, 5, 6]
        runs = monotonic_runs(values, _dates(len(values)))
        self.assertEqual(len(runs), 1)
        self.assertEqual((runs[0].start, runs[0].values), (3, [3, 4, 5, 6]))

    def test_direction_change_starts_new_run(self):
        values = [1, 2, 3, 4, 3, 2, 1]
        runs = monotonic_runs(values, _dates(len(values)))
        self.assertEqual([(r.kind, r.start, r.end) for r in runs], [("increasing", 0, 3), ("decreasing", 3, 6)])

    def test_oscillating_windows(self):
        values = [10, 20, 10, 20, 10]
        runs = oscillating_runs(values, _dates(len(values)))
        self.assertEqual([(r.start, r.values) for r in runs], [(0, [10, 20, 10, 20]), (1, [20, 10, 20, 10])])

    def test_stable_windows(self):
        values = [100, 150, 199, 120, 500]
        runs = stable_runs(values, _dates(len(values)), 100)
        self.assertEqual([(r.start, r.values) for r in runs], [(0, [100, 150, 199, 120])])

    def test_short_series(self):
        result = analyze_series(DigitType.LAST2, [5, 6, 7], _dates(3))
        self.assertEqual((result.monotonic, result.oscillating, result.stable), ([], [], []))
        self.assertEqual(len(result.differences), 2)


class TestTrendAnalyzer(unittest.TestCase):
    def setUp(self):
        self.db = TempDatabase()
        self.analyzer = TrendAnalyzer(self.db.store, self.db.journal)

    def tearDown(self):
        self.db.cleanup()

    def test_reads_chronologically(self):
        dates = draw_dates(5)
        seed_last3(self.db.store, ["999", "100", "105", "110", "115"], dates)
        res = self.analyzer.analyze_trend("first_prize_last3", 4)
        self.assertTrue(res.ok)
        run = res.value.monotonic[0]
        self.assertEqual((run.kind, run.values), ("increasing", [100, 105, 110, 115]))
        self.assertEqual(run.start_date, dates[1].isoformat())
        self.assertEqual(len(res.value.stable), 1)

    def test_two_digit_threshold(self):
        seed_last2(self.db.store, ["10", "12", "15", "19", "50", "52", "55", "59"])
        res = self.analyzer.analyze_trend("last2", 20)
        self.assertEqual([r.values for r in res.value.stable], [[10, 12, 15, 19], [50, 52, 55, 59]])
        history = self.db.journal.analysis_history("trend_analysis")
        self.assertEqual(history[0]["result_summary"]["stable_trends"], 2)

    def test_validation(self):
        self.assertEqual(self.analyzer.analyze_trend("x", 20).kind, ErrorKind.VALIDATION)


if __name__ == "__main__":
    unittest.main()
