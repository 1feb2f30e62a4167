import unittest

from helpers import TempDatabase, draw_dates, seed_last2

from thai_lotto.patterns import PatternAnalyzer, find_recurring_patterns
from thai_lotto.results import ErrorKind


def _dates(n):
    return ["d%d" % i for i in range(n)]


class TestFindRecurringPatterns(unittest.TestCase):
    def test_simple_repeat(self):
        patterns = find_recurring_patterns(["12", "34", "12", "34"], _dates(4))
        self.assertEqual(len(patterns), 1)
        p = patterns[0]
        self.assertEqual(p.pattern, ["12", "34"])
        self.assertEqual(p.key, "12-34")
        self.assertEqual(p.occurrences, 1)
        self.assertEqual(p.first_index, 0)
        self.assertEqual(p.positions, [2])
        self.assertEqual(p.dates, ["d2"])

    def test_windows_do_not_overlap_anchor(self):
        patterns = find_recurring_patterns(["55", "55", "55", "55"], _dates(4))
        self.assertEqual([(p.key, p.occurrences, p.positions) for p in patterns], [("55-55", 1, [2])])

    def test_too_short_sequence(self):
        self.assertEqual(find_recurring_patterns(["11", "11", "11"], _dates(3)), [])
        self.assertEqual(find_recurring_patterns([], []), [])

    def test_longer_patterns_and_ordering(self):
        values = ["1", "2", "3", "9", "1", "2", "3", "8", "1", "2"]
        patterns = find_recurring_patterns(values, _dates(len(values)))
        by_key = {p.key: p for p in patterns}
        # anchor at 0 matches at 4 and 8, anchor at 4 matches at 8
        self.assertEqual(by_key["1-2"].occurrences, 3)
        self.assertEqual(by_key["1-2"].positions, [4, 8, 8])
        self.assertEqual(by_key["1-2-3"].occurrences, 1)
        self.assertEqual(by_key["1-2-3"].positions, [4])
        self.assertEqual(patterns[0].key, "1-2")
        counts = [p.occurrences for p in patterns]
        self.assertEqual(counts, sorted(counts, reverse=True))

    def test_deterministic(self):
        values = ["10", "20", "10", "20", "30", "10", "20", "30"]
        a = find_recurring_patterns(values, _dates(len(values)))
        b = find_recurring_patterns(values, _dates(len(values)))
        self.assertEqual([p.to_dict() for p in a], [p.to_dict() for p in b])


class TestPatternAnalyzer(unittest.TestCase):
    def setUp(self):
        self.db = TempDatabase()
        self.analyzer = PatternAnalyzer(self.db.store, self.db.journal)

    def tearDown(self):
        self.db.cleanup()

    def test_uses_chronological_lookback(self):
        dates = draw_dates(6)
        seed_last2(self.db.store, ["99", "98", "12", "34", "12", "34"], dates)
        res = self.analyzer.find_recurring_patterns("last2", 4)
        self.assertTrue(res.ok)
        analysis = res.value
        self.assertEqual(analysis.total_draws, 4)
        self.assertEqual(analysis.patterns[0].key, "12-34")
        self.assertEqual(analysis.patterns[0].dates, [dates[4].isoformat()])

    def test_logged(self):
        seed_last2(self.db.store, ["11", "22"])
        self.analyzer.find_recurring_patterns("last2", 50)
        history = self.db.journal.analysis_history("recurring_patterns")
        self.assertEqual(history[0]["result_summary"], {"patterns_found": 0, "sequences_analyzed": 2})

    def test_validation(self):
        self.assertEqual(self.analyzer.find_recurring_patterns("bogus", 50).kind, ErrorKind.VALIDATION)
        self.assertEqual(self.analyzer.find_recurring_patterns("last2", 0).kind, ErrorKind.VALIDATION)

    def test_lookback_clamped(self):
        seed_last2(self.db.store, [str(i % 100).zfill(2) for i in range(210)])
        res = self.analyzer.find_recurring_patterns("last2", 1000)
        self.assertEqual((res.value.lookback, res.value.total_draws), (200, 200))


if __name__ == "__main__":
    unittest.main()
