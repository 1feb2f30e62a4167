import unittest

from helpers import TempDatabase, seed_last2, seed_last3

from thai_lotto.models import DigitType, FilterCriteria
from thai_lotto.pairs import PairAnalyzer, pair_frequency, pairs_of
from thai_lotto.results import ErrorKind


class TestPairFrequency(unittest.TestCase):
    def test_pairs_of(self):
        self.assertEqual(pairs_of("123"), ["12", "23"])
        self.assertEqual(pairs_of("45"), ["45"])

    def test_percentage_is_per_record(self):
        result = pair_frequency(DigitType.FIRST_PRIZE_LAST3, ["123", "123", "456"])
        self.assertEqual(result.total_records, 3)
        by_pair = {p.pair: (p.count, p.percentage) for p in result.pairs}
        self.assertEqual(by_pair["12"], (2, 66.67))
        self.assertEqual(by_pair["56"], (1, 33.33))
        # two pairs per draw, so percentages add up to 200
        self.assertAlmostEqual(sum(p.percentage for p in result.pairs), 200, delta=0.05)

    def test_sorted_by_count(self):
        result = pair_frequency(DigitType.FIRST_PRIZE_LAST3, ["111", "123"])
        self.assertEqual(result.pairs[0].pair, "11")
        self.assertEqual(result.pairs[0].count, 2)

    def test_empty(self):
        result = pair_frequency(DigitType.LAST2, [])
        self.assertEqual((result.total_records, result.pairs), (0, []))


class TestPairAnalyzer(unittest.TestCase):
    def setUp(self):
        self.db = TempDatabase()
        self.analyzer = PairAnalyzer(self.db.store, self.db.journal)

    def tearDown(self):
        self.db.cleanup()

    def test_two_digit_field_contributes_one_pair(self):
        seed_last2(self.db.store, ["12", "12", "34"])
        res = self.analyzer.compute_pair_frequency("last2")
        self.assertTrue(res.ok)
        self.assertEqual([(p.pair, p.count) for p in res.value.pairs], [("12", 2), ("34", 1)])

    def test_limit(self):
        seed_last3(self.db.store, ["999", "123", "456"])
        res = self.analyzer.compute_pair_frequency("first_prize_last3", FilterCriteria(limit=2))
        self.assertEqual(res.value.total_records, 2)
        self.assertNotIn("99", {p.pair for p in res.value.pairs})
        self.assertEqual(len(self.db.journal.analysis_history("pair_frequency")), 1)

    def test_invalid_field(self):
        res = self.analyzer.compute_pair_frequency("near1_1")
        self.assertEqual(res.kind, ErrorKind.VALIDATION)

    def test_negative_limit_rejected(self):
        seed_last3(self.db.store, ["123", "456"])
        res = self.analyzer.compute_pair_frequency("first_prize_last3", FilterCriteria(limit=-1))
        self.assertEqual(res.kind, ErrorKind.VALIDATION)


if __name__ == "__main__":
    unittest.main()
