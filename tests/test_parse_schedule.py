import unittest
from datetime import date

from thai_lotto.parse import normalize_digits, parse_iso_date, parse_results_csv
from thai_lotto.schedule import get_next_draw_info, next_draw_date, thai_date


class TestParse(unittest.TestCase):
    def test_parse_iso_date(self):
        self.assertEqual(parse_iso_date("2024-02-16"), date(2024, 2, 16))
        for bad in ["2024-02-30", "16/02/2024", "2024-2-16", "", None]:
            with self.assertRaises(ValueError):
                parse_iso_date(bad)

    def test_normalize_digits(self):
        self.assertEqual(normalize_digits("7", 2), "07")
        self.assertEqual(normalize_digits(" 045 ", 3), "045")
        self.assertIsNone(normalize_digits("  ", 3))
        with self.assertRaises(ValueError):
            normalize_digits("1234", 3)
        with self.assertRaises(ValueError):
            normalize_digits("12x", 3)

    def test_parse_results_csv(self):
        content = "\n".join([
            "draw_date,first_prize,last3f,last3b,last2,near1_1,near1_2",
            "2024-01-16,123456,123,456,78,123455,123457",
            "# comment",
            "2024-02-01,654321,1,2,3",
            "2024-02-16,bad,123,456,78",
            "2024-03-01,111111",
        ])
        records, skipped = parse_results_csv(content)
        self.assertEqual(skipped, 2)
        self.assertEqual([r.draw_date for r in records], [date(2024, 1, 16), date(2024, 2, 1)])
        self.assertEqual(records[0].near1_2, "123457")
        self.assertEqual((records[1].last3f, records[1].last3b, records[1].last2), ("001", "002", "03"))
        self.assertIsNone(records[1].near1_1)

    def test_empty_csv(self):
        self.assertEqual(parse_results_csv(""), ([], 0))


class TestSchedule(unittest.TestCase):
    def test_next_draw_date(self):
        self.assertEqual(next_draw_date(date(2024, 2, 1)), date(2024, 2, 16))
        self.assertEqual(next_draw_date(date(2024, 2, 15)), date(2024, 2, 16))
        self.assertEqual(next_draw_date(date(2024, 2, 16)), date(2024, 3, 1))
        self.assertEqual(next_draw_date(date(2024, 12, 20)), date(2025, 1, 1))

    def test_thai_date_uses_buddhist_year(self):
        self.assertEqual(thai_date(date(2024, 1, 16)), "16 มกราคม 2567")

    def test_next_draw_info(self):
        info = get_next_draw_info(date(2024, 2, 10))
        self.assertEqual(info["next_draw_date"], "2024-02-16")
        self.assertEqual(info["days_away"], 6)
        self.assertEqual(info["day_of_week"], "ศุกร์")


if __name__ == "__main__":
    unittest.main()
