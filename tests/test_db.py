import unittest
from datetime import date

from helpers import TempDatabase, draw_dates, make_draw, seed_last3

from thai_lotto.models import DigitType, DrawRecord, FilterCriteria


class TestDrawRecord(unittest.TestCase):
    def test_first_prize_last3_is_derived(self):
        rec = DrawRecord(date(2024, 1, 16), "123456", "111", "222", "33")
        self.assertEqual(rec.first_prize_last3, "456")
        self.assertEqual(rec.value(DigitType.FIRST_PRIZE_LAST3), "456")

    def test_day_of_week_is_thai_name(self):
        # 2024-02-16 was a Friday
        rec = DrawRecord(date(2024, 2, 16), "123456", "111", "222", "33")
        self.assertEqual(rec.day_of_week, "ศุกร์")

    def test_rejects_wrong_width(self):
        with self.assertRaises(ValueError):
            DrawRecord(date(2024, 1, 16), "12345", "111", "222", "33")
        with self.assertRaises(ValueError):
            DrawRecord(date(2024, 1, 16), "123456", "111", "222", "3")

    def test_rejects_non_digits(self):
        with self.assertRaises(ValueError):
            DrawRecord(date(2024, 1, 16), "123456", "1a1", "222", "33")


class TestDrawStore(unittest.TestCase):
    def setUp(self):
        self.db = TempDatabase()
        self.store = self.db.store

    def tearDown(self):
        self.db.cleanup()

    def test_upsert_replaces_by_date(self):
        d = date(2024, 1, 16)
        self.store.upsert_draw(make_draw(d, last2="11"))
        self.store.upsert_draw(make_draw(d, last2="22"))
        self.assertEqual(self.store.count_draws(), 1)
        self.assertEqual(self.store.get_draw(d).last2, "22")

    def test_get_missing_draw(self):
        self.assertIsNone(self.store.get_draw(date(1999, 1, 1)))

    def test_query_values_most_recent_first(self):
        seed_last3(self.store, ["111", "222", "333"])
        values = [v for _, v in self.store.query_values(DigitType.FIRST_PRIZE_LAST3)]
        self.assertEqual(values, ["333", "222", "111"])

    def test_limit_takes_latest_rows(self):
        seed_last3(self.store, ["111", "222", "333"])
        rows = self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(limit=2))
        self.assertEqual([v for _, v in rows], ["333", "222"])

    def test_negative_limit_rejected(self):
        seed_last3(self.store, ["111", "222"])
        with self.assertRaises(ValueError):
            self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(limit=-1))
        with self.assertRaises(ValueError):
            self.store.recent_draws(-1)

    def test_day_and_month_filters(self):
        dates = draw_dates(8)  # 2020-01-01 .. 2020-04-16
        seed_last3(self.store, ["100", "116", "201", "216", "301", "316", "401", "416"], dates)

        sixteenth = self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(date_day=16))
        self.assertEqual(len(sixteenth), 4)

        march = self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(date_month=3))
        self.assertEqual(sorted(v for _, v in march), ["301", "316"])

        both = self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(date_day=1, date_month=2))
        self.assertEqual([v for _, v in both], ["201"])

    def test_date_range_and_weekday_filters(self):
        dates = draw_dates(4)
        seed_last3(self.store, ["001", "002", "003", "004"], dates)
        rows = self.store.query_values(
            DigitType.FIRST_PRIZE_LAST3,
            FilterCriteria(start_date=dates[1], end_date=dates[2]),
        )
        self.assertEqual([v for _, v in rows], ["003", "002"])

        weekday = self.store.get_draw(dates[0]).day_of_week
        rows = self.store.query_values(DigitType.FIRST_PRIZE_LAST3, FilterCriteria(day_of_week=weekday))
        self.assertIn((dates[0].isoformat(), "001"), rows)

    def test_latest_date_and_recent_draws(self):
        dates = seed_last3(self.store, ["001", "002", "003"])
        self.assertEqual(self.store.latest_draw_date(), dates[-1])
        recent = self.store.recent_draws(limit=2)
        self.assertEqual([r.draw_date for r in recent], [dates[2], dates[1]])


if __name__ == "__main__":
    unittest.main()
