import unittest
from datetime import date, datetime, timedelta

import pandas as pd

from week_utils import (
    add_week_key_column,
    parse_long_date,
    short_week_label,
    sort_week_keys,
    week_date_range,
    week_end_of,
    week_key_of,
    week_number_labels,
    week_start_of,
    week_start_of_date,
)


class WeekKeyTests(unittest.TestCase):
    def test_week_key_is_sunday_to_saturday(self):
        self.assertEqual(week_key_of(date(2025, 1, 8)), "January 5, 2025 - January 11, 2025")

    def test_sunday_starts_its_own_week(self):
        self.assertEqual(week_start_of_date(date(2025, 1, 5)), date(2025, 1, 5))

    def test_saturday_belongs_to_previous_sunday(self):
        self.assertEqual(week_start_of_date(date(2025, 1, 11)), date(2025, 1, 5))

    def test_same_week_dates_share_key(self):
        keys = {week_key_of(date(2025, 1, 5) + timedelta(days=offset)) for offset in range(7)}
        self.assertEqual(len(keys), 1)

    def test_time_of_day_is_ignored(self):
        self.assertEqual(
            week_key_of(datetime(2025, 1, 11, 23, 59)),
            week_key_of(pd.Timestamp("2025-01-06 00:01")),
        )

    def test_week_spanning_new_year(self):
        self.assertEqual(week_key_of(date(2024, 12, 31)), "December 29, 2024 - January 4, 2025")

    def test_round_trip_for_every_day(self):
        day = date(2023, 1, 1)
        for _ in range(900):
            key = week_key_of(day)
            self.assertEqual(week_start_of(key), week_start_of_date(day))
            self.assertEqual(week_start_of(key).weekday(), 6)
            day += timedelta(days=1)

    def test_week_end_and_range(self):
        key = week_key_of(date(2025, 3, 1))
        self.assertEqual(week_end_of(key), date(2025, 3, 1))
        self.assertEqual(week_date_range(key), (date(2025, 2, 23), date(2025, 3, 1)))

    def test_malformed_key_raises(self):
        with self.assertRaises(ValueError):
            week_start_of("not a week")
        with self.assertRaises(ValueError):
            parse_long_date("Smarch 3, 2025")


class WeekOrderingTests(unittest.TestCase):
    def test_sort_is_chronological_not_lexical(self):
        jan_5 = week_key_of(date(2025, 1, 5))
        jan_12 = week_key_of(date(2025, 1, 12))
        feb_2 = week_key_of(date(2025, 2, 2))
        # "January 12" sorts before "January 5" as a string
        self.assertLess(jan_12, jan_5)
        self.assertEqual(sort_week_keys([feb_2, jan_12, jan_5, jan_12]), [jan_5, jan_12, feb_2])

    def test_week_number_labels(self):
        jan_5 = week_key_of(date(2025, 1, 5))
        jan_12 = week_key_of(date(2025, 1, 12))
        self.assertEqual(week_number_labels([jan_12, jan_5]), {jan_5: "W1", jan_12: "W2"})

    def test_short_label(self):
        self.assertEqual(short_week_label(week_key_of(date(2025, 1, 8))), "January 5")

    def test_add_week_key_column(self):
        df = pd.DataFrame({"date": [date(2025, 1, 6), date(2025, 1, 13)]})
        keyed = add_week_key_column(df)
        self.assertEqual(
            keyed["week_key"].tolist(),
            ["January 5, 2025 - January 11, 2025", "January 12, 2025 - January 18, 2025"],
        )
        self.assertNotIn("week_key", df.columns)


if __name__ == "__main__":
    unittest.main()
