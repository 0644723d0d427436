import unittest
from datetime import date

import pandas as pd

from notes_service import (
    InMemorySessionStore,
    NoteWriteError,
    attach_note,
    attach_note_to_missing_week,
    save_note,
    update_week_targets,
)
from weekly_load_pipeline import aggregate_weekly, run_weekly_pipeline
from week_utils import week_start_of

WEEK_1 = "January 5, 2025 - January 11, 2025"
WEEK_2 = "January 12, 2025 - January 18, 2025"


def _rows():
    return pd.DataFrame([
        {"player_name": "Dan Levy", "date": "2025-01-06", "total_distance": 4000, "target_km": 5,
         "target_intensity": 60, "notes": ""},
        {"player_name": "Dan Levy", "date": "2025-01-08", "total_distance": 3000, "target_km": 5,
         "target_intensity": 60, "notes": ""},
        {"player_name": "Omer Atzili", "date": "2025-01-06", "total_distance": 5000, "target_km": 5,
         "target_intensity": 60, "notes": ""},
        {"player_name": "Omer Atzili", "date": "2025-01-13", "total_distance": 5200, "target_km": 6,
         "target_intensity": 65, "notes": ""},
    ])


class FailingStore(InMemorySessionStore):
    def update_notes(self, player_name, start, end, notes):
        raise ConnectionError("backend unavailable")

    def insert_placeholder(self, record):
        raise ConnectionError("backend unavailable")


class StoreTests(unittest.TestCase):
    def test_fetch_all_reads_every_page(self):
        store = InMemorySessionStore(_rows(), page_size=1)
        fetched = store.fetch_all()
        self.assertEqual(len(fetched), 4)
        self.assertTrue(fetched["date"].is_monotonic_increasing)

    def test_fetch_all_empty(self):
        self.assertTrue(InMemorySessionStore().fetch_all().empty)

    def test_invalid_page_size(self):
        with self.assertRaises(ValueError):
            InMemorySessionStore(page_size=0)


class AttachNoteTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemorySessionStore(_rows())
        self.weekly = aggregate_weekly(self.store.fetch_all())

    def test_attach_note_updates_every_row_in_the_week(self):
        updated = attach_note(self.store, self.weekly, "Dan Levy", WEEK_1, "Sick on Thursday")

        cell = updated[(updated["player_name"] == "Dan Levy") & (updated["week_key"] == WEEK_1)]
        self.assertEqual(cell.iloc[0]["notes"], "Sick on Thursday")

        rows = self.store.fetch_all()
        dan = rows[rows["player_name"] == "Dan Levy"]
        self.assertEqual(dan["notes"].tolist(), ["Sick on Thursday", "Sick on Thursday"])
        omer = rows[rows["player_name"] == "Omer Atzili"]
        self.assertEqual(omer["notes"].tolist(), ["", ""])

    def test_attach_note_leaves_input_untouched(self):
        attach_note(self.store, self.weekly, "Dan Levy", WEEK_1, "x")
        self.assertEqual(self.weekly["notes"].tolist(), ["", "", ""])

    def test_attach_note_requires_existing_cell(self):
        with self.assertRaises(ValueError):
            attach_note(self.store, self.weekly, "Dan Levy", WEEK_2, "x")

    def test_write_failure_is_raised(self):
        store = FailingStore(_rows())
        with self.assertRaises(NoteWriteError) as ctx:
            attach_note(store, self.weekly, "Dan Levy", WEEK_1, "x")
        self.assertEqual(ctx.exception.player_name, "Dan Levy")
        self.assertEqual(ctx.exception.week_key, WEEK_1)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)


class MissingWeekNoteTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemorySessionStore(_rows())
        self.weekly = aggregate_weekly(self.store.fetch_all())

    def test_creates_one_zero_record_at_week_start(self):
        before = len(self.store.fetch_all())
        attach_note_to_missing_week(self.store, self.weekly, "Dan Levy", WEEK_2, "National team duty")

        rows = self.store.fetch_all()
        self.assertEqual(len(rows), before + 1)
        new = rows[(rows["player_name"] == "Dan Levy") & (rows["notes"] == "National team duty")]
        self.assertEqual(len(new), 1)
        self.assertEqual(new.iloc[0]["date"], week_start_of(WEEK_2))
        self.assertEqual(new.iloc[0]["date"], date(2025, 1, 12))
        self.assertEqual(new.iloc[0]["total_distance"], 0.0)
        # Week targets are carried over from the existing aggregates
        self.assertEqual(new.iloc[0]["target_km"], 6.0)

    def test_next_pipeline_run_surfaces_the_note(self):
        attach_note_to_missing_week(self.store, self.weekly, "Dan Levy", WEEK_2, "National team duty")
        report = run_weekly_pipeline(self.store.fetch_all())

        aggregates = report.aggregates.set_index(["player_name", "week_key"])
        self.assertEqual(aggregates.at[("Dan Levy", WEEK_2), "total_distance"], 0.0)
        self.assertEqual(aggregates.at[("Dan Levy", WEEK_2), "notes"], "National team duty")

    def test_returned_weekly_includes_new_cell(self):
        updated = attach_note_to_missing_week(self.store, self.weekly, "Dan Levy", WEEK_2, "Away")
        self.assertEqual(len(updated), len(self.weekly) + 1)
        self.assertEqual(updated.iloc[-1]["week_key"], WEEK_2)

    def test_rejects_cell_with_data(self):
        with self.assertRaises(ValueError):
            attach_note_to_missing_week(self.store, self.weekly, "Dan Levy", WEEK_1, "x")

    def test_works_on_empty_store(self):
        store = InMemorySessionStore()
        updated = attach_note_to_missing_week(store, pd.DataFrame(), "Dan Levy", WEEK_1, "Preseason")
        self.assertEqual(len(updated), 1)
        self.assertEqual(len(store.fetch_all()), 1)

    def test_insert_failure_is_raised(self):
        with self.assertRaises(NoteWriteError):
            attach_note_to_missing_week(FailingStore(_rows()), self.weekly, "Dan Levy", WEEK_2, "x")

    def test_save_note_dispatches(self):
        updated = save_note(self.store, self.weekly, "Dan Levy", WEEK_1, "existing")
        updated = save_note(self.store, updated, "Dan Levy", WEEK_2, "missing")
        notes = updated.set_index(["player_name", "week_key"])["notes"]
        self.assertEqual(notes[("Dan Levy", WEEK_1)], "existing")
        self.assertEqual(notes[("Dan Levy", WEEK_2)], "missing")


class WeekTargetTests(unittest.TestCase):
    def test_targets_written_in_km_for_the_whole_week(self):
        store = InMemorySessionStore(_rows())
        weekly = aggregate_weekly(store.fetch_all())
        updated = update_week_targets(store, weekly, WEEK_1, 27000, 75)

        rows = store.fetch_all()
        week_1 = rows[rows["date"] <= date(2025, 1, 11)]
        self.assertEqual(set(week_1["target_km"]), {27.0})
        self.assertEqual(set(week_1["target_intensity"]), {75.0})
        self.assertEqual(rows[rows["date"] == date(2025, 1, 13)].iloc[0]["target_km"], 6.0)

        in_week = updated[updated["week_key"] == WEEK_1]
        self.assertEqual(set(in_week["target_km"]), {27.0})


if __name__ == "__main__":
    unittest.main()
