"""
Notes Service - Coach annotations on (player, week) cells

The only write path of the dashboard core:
- attach_note: update the note on every session row in an existing cell
- attach_note_to_missing_week: insert a zero-valued NOTE_ONLY row so an
  empty cell shows up in the grid with its note
- update_week_targets: write a week's distance/intensity targets

Writes go through a SessionStore. Failures are raised as NoteWriteError;
nothing here retries. Last write wins.
"""

import logging
from typing import List, Optional, Protocol

import pandas as pd

from session_records import build_placeholder_record, coerce_session_records
from week_utils import week_date_range, week_start_of
from weekly_load_pipeline import aggregate_weekly, week_targets

logger = logging.getLogger(__name__)


class NoteWriteError(RuntimeError):
    """A note or target could not be persisted."""

    def __init__(self, message: str, player_name: Optional[str] = None, week_key: Optional[str] = None):
        super().__init__(message)
        self.player_name = player_name
        self.week_key = week_key


class SessionStore(Protocol):
    """What the core needs from the hosted session table."""

    def fetch_all(self) -> pd.DataFrame:
        """Every session row, all pages, sorted by date ascending."""

    def update_notes(self, player_name: str, start, end, notes: str) -> int:
        """Set notes on the player's rows dated start..end (inclusive)."""

    def insert_placeholder(self, record: dict) -> None:
        """Insert one new session row."""

    def update_targets(self, start, end, target_km: float, target_intensity: float) -> int:
        """Set targets on every row dated start..end (inclusive)."""


class InMemorySessionStore:
    """
    DataFrame-backed SessionStore for offline runs and tests.

    fetch_all reads page by page the way the hosted table has to be read
    (row limit per request), then returns the full set.
    """

    def __init__(self, rows: Optional[pd.DataFrame] = None, page_size: int = 1000):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._rows = coerce_session_records(rows if rows is not None else pd.DataFrame())

    def _fetch_page(self, offset: int) -> pd.DataFrame:
        return self._rows.iloc[offset:offset + self.page_size]

    def fetch_all(self) -> pd.DataFrame:
        pages: List[pd.DataFrame] = []
        offset = 0
        while True:
            page = self._fetch_page(offset)
            if page.empty:
                break
            pages.append(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size

        if not pages:
            return self._rows.iloc[0:0].copy()
        rows = pd.concat(pages)
        return rows.sort_values("date", kind="mergesort").reset_index(drop=True)

    def _date_mask(self, start, end) -> pd.Series:
        return (self._rows["date"] >= start) & (self._rows["date"] <= end)

    def update_notes(self, player_name: str, start, end, notes: str) -> int:
        if self._rows.empty:
            return 0
        mask = (self._rows["player_name"] == player_name) & self._date_mask(start, end)
        self._rows.loc[mask, "notes"] = notes
        return int(mask.sum())

    def insert_placeholder(self, record: dict) -> None:
        new_row = coerce_session_records(pd.DataFrame([record]))
        combined = new_row if self._rows.empty else pd.concat([self._rows, new_row], ignore_index=True)
        self._rows = combined.sort_values("date", kind="mergesort").reset_index(drop=True)

    def update_targets(self, start, end, target_km: float, target_intensity: float) -> int:
        if self._rows.empty:
            return 0
        mask = self._date_mask(start, end)
        self._rows.loc[mask, "target_km"] = float(target_km)
        self._rows.loc[mask, "target_intensity"] = float(target_intensity)
        return int(mask.sum())


# ============================================================================
# NOTE ATTACHMENT
# ============================================================================

def _has_cell(weekly: pd.DataFrame, player_name: str, week_key: str) -> bool:
    if weekly is None or weekly.empty:
        return False
    return bool(((weekly["player_name"] == player_name) & (weekly["week_key"] == week_key)).any())


def attach_note(store: SessionStore, weekly: pd.DataFrame, player_name: str, week_key: str, notes: str) -> pd.DataFrame:
    """
    Update the note of an existing (player, week) cell.

    Persists to every session row of that player inside the week window,
    then returns a copy of weekly with the cell's note replaced.

    Raises:
        ValueError: If the cell has no aggregate (use attach_note_to_missing_week)
        NoteWriteError: If the store rejects the update
    """
    if not _has_cell(weekly, player_name, week_key):
        raise ValueError(f"No weekly aggregate for {player_name!r} in {week_key!r}")

    start, end = week_date_range(week_key)
    try:
        updated_rows = store.update_notes(player_name, start, end, notes)
    except Exception as exc:
        raise NoteWriteError(f"Failed to update note: {exc}", player_name, week_key) from exc

    logger.info("Updated note on %s rows for %s, %s", updated_rows, player_name, week_key)

    weekly = weekly.copy()
    cell = (weekly["player_name"] == player_name) & (weekly["week_key"] == week_key)
    weekly.loc[cell, "notes"] = notes
    return weekly


def attach_note_to_missing_week(
    store: SessionStore,
    weekly: pd.DataFrame,
    player_name: str,
    week_key: str,
    notes: str,
    targets: Optional[dict] = None,
) -> pd.DataFrame:
    """
    Annotate a (player, week) cell that has no sessions.

    Inserts one zero-valued NOTE_ONLY record dated to the week's Sunday,
    carrying the week's targets when known, and returns weekly with the new
    zero aggregate added.

    Raises:
        ValueError: If the cell already has an aggregate
        NoteWriteError: If the store rejects the insert
    """
    if _has_cell(weekly, player_name, week_key):
        raise ValueError(f"{player_name!r} already has data in {week_key!r}; use attach_note")

    if targets is None:
        targets = week_targets(weekly) if weekly is not None and not weekly.empty else {}
    week_target = targets.get(week_key, {})

    record = build_placeholder_record(
        player_name,
        week_key,
        notes,
        target_km=week_target.get("target_km", 0.0),
        target_intensity=week_target.get("target_intensity", 0.0),
    )
    try:
        store.insert_placeholder(record)
    except Exception as exc:
        raise NoteWriteError(f"Failed to save note for missing week: {exc}", player_name, week_key) from exc

    logger.info("Inserted note-only record for %s on %s", player_name, record["date"])

    new_cell = aggregate_weekly(coerce_session_records(pd.DataFrame([record])))
    if weekly is None or weekly.empty:
        return new_cell

    combined = pd.concat([weekly, new_cell], ignore_index=True)
    combined["week_start"] = combined["week_key"].map(week_start_of)
    combined = combined.sort_values(["week_start", "player_name"], kind="mergesort")
    return combined.drop(columns="week_start").reset_index(drop=True)


def save_note(store: SessionStore, weekly: pd.DataFrame, player_name: str, week_key: str, notes: str) -> pd.DataFrame:
    """Attach a note to a cell whether or not it has sessions."""
    if _has_cell(weekly, player_name, week_key):
        return attach_note(store, weekly, player_name, week_key, notes)
    return attach_note_to_missing_week(store, weekly, player_name, week_key, notes)


# ============================================================================
# WEEK TARGETS
# ============================================================================

def update_week_targets(
    store: SessionStore,
    weekly: pd.DataFrame,
    week_key: str,
    target_meters: float,
    target_intensity: float,
) -> pd.DataFrame:
    """
    Set a week's targets for every player.

    Coaches edit the distance target in meters; it is stored in km.

    Raises:
        NoteWriteError: If the store rejects the update
    """
    target_km = float(target_meters) / 1000
    start, end = week_date_range(week_key)
    try:
        updated_rows = store.update_targets(start, end, target_km, float(target_intensity))
    except Exception as exc:
        raise NoteWriteError(f"Failed to update targets: {exc}", week_key=week_key) from exc

    logger.info("Updated targets on %s rows for %s", updated_rows, week_key)

    weekly = weekly.copy()
    if weekly.empty:
        return weekly
    in_week = weekly["week_key"] == week_key
    weekly.loc[in_week, "target_km"] = target_km
    weekly.loc[in_week, "target_intensity"] = float(target_intensity)
    return weekly
