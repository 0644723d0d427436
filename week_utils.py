"""
Week Utilities - Canonical Sunday-start week bucketing

Single source of truth for week keys used by every weekly view:
- Sunday-aligned week start for any calendar date
- Long-form week labels ("January 5, 2025 - January 11, 2025")
- Parsing a label back to its start date (used for note writes)
- Chronological ordering of week labels

Labels are rendered and parsed with the same month table, so a key always
round-trips to the exact calendar day it was built from.
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterable, List, Tuple

import pandas as pd

from src.config import MONTH_NAMES, WEEK_KEY_SEPARATOR


_LABEL_PATTERN = re.compile(r"^\s*([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{4})\s*$")


def to_calendar_date(value) -> date:
    """
    Strip any time-of-day from a date-like value.

    Accepts datetime.date, datetime.datetime, pandas.Timestamp, numpy
    datetime64 and ISO strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def week_start_of_date(value) -> date:
    """Sunday on or before the given date."""
    day = to_calendar_date(value)
    # Python weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def format_long_date(day: date) -> str:
    """Render a date as 'January 5, 2025'."""
    return f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def parse_long_date(label: str) -> date:
    """
    Parse a 'January 5, 2025' label back into a date.

    Raises:
        ValueError: If the label does not match the long-form layout
    """
    match = _LABEL_PATTERN.match(label)
    if not match:
        raise ValueError(f"Unrecognised date label: {label!r}")

    month_name, day, year = match.groups()
    try:
        month = MONTH_NAMES.index(month_name.capitalize()) + 1
    except ValueError:
        raise ValueError(f"Unknown month name in {label!r}") from None

    return date(int(year), month, int(day))


def week_key_of(value) -> str:
    """
    Build the week key for a date.

    Args:
        value: Any date-like value

    Returns:
        "<week start> - <week end>" with both ends in long form
    """
    start = week_start_of_date(value)
    end = start + timedelta(days=6)
    return f"{format_long_date(start)}{WEEK_KEY_SEPARATOR}{format_long_date(end)}"


def week_start_of(week_key: str) -> date:
    """Inverse of week_key_of: the Sunday a week key starts on."""
    if WEEK_KEY_SEPARATOR not in week_key:
        raise ValueError(f"Not a week key: {week_key!r}")
    return parse_long_date(week_key.split(WEEK_KEY_SEPARATOR, 1)[0])


def week_end_of(week_key: str) -> date:
    """Saturday that closes the week."""
    return week_start_of(week_key) + timedelta(days=6)


def week_date_range(week_key: str) -> Tuple[date, date]:
    """Inclusive (start, end) dates covered by a week key."""
    start = week_start_of(week_key)
    return start, start + timedelta(days=6)


def sort_week_keys(week_keys: Iterable[str]) -> List[str]:
    """
    Deduplicate and sort week keys chronologically.

    String order is wrong here (day-of-month is not zero padded), so keys
    are ordered by their parsed start date.
    """
    return sorted(set(week_keys), key=week_start_of)


def short_week_label(week_key: str) -> str:
    """'January 5' for column headers."""
    start = week_start_of(week_key)
    return f"{MONTH_NAMES[start.month - 1]} {start.day}"


def week_number_labels(week_keys: Iterable[str]) -> dict:
    """Map each week key to W1..Wn in chronological order."""
    return {key: f"W{idx}" for idx, key in enumerate(sort_week_keys(week_keys), start=1)}


def add_week_key_column(df: pd.DataFrame, date_col: str = "date") -> pd.DataFrame:
    """Add a week_key column derived from date_col."""
    df = df.copy()
    if df.empty:
        df["week_key"] = pd.Series(dtype=object)
        return df
    df["week_key"] = df[date_col].map(week_key_of)
    return df
