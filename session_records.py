"""
Session Records - Ingestion boundary for GPS session rows

Every row fetched from the store passes through here exactly once:
- Backend column names are mapped to canonical names
- Numeric fields are coerced ("numeric or zero"), never NaN
- Dates become plain calendar dates
- Notes become stripped strings
- Rows are ordered by date ascending (aggregation relies on this order)

Also holds the roster exclusion filter and the placeholder record used
when a coach annotates a week that has no sessions.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from src.config import (
    BACKEND_COLUMN_ALIASES,
    EXCLUDED_PLAYERS,
    NOTE_ONLY_ACTIVITY,
    NOTE_ONLY_PERIOD,
    NUMERIC_COLUMNS,
    SESSION_COLUMNS,
    ZERO_DURATION,
)
from week_utils import to_calendar_date, week_start_of

logger = logging.getLogger(__name__)


# ============================================================================
# DURATION HELPERS
# ============================================================================

def parse_duration_minutes(duration) -> float:
    """
    Parse an HH:MM:SS duration string to total minutes.

    Empty, malformed or non three-part values count as 0 minutes.
    """
    if duration is None or (not isinstance(duration, str) and pd.isna(duration)):
        return 0.0

    parts = str(duration).strip().split(":")
    if len(parts) != 3:
        return 0.0

    values = []
    for part in parts:
        try:
            values.append(int(float(part)))
        except ValueError:
            values.append(0)

    hours, minutes, seconds = values
    return hours * 60 + minutes + seconds / 60


def format_duration(total_minutes: float) -> str:
    """Render minutes back as zero-padded HH:MM:SS."""
    if total_minutes is None or not np.isfinite(total_minutes) or total_minutes <= 0:
        return ZERO_DURATION

    total_seconds = int(round(total_minutes * 60, 6))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def numeric_or_zero(series: pd.Series) -> pd.Series:
    """Coerce a column to float, replacing missing/malformed/infinite values with 0."""
    values = pd.to_numeric(series, errors="coerce").astype(float)
    return values.replace([np.inf, -np.inf], np.nan).fillna(0.0)


# ============================================================================
# INGESTION
# ============================================================================

def _clean_notes(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def _parse_date(value) -> Optional[date]:
    """Calendar date of one raw value, or None if it cannot be read.

    Each value is parsed on its own so rows written in different formats
    (or with different UTC offsets) all survive. Offset timestamps keep the
    calendar date as written.
    """
    if value is None or (not isinstance(value, (str, date)) and pd.isna(value)):
        return None
    try:
        parsed = to_calendar_date(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(parsed):
        return None
    return parsed


def coerce_session_records(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Validate and coerce raw store rows into canonical session records.

    Performs:
    - Renames backend columns (e.g. maximum_velocity -> max_velocity)
    - Adds any missing canonical column with a zero/empty default
    - Numeric-or-zero coercion on every numeric field
    - Converts date to datetime.date, dropping rows whose date cannot be parsed
    - Normalises notes and player names to stripped strings
    - Stable sort by date ascending

    Args:
        raw: DataFrame (or anything pandas can build one from) of store rows

    Returns:
        DataFrame with at least SESSION_COLUMNS, one row per session
    """
    df = pd.DataFrame(raw).copy()
    df = df.rename(columns={k: v for k, v in BACKEND_COLUMN_ALIASES.items() if k in df.columns})

    if df.empty:
        return pd.DataFrame({col: pd.Series(dtype=object) for col in SESSION_COLUMNS})

    if "player_name" not in df.columns:
        raise ValueError("session records need a player_name column")
    if "date" not in df.columns:
        raise ValueError("session records need a date column")

    for col in NUMERIC_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0
        df[col] = numeric_or_zero(df[col])

    if "game_minutes" in df.columns:
        df["game_minutes"] = numeric_or_zero(df["game_minutes"])

    if "total_duration" not in df.columns:
        df["total_duration"] = ZERO_DURATION
    df["total_duration"] = df["total_duration"].fillna(ZERO_DURATION).astype(str)

    if "notes" not in df.columns:
        df["notes"] = ""
    df["notes"] = df["notes"].map(_clean_notes)

    df["player_name"] = df["player_name"].fillna("").astype(str).str.strip()

    parsed = df["date"].map(_parse_date)
    bad_dates = parsed.isna()
    if bad_dates.any():
        logger.warning("Dropping %d session rows with unparseable dates", int(bad_dates.sum()))
    df = df.loc[~bad_dates].copy()
    df["date"] = parsed.loc[~bad_dates]

    df = df.sort_values("date", kind="mergesort").reset_index(drop=True)
    logger.debug("Coerced %d session rows", len(df))
    return df


# ============================================================================
# EXCLUSION FILTER
# ============================================================================

def is_excluded_player(player_name: str, excluded_names: Optional[Iterable[str]] = None) -> bool:
    """True if player_name contains any excluded name (case-insensitive substring)."""
    if excluded_names is None:
        excluded_names = EXCLUDED_PLAYERS
    lowered = str(player_name).lower()
    return any(name.lower() in lowered for name in excluded_names if name)


def exclude_players(df: pd.DataFrame, excluded_names: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Drop records for players no longer on the roster.

    Args:
        df: Session records with a player_name column
        excluded_names: Names to drop; defaults to EXCLUDED_PLAYERS. An empty
            list keeps every row.

    Returns:
        Filtered copy of df
    """
    names: List[str] = list(EXCLUDED_PLAYERS if excluded_names is None else excluded_names)
    if not names or df.empty:
        return df.copy()

    mask = df["player_name"].map(lambda name: is_excluded_player(name, names))
    if mask.any():
        logger.debug("Excluded %d rows for departed players", int(mask.sum()))
    return df.loc[~mask].reset_index(drop=True)


# ============================================================================
# PLACEHOLDER RECORDS
# ============================================================================

def build_placeholder_record(
    player_name: str,
    week_key: str,
    notes: str,
    target_km: float = 0.0,
    target_intensity: float = 0.0,
) -> dict:
    """
    Build a zero-valued session record carrying only a note.

    The record is dated to the Sunday the week key starts on, so the next
    aggregation run puts it in exactly that (player, week) cell.
    """
    start = week_start_of(week_key)
    record = {col: 0.0 for col in NUMERIC_COLUMNS}
    record.update({
        "player_name": player_name,
        "date": start,
        "day_name": start.strftime("%A"),
        "period_name": NOTE_ONLY_PERIOD,
        "period_number": 0,
        "activity_name": NOTE_ONLY_ACTIVITY,
        "total_duration": ZERO_DURATION,
        "target_km": float(target_km or 0.0),
        "target_intensity": float(target_intensity or 0.0),
        "notes": notes,
    })
    return record
