"""
Weekly Load Pipeline - Session aggregation and the single dashboard entrypoint

Turns per-session GPS rows into per-player weekly summaries (or per-team
match summaries), derives intensity and rate metrics, scores the
comparison set and classifies every displayed cell.

Input: Session records as fetched from the store (date ascending)
Output: WeeklyLoadReport with aggregates, week order, cohort baselines,
        ALMOG scores and performance tiers
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pandas as pd

from almog_engine import PLAYER_ALMOG_WEIGHTS, compute_almog_scores
from intensity_utils import add_intensity_ratio, cohort_week_averages, meters_per_minute
from session_records import coerce_session_records, exclude_players, format_duration, parse_duration_minutes
from src.config import (
    ADDITIVE_COLUMNS,
    DEFAULT_NOTES_POLICY,
    DEFAULT_TARGET_POLICY,
    NOTES_POLICIES,
    NOTES_SEPARATOR,
    PEAK_COLUMNS,
    TARGET_COLUMNS,
)
from src.performance_classification import classify_week_cells
from week_utils import add_week_key_column, sort_week_keys, week_start_of

logger = logging.getLogger(__name__)


AGGREGATE_VALUE_COLUMNS = [
    *ADDITIVE_COLUMNS,
    *PEAK_COLUMNS,
    "total_duration_minutes",
    "total_duration",
    *TARGET_COLUMNS,
    "notes",
    "representative_date",
    "session_count",
    "intensity_ratio",
    "meters_per_minute",
]


# ============================================================================
# NOTES POLICIES
# ============================================================================

def first_note(notes: Sequence[str]) -> str:
    """First non-empty note in scan order."""
    for note in notes:
        if note and str(note).strip():
            return str(note).strip()
    return ""


def concatenate_notes(notes: Sequence[str]) -> str:
    """All non-empty notes joined with '; '."""
    return NOTES_SEPARATOR.join(str(n).strip() for n in notes if n and str(n).strip())


_NOTES_POLICY_FUNCS = {
    "first": first_note,
    "concatenate": concatenate_notes,
}


def _notes_func(notes_policy: str):
    if notes_policy not in _NOTES_POLICY_FUNCS:
        raise ValueError(f"Unknown notes policy {notes_policy!r}; expected one of {NOTES_POLICIES}")
    return _NOTES_POLICY_FUNCS[notes_policy]


# ============================================================================
# AGGREGATION
# ============================================================================

def _empty_aggregate(key_columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(columns=[*key_columns, *AGGREGATE_VALUE_COLUMNS])


def aggregate_sessions(
    df: pd.DataFrame,
    key_columns: List[str],
    notes_policy: str = DEFAULT_NOTES_POLICY,
) -> pd.DataFrame:
    """
    Group coerced session records by key_columns and summarise each group.

    For each group:
    - Sum distances and effort counts
    - MAX of velocity-type fields
    - Targets copied from the first member row
    - Notes picked by notes_policy, scanning in input (date ascending) order
    - Duration summed in minutes and re-rendered as HH:MM:SS
    - Intensity ratio and meters per minute derived from the sums

    Args:
        df: Output of coerce_session_records (already date ascending)
        key_columns: Columns identifying one group, e.g. ['player_name', 'week_key']
        notes_policy: 'first' or 'concatenate'

    Returns:
        One row per group, in order of first appearance
    """
    notes_func = _notes_func(notes_policy)

    missing = [col for col in key_columns if col not in df.columns]
    if missing:
        raise ValueError(f"Cannot aggregate: missing key columns {missing}")

    if df.empty:
        return _empty_aggregate(key_columns)

    work = df.copy()
    work["total_duration_minutes"] = work["total_duration"].map(parse_duration_minutes)

    grouped = work.groupby(key_columns, sort=False, dropna=False)
    agg_spec = {col: "sum" for col in ADDITIVE_COLUMNS}
    agg_spec.update({col: "max" for col in PEAK_COLUMNS})
    agg_spec.update({col: "first" for col in TARGET_COLUMNS})
    agg_spec["total_duration_minutes"] = "sum"
    agg_spec["date"] = "first"

    summary = grouped.agg(agg_spec)
    summary["notes"] = grouped["notes"].agg(lambda s: notes_func(list(s)))
    summary["session_count"] = grouped.size()
    summary = summary.reset_index().rename(columns={"date": "representative_date"})

    summary["total_duration"] = summary["total_duration_minutes"].map(format_duration)
    summary = add_intensity_ratio(summary)
    summary["meters_per_minute"] = meters_per_minute(
        summary["total_distance"], summary["total_duration_minutes"]
    )

    return summary[[*key_columns, *AGGREGATE_VALUE_COLUMNS]]


def aggregate_weekly(df: pd.DataFrame, notes_policy: str = DEFAULT_NOTES_POLICY) -> pd.DataFrame:
    """
    One aggregate per (player_name, week_key), weeks in chronological order.
    """
    if df.empty:
        return _empty_aggregate(["player_name", "week_key"])

    keyed = df if "week_key" in df.columns else add_week_key_column(df)
    weekly = aggregate_sessions(keyed, ["player_name", "week_key"], notes_policy=notes_policy)

    weekly["week_start"] = weekly["week_key"].map(week_start_of)
    weekly = weekly.sort_values(["week_start", "player_name"], kind="mergesort")
    return weekly.drop(columns="week_start").reset_index(drop=True)


def aggregate_by_match(df: pd.DataFrame, notes_policy: str = DEFAULT_NOTES_POLICY) -> pd.DataFrame:
    """One aggregate per (team_name, match_id)."""
    return aggregate_sessions(df, ["team_name", "match_id"], notes_policy=notes_policy)


# ============================================================================
# GRID SHAPES
# ============================================================================

def build_player_week_grid(weekly: pd.DataFrame, value_col: str = "total_distance") -> pd.DataFrame:
    """
    Pivot weekly aggregates into a player x week matrix.

    Rows are players sorted by name, columns are week keys in chronological
    order. Cells with no aggregate stay NaN (a "missing week" in the grid).
    """
    if weekly.empty:
        return pd.DataFrame()

    grid = weekly.pivot(index="player_name", columns="week_key", values=value_col)
    grid = grid.reindex(columns=sort_week_keys(weekly["week_key"]))
    return grid.sort_index()


def week_targets(weekly: pd.DataFrame) -> dict:
    """Week key -> {'target_km', 'target_intensity'} from the first aggregate of each week."""
    targets = {}
    for row in weekly.itertuples(index=False):
        if row.week_key not in targets:
            targets[row.week_key] = {
                "target_km": float(row.target_km),
                "target_intensity": float(row.target_intensity),
            }
    return targets


# ============================================================================
# MAIN ENTRYPOINT
# ============================================================================

@dataclass
class PipelineFilters:
    """Selections that used to live in view state; passed explicitly per run."""
    excluded_names: Optional[List[str]] = None
    selected_week: Optional[str] = None
    selected_players: Optional[List[str]] = None
    notes_policy: str = DEFAULT_NOTES_POLICY
    target_policy: str = DEFAULT_TARGET_POLICY


@dataclass
class WeeklyLoadReport:
    """Display-ready output of one pipeline run. Every field is a plain value."""
    aggregates: pd.DataFrame
    weeks: List[str] = field(default_factory=list)
    players: List[str] = field(default_factory=list)
    cohort: pd.DataFrame = field(default_factory=pd.DataFrame)
    scores: pd.DataFrame = field(default_factory=pd.DataFrame)
    tiers: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def has_data(self) -> bool:
        return not self.aggregates.empty


def _weekly_almog_inputs(weekly: pd.DataFrame) -> pd.DataFrame:
    """Weekly aggregates reshaped as ALMOG inputs (volume, speed, intensity)."""
    inputs = weekly[["player_name", "week_key"]].copy()
    inputs["meters_per_minute"] = weekly["meters_per_minute"].astype(float)
    inputs["speed"] = weekly["max_velocity"].astype(float)
    inputs["intensity_pct"] = weekly["intensity_ratio"].astype(float) * 100
    return inputs


def run_weekly_pipeline(records: pd.DataFrame, filters: Optional[PipelineFilters] = None) -> WeeklyLoadReport:
    """
    Complete pipeline: coerce, exclude, bucket, aggregate, derive, score, classify.

    Scores are computed per week over the players present in that week, so
    the comparison set always matches what the grid shows for that week.

    Args:
        records: Full, date-ascending record set from the store
        filters: Exclusions, week/player selection and policy choices

    Returns:
        WeeklyLoadReport; has_data is False when nothing survives filtering
    """
    if filters is None:
        filters = PipelineFilters()

    sessions = coerce_session_records(records)
    sessions = exclude_players(sessions, filters.excluded_names)
    if filters.selected_players:
        sessions = sessions[sessions["player_name"].isin(filters.selected_players)]

    weekly = aggregate_weekly(sessions, notes_policy=filters.notes_policy)
    if filters.selected_week is not None:
        weekly = weekly[weekly["week_key"] == filters.selected_week].reset_index(drop=True)

    if weekly.empty:
        logger.info("Weekly pipeline produced no aggregates")
        return WeeklyLoadReport(aggregates=weekly)

    cohort = cohort_week_averages(weekly)

    scored_weeks = []
    for _, week_rows in weekly.groupby("week_key", sort=False):
        scored_weeks.append(compute_almog_scores(_weekly_almog_inputs(week_rows), PLAYER_ALMOG_WEIGHTS))
    scores = pd.concat(scored_weeks, ignore_index=True)

    tiers = classify_week_cells(weekly, cohort, policy=filters.target_policy)

    logger.info(
        "Weekly pipeline: %d sessions -> %d aggregates over %d weeks",
        len(sessions), len(weekly), weekly["week_key"].nunique(),
    )

    return WeeklyLoadReport(
        aggregates=weekly,
        weeks=sort_week_keys(weekly["week_key"]),
        players=sorted(weekly["player_name"].unique()),
        cohort=cohort,
        scores=scores,
        tiers=tiers,
    )
