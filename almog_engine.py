"""
ALMOG Composite Score Engine

Ranks players and teams inside a comparison set:
- Min-max normalisation of each metric across the set (0-100)
- Fixed-weight combination into one ALMOG score
- Player, team and half-by-half comparison sets for match reports
- The absolute (capped) team running score used by the league comparison

Min and max always come from the set passed in. Nothing is cached: a
different opponent, week or season is a different set and every score
changes with it.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler

from intensity_utils import match_intensity_pct, meters_per_minute, safe_divide
from session_records import numeric_or_zero


# Score given to every entity when a metric does not vary across the set
TIE_SCORE = 50.0


@dataclass(frozen=True)
class PlayerAlmogWeights:
    """Weights for the player (and full-match team) ALMOG score."""
    w_mpm: float = 0.30
    w_speed: float = 0.30
    w_intensity: float = 0.40

    def metric_weights(self) -> Dict[str, float]:
        return {
            "meters_per_minute": self.w_mpm,
            "speed": self.w_speed,
            "intensity_pct": self.w_intensity,
        }


@dataclass(frozen=True)
class HalfAlmogWeights:
    """Weights for the per-half team breakdown."""
    w_distance: float = 0.5
    w_intensity: float = 0.5

    def metric_weights(self) -> Dict[str, float]:
        return {
            "distance": self.w_distance,
            "intensity_pct": self.w_intensity,
        }


PLAYER_ALMOG_WEIGHTS = PlayerAlmogWeights()
HALF_ALMOG_WEIGHTS = HalfAlmogWeights()


# ============================================================================
# NORMALISATION
# ============================================================================

def min_max_scores(values: pd.Series) -> pd.Series:
    """
    Scale values to 0-100 across the series.

    Missing and negative values count as 0 before scaling. When every value
    is the same (including a single-entity set) all scores are 50.

    Args:
        values: One metric for every entity in the comparison set

    Returns:
        Series of scores in [0, 100], same index as values
    """
    clean = numeric_or_zero(pd.Series(values)).clip(lower=0.0)
    if clean.empty:
        return clean

    if clean.max() == clean.min():
        return pd.Series(TIE_SCORE, index=clean.index, dtype=float)

    scaler = MinMaxScaler(feature_range=(0, 100))
    scaled = scaler.fit_transform(clean.to_numpy().reshape(-1, 1)).ravel()
    return pd.Series(np.clip(scaled, 0.0, 100.0), index=clean.index, dtype=float)


def compute_almog_scores(df: pd.DataFrame, weights=PLAYER_ALMOG_WEIGHTS) -> pd.DataFrame:
    """
    Add per-metric scores and the weighted almog_score.

    Args:
        df: One row per entity with a column for every metric in weights
        weights: PlayerAlmogWeights or HalfAlmogWeights

    Returns:
        Copy of df with <metric>_score columns and almog_score, sorted by
        almog_score descending
    """
    metric_weights = weights.metric_weights()
    missing = [col for col in metric_weights if col not in df.columns]
    if missing:
        raise ValueError(f"Cannot score: missing metric columns {missing}")

    scored = df.copy()
    if scored.empty:
        for col in metric_weights:
            scored[f"{col}_score"] = pd.Series(dtype=float)
        scored["almog_score"] = pd.Series(dtype=float)
        return scored

    almog = pd.Series(0.0, index=scored.index)
    for col, weight in metric_weights.items():
        scored[f"{col}_score"] = min_max_scores(scored[col])
        almog = almog + scored[f"{col}_score"] * weight

    scored["almog_score"] = almog.clip(0.0, 100.0)
    return scored.sort_values("almog_score", ascending=False, kind="mergesort").reset_index(drop=True)


# ============================================================================
# MATCH COMPARISON SETS
# ============================================================================

def _select_teams(rows: pd.DataFrame, teams: Optional[List[str]]) -> pd.DataFrame:
    if not teams:
        return rows
    return rows[rows["team_name"].isin(teams)]


def _numeric(rows: pd.DataFrame, col: str) -> pd.Series:
    if col not in rows.columns:
        return pd.Series(0.0, index=rows.index)
    return numeric_or_zero(rows[col])


def player_match_metrics(rows: pd.DataFrame) -> pd.DataFrame:
    """
    Derive ALMOG inputs for each player match row.

    Expects total_distance, high_speed_distance, sprint_distance,
    max_velocity and game_minutes (missing columns count as 0).
    """
    metrics = rows.copy()
    distance = _numeric(rows, "total_distance")
    metrics["meters_per_minute"] = meters_per_minute(distance, _numeric(rows, "game_minutes"))
    metrics["speed"] = _numeric(rows, "max_velocity")
    metrics["intensity_pct"] = match_intensity_pct(
        distance, _numeric(rows, "high_speed_distance"), _numeric(rows, "sprint_distance")
    )
    return metrics


def score_players(rows: pd.DataFrame, teams: Optional[List[str]] = None) -> pd.DataFrame:
    """
    ALMOG for every player in the selected teams (e.g. our side + one opponent).
    """
    selected = _select_teams(rows, teams)
    return compute_almog_scores(player_match_metrics(selected), PLAYER_ALMOG_WEIGHTS)


def team_match_summary(rows: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse player match rows into one row per team.

    - meters_per_minute: team distance / longest game time among its players
    - speed: mean of the positive top speeds
    - intensity_pct: (HSR + sprint) / distance * 100
    """
    columns = ["team_name", "total_distance", "high_speed_distance", "sprint_distance",
               "max_game_time", "player_count", "meters_per_minute", "speed", "intensity_pct"]
    if rows.empty:
        return pd.DataFrame(columns=columns)

    work = pd.DataFrame({
        "team_name": rows["team_name"],
        "total_distance": _numeric(rows, "total_distance"),
        "high_speed_distance": _numeric(rows, "high_speed_distance"),
        "sprint_distance": _numeric(rows, "sprint_distance"),
        "game_minutes": _numeric(rows, "game_minutes"),
        "max_velocity": _numeric(rows, "max_velocity"),
    })

    grouped = work.groupby("team_name", sort=False)
    summary = grouped.agg(
        total_distance=("total_distance", "sum"),
        high_speed_distance=("high_speed_distance", "sum"),
        sprint_distance=("sprint_distance", "sum"),
        max_game_time=("game_minutes", "max"),
        player_count=("total_distance", "size"),
    )
    summary["speed"] = grouped["max_velocity"].agg(lambda s: float(s[s > 0].mean()) if (s > 0).any() else 0.0)
    summary = summary.reset_index()

    summary["meters_per_minute"] = meters_per_minute(summary["total_distance"], summary["max_game_time"])
    summary["intensity_pct"] = match_intensity_pct(
        summary["total_distance"], summary["high_speed_distance"], summary["sprint_distance"]
    )
    return summary[columns]


def score_teams(rows: pd.DataFrame, teams: Optional[List[str]] = None) -> pd.DataFrame:
    """ALMOG for every team in the comparison set."""
    summary = team_match_summary(_select_teams(rows, teams))
    return compute_almog_scores(summary, PLAYER_ALMOG_WEIGHTS)


def score_half_breakdown(rows: pd.DataFrame, teams: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Per-half team ALMOG (50% distance per player, 50% intensity).

    Expects per-player half columns: first_half_distance, second_half_distance,
    first_half_hsr, first_half_sprint, second_half_hsr, second_half_sprint.

    Returns:
        One row per team with <half>_distance, <half>_intensity_pct and
        <half>_almog for half in (first_half, second_half)
    """
    selected = _select_teams(rows, teams)
    if selected.empty:
        return pd.DataFrame(columns=["team_name", "first_half_almog", "second_half_almog"])

    work = pd.DataFrame({"team_name": selected["team_name"]})
    for half in ("first_half", "second_half"):
        for part in ("distance", "hsr", "sprint"):
            work[f"{half}_{part}"] = _numeric(selected, f"{half}_{part}")

    grouped = work.groupby("team_name", sort=False)
    totals = grouped.sum()
    totals["player_count"] = grouped.size()

    result = pd.DataFrame({"team_name": totals.index})
    for half in ("first_half", "second_half"):
        half_inputs = pd.DataFrame({
            "team_name": totals.index,
            "distance": safe_divide(totals[f"{half}_distance"], totals["player_count"]).to_numpy(),
            "intensity_pct": match_intensity_pct(
                totals[f"{half}_distance"], totals[f"{half}_hsr"], totals[f"{half}_sprint"]
            ).to_numpy(),
        })
        scored = compute_almog_scores(half_inputs, HALF_ALMOG_WEIGHTS).set_index("team_name")
        result[f"{half}_distance"] = result["team_name"].map(scored["distance"])
        result[f"{half}_intensity_pct"] = result["team_name"].map(scored["intensity_pct"])
        result[f"{half}_almog"] = result["team_name"].map(scored["almog_score"])

    return result


# ============================================================================
# CAPPED TEAM RUNNING SCORE
# ============================================================================
# Absolute scale used by the league running comparison: each component is
# capped, so the total tops out at 100 without reference to other teams.

CAPPED_DISTANCE_REFERENCE = 12000.0
CAPPED_SPEED_REFERENCE = 35.0
CAPPED_SPRINT_REFERENCE = 500.0


def capped_team_score(avg_distance: float, avg_intensity: float, max_speed: float, sprint_per_player: float) -> float:
    """
    Absolute team running score out of 100.

    distance 30 + intensity 30 + top speed 20 + sprint distance 20, each capped.
    """
    distance_score = min(avg_distance / CAPPED_DISTANCE_REFERENCE * 30, 30.0)
    intensity_score = min(avg_intensity * 3, 30.0)
    speed_score = min(max_speed / CAPPED_SPEED_REFERENCE * 20, 20.0)
    sprint_score = min(sprint_per_player / CAPPED_SPRINT_REFERENCE * 20, 20.0)
    return float(max(distance_score, 0.0) + max(intensity_score, 0.0)
                 + max(speed_score, 0.0) + max(sprint_score, 0.0))


def team_running_comparison(rows: pd.DataFrame) -> pd.DataFrame:
    """
    League-wide team running table with the capped score, ordered by
    average distance per player.
    """
    columns = ["team_name", "avg_distance", "avg_intensity", "max_speed",
               "sprint_per_player", "player_count", "capped_score"]
    if rows.empty:
        return pd.DataFrame(columns=columns)

    work = pd.DataFrame({
        "team_name": rows["team_name"],
        "total_distance": _numeric(rows, "total_distance"),
        "high_speed_distance": _numeric(rows, "high_speed_distance"),
        "sprint_distance": _numeric(rows, "sprint_distance"),
        "max_velocity": _numeric(rows, "max_velocity"),
    })
    grouped = work.groupby("team_name", sort=False)
    table = grouped.agg(
        total_distance=("total_distance", "sum"),
        high_speed_distance=("high_speed_distance", "sum"),
        sprint_distance=("sprint_distance", "sum"),
        max_speed=("max_velocity", "max"),
        player_count=("total_distance", "size"),
    ).reset_index()

    table["avg_distance"] = safe_divide(table["total_distance"], table["player_count"])
    table["avg_intensity"] = safe_divide(table["high_speed_distance"], table["total_distance"]) * 100
    table["sprint_per_player"] = safe_divide(table["sprint_distance"], table["player_count"])
    table["capped_score"] = [
        capped_team_score(row.avg_distance, row.avg_intensity, row.max_speed, row.sprint_per_player)
        for row in table.itertuples(index=False)
    ]

    table = table.sort_values("avg_distance", ascending=False, kind="mergesort").reset_index(drop=True)
    return table[columns]
