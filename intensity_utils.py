"""
Intensity Utilities - Canonical load intensity and rate computation

Shared utilities for the weekly, match and cohort views:
- Weighted intensity ratio (HSR, accelerations, decelerations, sprints)
- Meters per minute and per-90 distance
- Match intensity percentage ((HSR + sprint) / distance)
- Cohort averages that ignore "no data" entities

Every divisor is guarded: a zero denominator returns 0, never NaN/inf.
"""

from typing import Iterable, Union

import numpy as np
import pandas as pd

from src.config import INTENSITY_REFERENCE_SCALES, INTENSITY_WEIGHTS

Number = Union[float, int, pd.Series, np.ndarray]


# ============================================================================
# SAFE DIVISION
# ============================================================================

def safe_divide(numerator: Number, denominator: Number) -> Number:
    """
    Divide, returning 0 wherever the denominator is 0 or the result is not finite.

    Works element-wise on Series/arrays and on plain scalars.
    """
    if isinstance(numerator, pd.Series) or isinstance(denominator, pd.Series):
        index = numerator.index if isinstance(numerator, pd.Series) else denominator.index
        num = numerator if isinstance(numerator, pd.Series) else pd.Series(numerator, index=index)
        den = denominator if isinstance(denominator, pd.Series) else pd.Series(denominator, index=index)
        num = num.astype(float)
        den = den.astype(float)
        result = num.where(den != 0, 0.0) / den.where(den != 0, 1.0)
        return result.replace([np.inf, -np.inf], np.nan).fillna(0.0)

    num = np.asarray(numerator, dtype=float)
    den = np.asarray(denominator, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        result = np.where(den != 0, num / np.where(den != 0, den, 1.0), 0.0)
    result = np.where(np.isfinite(result), result, 0.0)
    if result.ndim == 0:
        return float(result)
    return result


# ============================================================================
# CANONICAL INTENSITY (SINGLE SOURCE OF TRUTH)
# ============================================================================

def compute_intensity_ratio(
    high_speed_distance: Number,
    acceleration_efforts: Number,
    deceleration_efforts: Number,
    sprint_distance: Number,
) -> Number:
    """
    Weighted intensity ratio of a group's summed load.

    intensity = HSR * 0.35/600 + acc * 0.25/35 + dec * 0.20/30 + sprint * 0.20/100

    A week that hits every reference scale exactly scores 1.0 (shown as 100%).

    Args:
        high_speed_distance: Summed high speed running distance (m)
        acceleration_efforts: Summed acceleration efforts (count)
        deceleration_efforts: Summed deceleration efforts (count)
        sprint_distance: Summed sprint distance (m)

    Returns:
        Unitless ratio, same shape as the inputs
    """
    components = {
        "high_speed_distance": high_speed_distance,
        "acceleration_efforts": acceleration_efforts,
        "deceleration_efforts": deceleration_efforts,
        "sprint_distance": sprint_distance,
    }
    total = 0.0
    for name, value in components.items():
        total = total + value * INTENSITY_WEIGHTS[name] / INTENSITY_REFERENCE_SCALES[name]
    return total


def add_intensity_ratio(df: pd.DataFrame) -> pd.DataFrame:
    """Add intensity_ratio from the summed load columns."""
    df = df.copy()
    df["intensity_ratio"] = compute_intensity_ratio(
        df["high_speed_distance"],
        df["acceleration_efforts"],
        df["deceleration_efforts"],
        df["sprint_distance"],
    ).astype(float)
    return df


# ============================================================================
# RATES
# ============================================================================

def meters_per_minute(total_distance: Number, minutes: Number) -> Number:
    """Distance per minute; 0 when minutes is 0."""
    return safe_divide(total_distance, minutes)


def per_90_distance(total_distance: Number, minutes: Number) -> Number:
    """Distance normalised to a 90 minute game; 0 when minutes is 0."""
    return safe_divide(total_distance, minutes) * 90


def match_intensity_pct(total_distance: Number, high_speed_distance: Number, sprint_distance: Number) -> Number:
    """Share of distance covered at high speed or sprinting, in percent."""
    return safe_divide(high_speed_distance + sprint_distance, total_distance) * 100


# ============================================================================
# COHORT AVERAGES
# ============================================================================

def average_excluding_zero(values: Iterable[float]) -> float:
    """
    Mean over non-zero values only.

    Zero means "no data", not "no workload", so zero entities are left out of
    both numerator and denominator. Returns 0 when nothing remains.
    """
    series = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").dropna()
    series = series[series != 0]
    if series.empty:
        return 0.0
    return float(series.mean())


def cohort_week_averages(weekly: pd.DataFrame) -> pd.DataFrame:
    """
    Per-week cohort baselines for the AVERAGE row of the weekly grids.

    Args:
        weekly: Weekly aggregates with week_key, total_distance, intensity_ratio

    Returns:
        DataFrame indexed by week_key with avg_distance, avg_intensity,
        distance_players and intensity_players
    """
    columns = ["avg_distance", "avg_intensity", "distance_players", "intensity_players"]
    if weekly is None or weekly.empty:
        return pd.DataFrame(columns=columns).rename_axis("week_key")

    rows = {}
    for week_key, group in weekly.groupby("week_key", sort=False):
        rows[week_key] = {
            "avg_distance": average_excluding_zero(group["total_distance"]),
            "avg_intensity": average_excluding_zero(group["intensity_ratio"]),
            "distance_players": int((group["total_distance"] > 0).sum()),
            "intensity_players": int((group["intensity_ratio"] > 0).sum()),
        }

    return pd.DataFrame.from_dict(rows, orient="index", columns=columns).rename_axis("week_key")


# ============================================================================
# FORMATTING & DISPLAY HELPERS
# ============================================================================

def format_intensity(ratio: float) -> str:
    """Format an intensity ratio as a whole percentage."""
    if ratio is None or pd.isna(ratio):
        return "N/A"
    return f"{ratio * 100:.0f}%"


def format_distance(meters: float) -> str:
    """Format a distance in whole meters."""
    if meters is None or pd.isna(meters):
        return "N/A"
    return f"{meters:.0f}m"
