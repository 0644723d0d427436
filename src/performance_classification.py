"""
Performance Classification Module - Tiers for actual-vs-reference cells

Maps one actual value against one reference value to a tier key:
- "strict-20-100": critical (< 20% of target), below, excellent (>= 100%)
- "graded-85-97": critical (< 85%), warning (85-97%), excellent (>= 97%)
- cohort average: critical (< 90% of average), warning, excellent (>= average)

Views use different target policies for different metrics. A zero
reference always yields "none".
"""

from typing import Optional

import pandas as pd

from src.config import (
    AVERAGE_WARNING_FRACTION,
    DEFAULT_TARGET_POLICY,
    GRADED_EXCELLENT_PCT,
    GRADED_WARNING_PCT,
    STRICT_CRITICAL_PCT,
    STRICT_EXCELLENT_PCT,
)

NONE = "none"
CRITICAL = "critical"
BELOW = "below"
WARNING = "warning"
EXCELLENT = "excellent"

_TIER_RANK = {
    NONE: 0,
    CRITICAL: 1,
    BELOW: 2,
    WARNING: 2,
    EXCELLENT: 3,
}


def tier_rank(tier: str) -> int:
    """Ordering key: none < critical < below/warning < excellent."""
    return _TIER_RANK.get(tier, 0)


def _missing(value: Optional[float]) -> bool:
    return value is None or pd.isna(value)


def _percent_of(actual: Optional[float], reference: Optional[float]) -> Optional[float]:
    """actual as a percentage of reference, or None when reference is 0/missing."""
    if _missing(reference) or reference == 0:
        return None
    actual = 0.0 if _missing(actual) else float(actual)
    return actual / float(reference) * 100


def classify_strict_20_100(actual: Optional[float], target: Optional[float]) -> str:
    """
    Target-relative tier with the 20% / 100% boundaries.

    Examples:
        classify_strict_20_100(6000, 5000) -> "excellent"
        classify_strict_20_100(500, 5000)  -> "critical"
        classify_strict_20_100(3000, 5000) -> "below"
        classify_strict_20_100(3000, 0)    -> "none"
    """
    percentage = _percent_of(actual, target)
    if percentage is None:
        return NONE
    if percentage < STRICT_CRITICAL_PCT:
        return CRITICAL
    if percentage >= STRICT_EXCELLENT_PCT:
        return EXCELLENT
    return BELOW


def classify_graded_85_97(actual: Optional[float], target: Optional[float]) -> str:
    """Target-relative tier with the 85% / 97% boundaries."""
    percentage = _percent_of(actual, target)
    if percentage is None:
        return NONE
    if percentage >= GRADED_EXCELLENT_PCT:
        return EXCELLENT
    if percentage >= GRADED_WARNING_PCT:
        return WARNING
    return CRITICAL


TARGET_POLICIES = {
    "strict-20-100": classify_strict_20_100,
    "graded-85-97": classify_graded_85_97,
}


def classify_against_target(
    actual: Optional[float],
    target: Optional[float],
    policy: str = DEFAULT_TARGET_POLICY,
) -> str:
    """
    Classify with a named target policy.

    Raises:
        ValueError: If policy is not a known policy name
    """
    try:
        classify = TARGET_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown target policy {policy!r}; expected one of {sorted(TARGET_POLICIES)}") from None
    return classify(actual, target)


def classify_vs_average(value: Optional[float], average: Optional[float]) -> str:
    """
    Classify a value against the cohort average (computed over non-zero entities).
    """
    if _missing(average) or average == 0:
        return NONE
    value = 0.0 if _missing(value) else float(value)
    if value >= average:
        return EXCELLENT
    if value >= average * AVERAGE_WARNING_FRACTION:
        return WARNING
    return CRITICAL


def classify_week_cells(
    weekly: pd.DataFrame,
    cohort: Optional[pd.DataFrame] = None,
    policy: str = DEFAULT_TARGET_POLICY,
) -> pd.DataFrame:
    """
    Tier every (player, week) cell of the weekly grids.

    - distance_tier: total_distance vs target_km * 1000
    - intensity_tier: intensity_ratio * 100 vs target_intensity
    - intensity_vs_cohort_tier: intensity_ratio vs the week's cohort average

    Args:
        weekly: Weekly aggregates
        cohort: Output of cohort_week_averages (indexed by week_key); optional
        policy: Target policy name for the two target-relative tiers

    Returns:
        DataFrame with player_name, week_key and the three tier columns
    """
    columns = ["player_name", "week_key", "distance_tier", "intensity_tier", "intensity_vs_cohort_tier"]
    if weekly is None or weekly.empty:
        return pd.DataFrame(columns=columns)

    rows = []
    for row in weekly.itertuples(index=False):
        average = None
        if cohort is not None and row.week_key in cohort.index:
            average = cohort.at[row.week_key, "avg_intensity"]
        rows.append({
            "player_name": row.player_name,
            "week_key": row.week_key,
            "distance_tier": classify_against_target(row.total_distance, row.target_km * 1000, policy),
            "intensity_tier": classify_against_target(row.intensity_ratio * 100, row.target_intensity, policy),
            "intensity_vs_cohort_tier": classify_vs_average(row.intensity_ratio, average),
        })

    return pd.DataFrame(rows, columns=columns)
