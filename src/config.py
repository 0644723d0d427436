"""
Configuration Module - Shared constants for the weekly load dashboard

Central configuration for:
- Roster exclusions (players no longer at the club)
- Backend column names → canonical session record columns
- Intensity reference scales and weights
- Week label formatting
- Performance tier thresholds and coach-facing labels

Used app-wide so every view computes the same numbers.
"""

# ============================================================================
# ROSTER
# ============================================================================
# Players who are no longer part of the club. Matched as case-insensitive
# substrings so name variants ("Nehorai Dabush Jr.") are caught too.

EXCLUDED_PLAYERS = [
    "Liel Deri",
    "Zohar Zesano",
    "Silva Kani",
    "Nehorai Dabush",
    "Nadav Markovich",
]

# ============================================================================
# SESSION RECORD COLUMNS
# ============================================================================
# Map from hosted backend column names to canonical snake_case names

BACKEND_COLUMN_ALIASES = {
    "maximum_velocity": "max_velocity",
    "high_speed_running_total_distance_b6": "high_speed_distance",
    "very_high_speed_running_total_distance_b7": "sprint_distance",
    "acceleration_b3_efforts_gen2": "acceleration_efforts",
    "deceleration_b3_efforts_gen2": "deceleration_efforts",
    "team": "team_name",
    "Min": "game_minutes",
}

# Summed across a group
ADDITIVE_COLUMNS = [
    "total_distance",
    "high_speed_distance",
    "sprint_distance",
    "acceleration_efforts",
    "deceleration_efforts",
]

# Max across a group
PEAK_COLUMNS = [
    "max_velocity",
]

# Taken from the first member of a group
TARGET_COLUMNS = [
    "target_km",
    "target_intensity",
]

NUMERIC_COLUMNS = ADDITIVE_COLUMNS + PEAK_COLUMNS + TARGET_COLUMNS

SESSION_COLUMNS = [
    "player_name",
    "date",
    *NUMERIC_COLUMNS,
    "total_duration",
    "notes",
]

# ============================================================================
# INTENSITY
# ============================================================================
# Fixed reference scales: a week with 600m HSR, 35 accelerations,
# 30 decelerations and 100m sprinting scores exactly 1.0 (100%).

INTENSITY_REFERENCE_SCALES = {
    "high_speed_distance": 600.0,
    "acceleration_efforts": 35.0,
    "deceleration_efforts": 30.0,
    "sprint_distance": 100.0,
}

INTENSITY_WEIGHTS = {
    "high_speed_distance": 0.35,
    "acceleration_efforts": 0.25,
    "deceleration_efforts": 0.20,
    "sprint_distance": 0.20,
}

# ============================================================================
# WEEK LABELS
# ============================================================================
# English month names, used for both rendering and parsing week keys so the
# label never depends on the process locale.

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

WEEK_KEY_SEPARATOR = " - "

# ============================================================================
# NOTES
# ============================================================================

NOTES_SEPARATOR = "; "

NOTES_POLICIES = ["first", "concatenate"]

DEFAULT_NOTES_POLICY = "first"

# Placeholder rows created when a coach annotates a week with no sessions
NOTE_ONLY_PERIOD = "NOTE_ONLY"
NOTE_ONLY_ACTIVITY = "Missing Week Note"
ZERO_DURATION = "00:00:00"

# ============================================================================
# PERFORMANCE TIERS
# ============================================================================

STRICT_CRITICAL_PCT = 20.0
STRICT_EXCELLENT_PCT = 100.0

GRADED_WARNING_PCT = 85.0
GRADED_EXCELLENT_PCT = 97.0

# Fraction of the cohort average still counted as "warning"
AVERAGE_WARNING_FRACTION = 0.9

DEFAULT_TARGET_POLICY = "strict-20-100"

TIER_LABELS = {
    "none": "No target",
    "critical": "Very low",
    "below": "Below target",
    "warning": "Close to target",
    "excellent": "On target",
}


def get_tier_label(tier: str) -> str:
    """
    Convert internal tier key to coach-friendly label.

    Args:
        tier: Tier key (e.g., "excellent")

    Returns:
        Coach-friendly label, or the key unchanged if not found
    """
    return TIER_LABELS.get(tier, tier)
