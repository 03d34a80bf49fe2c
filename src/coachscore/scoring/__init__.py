"""Scoring engine for recovery and training scores.

Modules:
    stats       -- Clamping, half-up rounding, mean/stdev/CoV, unit conversion
    baseline    -- Trailing-window per-metric baselines
    trend       -- Recent-half vs older-half trend classification
    windows     -- Activity recency windows and type filters
    recovery    -- Baseline-relative daily recovery score
    dimensions  -- Power / endurance / consistency / speed / training load
    health      -- Load / consistency / endurance / intensity / efficiency axes
    composite   -- Weighted overall scores and data-quality grading
    profile     -- Rider profile: five 1-10 levels with next-level targets
"""

from coachscore.scoring.baseline import (
    compute_baseline,
    compute_baselines,
    trailing_window,
)
from coachscore.scoring.trend import classify_trend, percent_change
from coachscore.scoring.windows import (
    activities_since,
    exclude_virtual,
    filter_types,
    is_virtual_ride,
    recent_activities,
    select_window,
)
from coachscore.scoring.recovery import score_recovery, recovery_score, RecoveryResult
from coachscore.scoring.dimensions import (
    score_power,
    score_endurance,
    score_consistency,
    score_speed,
    score_training_load,
)
from coachscore.scoring.health import score_health_axes
from coachscore.scoring.profile import LevelDetail, RiderProfile, score_rider_profile
from coachscore.scoring.composite import (
    assess_data_quality,
    combine,
    score_health_balance,
    score_training,
    HEALTH_WEIGHTS,
    TRAINING_WEIGHTS,
)

__all__ = [
    # baseline
    "compute_baseline",
    "compute_baselines",
    "trailing_window",
    # trend
    "classify_trend",
    "percent_change",
    # windows
    "activities_since",
    "exclude_virtual",
    "filter_types",
    "is_virtual_ride",
    "recent_activities",
    "select_window",
    # recovery
    "score_recovery",
    "recovery_score",
    "RecoveryResult",
    # dimensions
    "score_power",
    "score_endurance",
    "score_consistency",
    "score_speed",
    "score_training_load",
    # health
    "score_health_axes",
    # composite
    "assess_data_quality",
    "combine",
    "score_health_balance",
    "score_training",
    "HEALTH_WEIGHTS",
    "TRAINING_WEIGHTS",
    # profile
    "LevelDetail",
    "RiderProfile",
    "score_rider_profile",
]
