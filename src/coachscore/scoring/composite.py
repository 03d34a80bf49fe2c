"""Combine five dimension scores into one overall score.

Two fixed weighting schemes exist: the activity-only training profile and
the health balance profile.  ``generated_at`` is taken from the inputs
(``as_of`` or the newest activity) rather than the wall clock, so the same
inputs always produce the same :class:`CompositeScore`.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Mapping, Sequence

from coachscore.models import ActivityRecord, CompositeScore, DataQuality, DimensionScore
from coachscore.scoring.dimensions import (
    empty_dimension,
    score_consistency,
    score_endurance,
    score_power,
    score_speed,
    score_training_load,
)
from coachscore.scoring.health import HISTORY_WEEKS, score_health_axes
from coachscore.scoring.stats import SECONDS_PER_DAY, to_score
from coachscore.scoring.windows import (
    MIN_ACTIVITIES,
    VirtualClassifier,
    activities_since,
    day_start,
    exclude_virtual,
    is_virtual_ride,
    newest_first,
    select_window,
)


TRAINING_WEIGHTS = {
    "power": 0.20,
    "endurance": 0.25,
    "consistency": 0.20,
    "speed": 0.15,
    "training_load": 0.20,
}

HEALTH_WEIGHTS = {
    "load": 0.20,
    "consistency": 0.20,
    "endurance": 0.20,
    "intensity": 0.20,
    "efficiency": 0.20,
}

TRAINING_SCORERS = {
    "power": score_power,
    "endurance": score_endurance,
    "consistency": score_consistency,
    "speed": score_speed,
    "training_load": score_training_load,
}

EXCELLENT_HISTORY_DAYS = 42
GOOD_HISTORY_DAYS = 28
EXCELLENT_HR_COVERAGE = 0.8


def combine(
    scores: Mapping[str, DimensionScore],
    weights: Mapping[str, float],
) -> int:
    """Weighted sum of dimension scores, rounded to a 0-100 integer.

    Raises:
        ValueError: If the weights do not sum to 1.0 or do not cover exactly
            the given dimensions.
    """
    if set(scores) != set(weights):
        raise ValueError(
            f"weights {sorted(weights)} do not match dimensions {sorted(scores)}"
        )
    if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-9):
        raise ValueError(f"weights must sum to 1.0, got {sum(weights.values())}")
    return to_score(sum(scores[k].score * w for k, w in weights.items()))


def _reference_time(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime | None,
) -> datetime | None:
    if isinstance(as_of, datetime):
        return as_of
    if isinstance(as_of, date):
        return day_start(as_of)
    if activities:
        return max(a.start_date_local for a in activities)
    return None


def assess_data_quality(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime | None = None,
) -> DataQuality:
    """Grade how much history and heart-rate coverage backs a score."""
    if not activities:
        return DataQuality.LIMITED

    ref = _reference_time(activities, as_of)
    oldest = min(a.start_date_local for a in activities)
    history_days = int(
        (ref.replace(tzinfo=None) - oldest).total_seconds() // SECONDS_PER_DAY
    )
    hr_coverage = sum(1 for a in activities if a.average_heartrate) / len(activities)

    if history_days >= EXCELLENT_HISTORY_DAYS and hr_coverage > EXCELLENT_HR_COVERAGE:
        return DataQuality.EXCELLENT
    if history_days >= GOOD_HISTORY_DAYS:
        return DataQuality.GOOD
    return DataQuality.LIMITED


def score_training(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime | None = None,
    outdoor_only: bool = False,
    is_virtual: VirtualClassifier = is_virtual_ride,
    min_activities: int = MIN_ACTIVITIES,
) -> CompositeScore:
    """Activity-only training profile across five dimensions.

    Args:
        activities: Activity records, any order.
        as_of: Reference date for the trailing window; without it the most
            recent 28 activities are used.
        outdoor_only: Drop virtual/indoor sessions first.
        is_virtual: Classifier used when *outdoor_only* is set.
        min_activities: Fewer activities than this yields the zero profile
            with "need more data" suggestions.

    Returns:
        CompositeScore with mode ``"training"``.
    """
    pool = exclude_virtual(activities, is_virtual) if outdoor_only else newest_first(activities)
    window = select_window(pool, as_of=as_of)

    if len(window) < min_activities:
        dimensions = {name: empty_dimension() for name in TRAINING_SCORERS}
    else:
        dimensions = {name: scorer(window) for name, scorer in TRAINING_SCORERS.items()}

    return CompositeScore(
        overall=combine(dimensions, TRAINING_WEIGHTS),
        dimensions=dimensions,
        data_quality=assess_data_quality(pool, as_of),
        generated_at=_reference_time(window, as_of),
        mode="training",
    )


def score_health_balance(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime | None = None,
) -> CompositeScore:
    """Health balance profile: load, consistency, endurance, intensity, efficiency.

    Without *as_of* the day of the newest activity is the reference date.
    """
    ref = _reference_time(activities, as_of)
    if ref is None:
        dimensions = {name: empty_dimension() for name in HEALTH_WEIGHTS}
        return CompositeScore(
            overall=0,
            dimensions=dimensions,
            data_quality=DataQuality.LIMITED,
            generated_at=None,
            mode="health",
        )

    recent = activities_since(activities, ref, 7 * HISTORY_WEEKS)
    dimensions = score_health_axes(recent, ref)
    return CompositeScore(
        overall=combine(dimensions, HEALTH_WEIGHTS),
        dimensions=dimensions,
        data_quality=assess_data_quality(recent, ref),
        generated_at=ref,
        mode="health",
    )
