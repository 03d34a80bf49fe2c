"""Activity-only training dimensions: power, endurance, consistency, speed, load.

Each scorer sums two or three capped components into a 0-100 score, labels
a trend and picks a suggestion from fixed score bands.  Activities are
expected most-recent first (see :mod:`coachscore.scoring.windows`).
"""

from __future__ import annotations

import math
from typing import Sequence

from coachscore.models import ActivityRecord, Component, DimensionScore, Trend
from coachscore.scoring.stats import (
    METERS_TO_FEET,
    SECONDS_PER_DAY,
    clamp,
    coefficient_of_variation,
    mean,
    miles,
    mph,
    round_half_up,
    to_score,
)
from coachscore.scoring.trend import classify_trend, percent_change


NEED_MORE_DATA = "Need more data: log at least 3 activities to unlock this score."

# Suggestion bands: below LOW, below HIGH, otherwise
SUGGESTION_LOW = 60
SUGGESTION_HIGH = 80

HARD_RIDE_MPH = 18.0
EASY_RIDE_MPH = 15.0
PEAK_SPEED_REF_MPH = 25.0

REGULAR_GAP_DAYS = 3.0

PROGRESSION_WINDOW = 3
PROGRESSION_LIMIT_PCT = 15.0


def _suggest(score: int, low: str, mid: str, high: str) -> str:
    if score < SUGGESTION_LOW:
        return low
    if score < SUGGESTION_HIGH:
        return mid
    return high


def empty_dimension(suggestion: str = NEED_MORE_DATA) -> DimensionScore:
    """Fallback for a dimension with nothing to score."""
    return DimensionScore(score=0, components=[], trend=Trend.STABLE, suggestion=suggestion)


def _bucket(value: float, steps: Sequence[tuple[float, float]], below: float) -> float:
    """First ``points`` whose ``threshold`` *value* reaches, else ``value * below``."""
    for threshold, points in steps:
        if value >= threshold:
            return points
    return value * below


# ---------------------------------------------------------------------------
# Power
# ---------------------------------------------------------------------------


def score_power(activities: Sequence[ActivityRecord]) -> DimensionScore:
    """Intensity capacity: hard-ride share, climbing and peak average speed."""
    if not activities:
        return empty_dimension()

    n = len(activities)
    hard = [a for a in activities if mph(a.average_speed) >= HARD_RIDE_MPH]
    hard_pct = len(hard) / n * 100.0
    hard_pts = min(40.0, hard_pct * 2.0)

    avg_elev = mean([a.total_elevation_gain for a in activities]) or 0.0
    climb_pts = clamp(avg_elev / 1000.0 * 30.0, 0.0, 30.0)

    peak_mph = max(mph(a.average_speed) for a in activities)
    peak_pts = clamp(peak_mph / PEAK_SPEED_REF_MPH * 30.0, 0.0, 30.0)

    score = to_score(hard_pts + climb_pts + peak_pts)
    return DimensionScore(
        score=score,
        components=[
            Component("High Intensity Rides",
                      f"{len(hard)} rides ({round_half_up(hard_pct)}%)", round_half_up(hard_pts)),
            Component("Climbing Volume",
                      f"{round_half_up(avg_elev * METERS_TO_FEET)} ft avg", round_half_up(climb_pts)),
            Component("Peak Performance", f"{peak_mph:.1f} mph max avg", round_half_up(peak_pts)),
        ],
        trend=classify_trend(activities, lambda a: a.average_speed),
        suggestion=_suggest(
            score,
            "Add 1-2 high-intensity interval sessions per week",
            "Good power development - maintain intensity work",
            "Excellent power capacity - focus on maintaining and varying stimuli",
        ),
    )


# ---------------------------------------------------------------------------
# Endurance
# ---------------------------------------------------------------------------

WEEKLY_MILES_STEPS = [(150.0, 40.0), (100.0, 32.0), (75.0, 25.0), (50.0, 20.0)]
LONG_RIDE_MILES_STEPS = [(100.0, 35.0), (75.0, 28.0), (50.0, 22.0)]


def score_endurance(activities: Sequence[ActivityRecord]) -> DimensionScore:
    """Volume and long-ride capacity."""
    if not activities:
        return empty_dimension()

    n = len(activities)
    # Per-activity mean scaled to a week, i.e. assumes roughly daily sessions
    weekly_mi = miles(sum(a.distance for a in activities)) / n * 7.0
    volume_pts = min(40.0, max(0.0, _bucket(weekly_mi, WEEKLY_MILES_STEPS, 0.4)))

    longest_mi = miles(max(a.distance for a in activities))
    long_pts = min(35.0, max(0.0, _bucket(longest_mi, LONG_RIDE_MILES_STEPS, 0.4)))

    avg_hours = sum(a.moving_time for a in activities) / n / 3600.0
    duration_pts = clamp(avg_hours * 8.0, 0.0, 25.0)

    score = to_score(volume_pts + long_pts + duration_pts)
    return DimensionScore(
        score=score,
        components=[
            Component("Weekly Volume", f"{weekly_mi:.1f} mi/week", round_half_up(volume_pts)),
            Component("Longest Ride", f"{longest_mi:.1f} miles", round_half_up(long_pts)),
            Component("Ride Duration", f"{avg_hours:.1f}h avg", round_half_up(duration_pts)),
        ],
        trend=classify_trend(activities, lambda a: a.distance),
        suggestion=_suggest(
            score,
            "Build aerobic base with longer, easier rides",
            "Solid endurance base - gradually increase volume",
            "Excellent endurance capacity - maintain consistency",
        ),
    )


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------


def _frequency_points(days_per_week: float) -> float:
    if 4.0 <= days_per_week <= 6.0:
        return 40.0
    if 3.0 <= days_per_week <= 7.0:
        return 30.0
    if days_per_week >= 2.0:
        return 20.0
    return days_per_week * 10.0


def _gap_days(activities: Sequence[ActivityRecord]) -> list[float]:
    return [
        abs((activities[i].start_date_local - activities[i + 1].start_date_local).total_seconds())
        / SECONDS_PER_DAY
        for i in range(len(activities) - 1)
    ]


def score_consistency(activities: Sequence[ActivityRecord]) -> DimensionScore:
    """Training regularity: frequency, volume steadiness and gap regularity."""
    if not activities:
        return empty_dimension()

    unique_days = len({a.day for a in activities})
    span_sec = (activities[0].start_date_local - activities[-1].start_date_local).total_seconds()
    day_range = math.ceil(span_sec / SECONDS_PER_DAY)
    frequency = unique_days / day_range * 7.0 if day_range > 0 else 0.0
    freq_pts = min(40.0, _frequency_points(frequency))

    cov = coefficient_of_variation([a.distance for a in activities])
    steady_pts = clamp(35.0 - cov * 0.5, 0.0, 35.0)

    gaps = _gap_days(activities)
    regular_share = sum(1 for g in gaps if g <= REGULAR_GAP_DAYS) / len(gaps) if gaps else 0.0
    regular_pts = regular_share * 25.0

    score = to_score(freq_pts + steady_pts + regular_pts)
    return DimensionScore(
        score=score,
        components=[
            Component("Training Frequency", f"{frequency:.1f} days/week", round_half_up(freq_pts)),
            Component("Volume Consistency", f"{100.0 - cov:.0f}% consistent", round_half_up(steady_pts)),
            Component("Schedule Regularity",
                      f"{round_half_up(regular_share * 100.0)}% regular", round_half_up(regular_pts)),
        ],
        trend=Trend.STABLE,
        suggestion=_suggest(
            score,
            "Aim for 3-4 rides per week with consistent gaps",
            "Good consistency - maintain regular training schedule",
            "Excellent training consistency - key to long-term improvement",
        ),
    )


# ---------------------------------------------------------------------------
# Speed
# ---------------------------------------------------------------------------

AVG_SPEED_STEPS = [(20.0, 40.0), (18.0, 35.0), (16.0, 30.0), (14.0, 25.0)]


def speed_improvement(activities: Sequence[ActivityRecord]) -> float:
    """Percent change of recent-half mean speed over the older half (0 if undefined)."""
    speeds = [mph(a.average_speed) for a in activities]
    midpoint = len(speeds) // 2
    change = percent_change(speeds[:midpoint], speeds[midpoint:])
    return 0.0 if change is None else change


def score_speed(activities: Sequence[ActivityRecord]) -> DimensionScore:
    """Average speed, its progression and peak capacity."""
    if not activities:
        return empty_dimension()

    speeds = [mph(a.average_speed) for a in activities]
    avg_mph = mean(speeds) or 0.0
    avg_pts = min(40.0, max(0.0, _bucket(avg_mph, AVG_SPEED_STEPS, 1.5)))

    improvement = speed_improvement(activities)
    progress_pts = clamp(15.0 + improvement * 1.5, 0.0, 30.0)

    peak_mph = max(speeds)
    peak_pts = clamp(peak_mph / PEAK_SPEED_REF_MPH * 30.0, 0.0, 30.0)

    score = to_score(avg_pts + progress_pts + peak_pts)
    sign = "+" if improvement > 0 else ""
    return DimensionScore(
        score=score,
        components=[
            Component("Average Speed", f"{avg_mph:.1f} mph", round_half_up(avg_pts)),
            Component("Speed Progression", f"{sign}{improvement:.1f}%", round_half_up(progress_pts)),
            Component("Peak Speed Capacity", f"{peak_mph:.1f} mph", round_half_up(peak_pts)),
        ],
        trend=classify_trend(speeds),
        suggestion=_suggest(
            score,
            "Work on leg strength and cadence efficiency",
            "Good speed - add tempo work to continue improving",
            "Excellent speed capacity - focus on sustaining at race pace",
        ),
    )


# ---------------------------------------------------------------------------
# Training load
# ---------------------------------------------------------------------------

WEEKLY_HOURS_STEPS = [(10.0, 35.0), (8.0, 30.0), (6.0, 25.0), (4.0, 20.0)]

# Easy-share bands: (lo, hi, points), first match wins
EASY_SHARE_BANDS = [(70, 85, 35.0), (60, 90, 25.0)]
EASY_SHARE_OTHER = 15.0

PROGRESSION_POINTS = 30.0


def intensity_distribution(activities: Sequence[ActivityRecord]) -> dict[str, int]:
    """Whole-percent split of sessions into easy / moderate / hard by speed."""
    counts = {"easy": 0, "moderate": 0, "hard": 0}
    for a in activities:
        speed = mph(a.average_speed)
        if speed < EASY_RIDE_MPH:
            counts["easy"] += 1
        elif speed < HARD_RIDE_MPH:
            counts["moderate"] += 1
        else:
            counts["hard"] += 1
    total = len(activities)
    return {
        k: round_half_up(v / total * 100.0) if total else 0
        for k, v in counts.items()
    }


def workload_progression(activities: Sequence[ActivityRecord]) -> str:
    """Label the last 3 sessions' distance against the 3 before them."""
    if len(activities) < 2 * PROGRESSION_WINDOW:
        return "Appropriate"
    distances = [a.distance for a in activities]
    change = percent_change(
        distances[:PROGRESSION_WINDOW],
        distances[PROGRESSION_WINDOW:2 * PROGRESSION_WINDOW],
    )
    if change is None:
        return "Appropriate"
    if change > PROGRESSION_LIMIT_PCT:
        return "Too aggressive"
    if change < -PROGRESSION_LIMIT_PCT:
        return "Decreasing"
    return "Appropriate"


def score_training_load(activities: Sequence[ActivityRecord]) -> DimensionScore:
    """Weekly hours, easy/hard balance and load progression."""
    if not activities:
        return empty_dimension()

    n = len(activities)
    weekly_hours = sum(a.moving_time for a in activities) / 3600.0 / n * 7.0
    hours_pts = min(35.0, max(0.0, _bucket(weekly_hours, WEEKLY_HOURS_STEPS, 5.0)))

    easy = intensity_distribution(activities)["easy"]
    balance_pts = EASY_SHARE_OTHER
    for lo, hi, points in EASY_SHARE_BANDS:
        if lo <= easy <= hi:
            balance_pts = points
            break

    # Progression is shown for context; its points are awarded regardless
    progression = workload_progression(activities)

    score = to_score(hours_pts + balance_pts + PROGRESSION_POINTS)
    return DimensionScore(
        score=score,
        components=[
            Component("Weekly Hours", f"{weekly_hours:.1f}h/week", round_half_up(hours_pts)),
            Component("Easy/Hard Balance", f"{easy}% easy", round_half_up(balance_pts)),
            Component("Load Management", progression, round_half_up(PROGRESSION_POINTS)),
        ],
        trend=Trend.STABLE,
        suggestion=_suggest(
            score,
            "Balance training load with 80% easy, 20% hard rides",
            "Good training load balance - avoid sudden increases",
            "Excellent load management - sustainable long-term",
        ),
    )
