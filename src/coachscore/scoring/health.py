"""Health balance axes: load, consistency, endurance, intensity, efficiency.

Unlike the activity-only dimensions these are relative to the athlete's own
recent history (acute vs chronic load, this week vs prior weeks) and are
scored in fixed bands.  Every function takes an explicit ``as_of`` date so
the result depends only on its arguments.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Sequence

from coachscore.models import ActivityRecord, Component, DimensionScore, Trend
from coachscore.scoring.stats import pstdev, mean, round_half_up
from coachscore.scoring.trend import MIN_POINTS
from coachscore.scoring.windows import activities_between, day_start


HISTORY_WEEKS = 8

ACUTE_DAYS = 7
CHRONIC_DAYS = 42
CHRONIC_MIN_MINUTES = 10.0

Z4_HR = 160.0
Z3_HR = 135.0
INTERVAL_MAX_HR = 170.0
MIN_EF_HR = 50.0


def _window_end(as_of: date | datetime) -> datetime:
    """Exclusive end of the as_of day."""
    return day_start(as_of) + timedelta(days=1)


def _days_before(end: datetime, days: int) -> datetime:
    return end - timedelta(days=days)


def _gate_trend(trend: Trend, n_points: int) -> Trend:
    # Too little history to call a direction
    return trend if n_points >= MIN_POINTS else Trend.STABLE


# ---------------------------------------------------------------------------
# Load (acute:chronic workload ratio)
# ---------------------------------------------------------------------------

# (lo, hi, score, suggestion); first match wins, checked in order
LOAD_BANDS = [
    (1.10, 1.30, 100, "Perfect growth zone (1.1 - 1.3). You are building fitness."),
    (0.95, 1.10, 85, "Maintenance mode (0.95 - 1.1). Push volume slightly to grow."),
    (1.30, 1.45, 80, "Aggressive build (1.3 - 1.45). Watch for fatigue."),
]


def acute_chronic_ratio(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime,
) -> tuple[float, float, float]:
    """Return ``(acute_minutes, chronic_weekly_minutes, ratio)``."""
    end = _window_end(as_of)
    acute = sum(a.moving_time for a in activities_between(activities, _days_before(end, ACUTE_DAYS), end)) / 60.0
    total = sum(a.moving_time for a in activities_between(activities, _days_before(end, CHRONIC_DAYS), end)) / 60.0
    chronic = total / CHRONIC_DAYS * 7.0

    if chronic > CHRONIC_MIN_MINUTES:
        ratio = acute / chronic
    elif acute > 0:
        ratio = 2.0
    else:
        ratio = 1.0
    return acute, chronic, ratio


def score_load(activities: Sequence[ActivityRecord], as_of: date | datetime) -> DimensionScore:
    acute, chronic, ratio = acute_chronic_ratio(activities, as_of)

    for lo, hi, score, suggestion in LOAD_BANDS:
        if lo <= ratio <= hi:
            break
    else:
        if ratio < 0.95:
            score, suggestion = 60, "Detraining risk (< 0.95). Increase training volume."
        else:
            score, suggestion = 50, "Danger zone (> 1.45). Too much too soon! Back off."

    if ratio > 1.05:
        trend = Trend.IMPROVING
    elif ratio < 0.95:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    return DimensionScore(
        score=score,
        components=[
            Component("Acute Load (7d)", f"{round_half_up(acute)} mins", 0),
            Component("Chronic Load (42d)", f"{round_half_up(chronic)} mins", 0),
            Component("A:C Ratio", f"{ratio:.2f}", score),
        ],
        trend=trend,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Consistency (active days per week, 8 weeks)
# ---------------------------------------------------------------------------


def weekly_active_days(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime,
    weeks: int = HISTORY_WEEKS,
) -> list[int]:
    """Distinct active days in each 7-day block, most recent block first."""
    end = _window_end(as_of)
    counts = []
    for i in range(weeks):
        block_end = end - timedelta(days=7 * i)
        block = activities_between(activities, _days_before(block_end, 7), block_end)
        counts.append(len({a.day for a in block}))
    return counts


def score_habit(activities: Sequence[ActivityRecord], as_of: date | datetime) -> DimensionScore:
    """Consistency axis: how steady the weekly training-day count is."""
    weeks = weekly_active_days(activities, as_of)
    avg = mean(weeks) or 0.0
    spread = pstdev(weeks)

    if spread < 0.5:
        score, suggestion = 100, "Machine-like consistency (< 0.5)."
    elif spread < 1.0:
        score, suggestion = 85, "Good consistency (< 1.0). Don't miss sessions."
    elif spread <= 1.5:
        score, suggestion = 70, "Variable schedule. Try to lock in your days."
    else:
        score, suggestion = 50, "Erratic (> 1.5). Establish a routine."

    recent_spread = pstdev(weeks[:4])
    older_spread = pstdev(weeks[4:])
    if recent_spread < older_spread:
        trend = Trend.IMPROVING
    elif recent_spread > older_spread:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    return DimensionScore(
        score=score,
        components=[
            Component("Avg Days/Week", f"{avg:.1f}", 0),
            Component("Variability", f"+/-{spread:.1f} days", score),
        ],
        trend=trend,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Endurance (long ride progression)
# ---------------------------------------------------------------------------


def score_long_ride(activities: Sequence[ActivityRecord], as_of: date | datetime) -> DimensionScore:
    """Endurance axis: this week's longest session vs the 4 weeks before."""
    end = _window_end(as_of)
    this_week = activities_between(activities, _days_before(end, 7), end)
    current = max([a.moving_time for a in this_week], default=0.0)

    prior = []
    for i in range(1, 5):
        block_end = end - timedelta(days=7 * i)
        block = activities_between(activities, _days_before(block_end, 7), block_end)
        prior.append(max([a.moving_time for a in block], default=0.0))
    baseline = mean(prior) or 0.0

    if baseline > 0:
        ratio = current / baseline
    elif current > 0:
        ratio = 2.0
    else:
        ratio = 1.0

    if ratio > 1.10:
        score = 100
        suggestion = "Excellent! Pushing boundaries (> 110% of baseline)."
    elif ratio >= 0.95:
        score = 80
        suggestion = (
            f"Comfort zone. To reach 100, extend your long ride to "
            f"> {round_half_up(baseline * 1.10 / 60.0)} mins."
        )
    else:
        score = 50
        suggestion = (
            f"Regression (< 95% of baseline). Long ride needs to be at least "
            f"{round_half_up(baseline * 0.95 / 60.0)} mins to maintain."
        )

    return DimensionScore(
        score=score,
        components=[
            Component("This Week Longest", f"{round_half_up(current / 60.0)}m", 0),
            Component("Baseline Longest", f"{round_half_up(baseline / 60.0)}m", score),
        ],
        trend=Trend.IMPROVING if ratio >= 1.0 else Trend.DECLINING,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Intensity (zone distribution from average HR)
# ---------------------------------------------------------------------------


def zone_split(activities: Sequence[ActivityRecord]) -> tuple[float, float, float]:
    """Estimate ``(total_seconds, z4_pct, z3_pct)`` from per-session HR.

    Without HR streams the split is a proxy: sessions are apportioned to
    zones by their average (and max) heart rate.
    """
    total = 0.0
    z4 = 0.0
    z3 = 0.0
    for a in activities:
        total += a.moving_time
        if a.average_heartrate is None:
            continue
        if a.average_heartrate >= Z4_HR:
            z4 += a.moving_time * 0.9
            z3 += a.moving_time * 0.1
        elif a.average_heartrate >= Z3_HR:
            z3 += a.moving_time * 0.8
            z4 += a.moving_time * 0.1
        elif a.max_heartrate is not None and a.max_heartrate >= INTERVAL_MAX_HR:
            z4 += a.moving_time * 0.15
            z3 += a.moving_time * 0.25
    if total <= 0:
        return total, 0.0, 0.0
    return total, z4 / total * 100.0, z3 / total * 100.0


def score_intensity(activities: Sequence[ActivityRecord], as_of: date | datetime) -> DimensionScore:
    end = _window_end(as_of)
    week = activities_between(activities, _days_before(end, 7), end)
    total, z4_pct, z3_pct = zone_split(week)

    if z3_pct > 30:
        score = 60
        suggestion = (
            f"Junk mile penalty! Zone 3 is {z3_pct:.0f}% (> 30%). "
            f"Rides should be hard (Z4) or easy (Z2)."
        )
    elif z4_pct >= 15 and z3_pct < 20:
        score = 100
        suggestion = "Perfect polarization! High quality work with disciplined easy days."
    elif z4_pct >= 10:
        score = 75
        suggestion = "Good intensity, but watch your grey-zone (Z3) volume."
    else:
        score = 50
        suggestion = "Not enough intensity. Push harder on hard days (> 15% Z4)."

    return DimensionScore(
        score=score,
        components=[
            Component("Training Time", f"{round_half_up(total / 60.0)}m", 0),
            Component("Z4+ (Hard)", f"{z4_pct:.1f}%", 0),
            Component("Z3 (Tempo)", f"{z3_pct:.1f}%", score),
        ],
        trend=Trend.STABLE,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Efficiency (output per heartbeat)
# ---------------------------------------------------------------------------


def efficiency_factor(activity: ActivityRecord) -> float | None:
    """Output / average HR; output is power if recorded, else speed * 100."""
    hr = activity.average_heartrate
    if hr is None or hr < MIN_EF_HR:
        return None
    output = activity.weighted_average_watts or activity.average_watts or 0.0
    if output == 0 and activity.average_speed:
        output = activity.average_speed * 100.0
    return output / hr


def score_efficiency(activities: Sequence[ActivityRecord], as_of: date | datetime) -> DimensionScore:
    end = _window_end(as_of)
    week_start = _days_before(end, 7)

    current_efs = [ef for ef in map(efficiency_factor, activities_between(activities, week_start, end)) if ef is not None]
    baseline_efs = [
        ef for ef in map(efficiency_factor, activities_between(activities, _days_before(end, 35), week_start))
        if ef is not None
    ]
    current = mean(current_efs) or 0.0
    baseline = mean(baseline_efs) or 0.0
    change = (current - baseline) / baseline * 100.0 if baseline > 0 else 0.0

    if current == 0 and baseline == 0:
        score, suggestion = 50, "No HR/power data to calculate efficiency."
    elif change > 2.0:
        score, suggestion = 100, f"Strong efficiency gains (+{change:.1f}%)! Fitness is rising."
    elif change >= 0:
        score, suggestion = 85, f"Marginal gains (+{change:.1f}%). Push for > 2% improvement."
    else:
        score, suggestion = 50, f"Efficiency loss ({change:.1f}%). Fatigue or detraining detected."

    if change > 0:
        trend = Trend.IMPROVING
    elif change < 0:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    return DimensionScore(
        score=score,
        components=[
            Component("Current EF", f"{current:.2f}", 0),
            Component("Baseline EF", f"{baseline:.2f}", score),
        ],
        trend=trend,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# All axes
# ---------------------------------------------------------------------------

HEALTH_AXES = {
    "load": score_load,
    "consistency": score_habit,
    "endurance": score_long_ride,
    "intensity": score_intensity,
    "efficiency": score_efficiency,
}


def score_health_axes(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime,
) -> dict[str, DimensionScore]:
    """Score every axis over the last 8 weeks of *activities*."""
    end = _window_end(as_of)
    recent = activities_between(activities, _days_before(end, 7 * HISTORY_WEEKS), end)
    axes = {}
    for name, scorer in HEALTH_AXES.items():
        detail = scorer(recent, as_of)
        detail.trend = _gate_trend(detail.trend, len(recent))
        axes[name] = detail
    return axes
