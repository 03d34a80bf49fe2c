"""Rolling-window baselines from a user's daily metric history.

A baseline is the mean of the records in the trailing window that actually
carry the metric.  Too few samples is a normal state (``None``), not an error;
the recovery scorer reads it as a cold start.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from coachscore.models import Baselines, DailyMetric
from coachscore.scoring.stats import mean


DEFAULT_WINDOW_DAYS = 30
MIN_SAMPLES = 3

METRICS = ("hrv", "resting_hr", "sleep_minutes", "respiratory_rate")


def trailing_window(
    history: Sequence[DailyMetric],
    target_date: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[DailyMetric]:
    """Records dated ``[target_date - window_days, target_date)``, newest first."""
    start = target_date - timedelta(days=window_days)
    selected = [m for m in history if start <= m.date < target_date]
    selected.sort(key=lambda m: m.date, reverse=True)
    return selected


def compute_baseline(
    history: Sequence[DailyMetric],
    metric: str,
    target_date: date | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
    min_samples: int = MIN_SAMPLES,
) -> float | None:
    """Mean of *metric* over the records that have it.

    Args:
        history: Daily metrics for one user, any order.
        metric: Field name, one of :data:`METRICS`.
        target_date: If given, only records strictly before this date and
            within *window_days* of it are used.
        window_days: Trailing window length in days.
        min_samples: Fewer qualifying records than this yields None.

    Returns:
        The baseline, or None if not enough records carry the metric.
    """
    if metric not in METRICS:
        return None
    records = (
        trailing_window(history, target_date, window_days)
        if target_date is not None
        else history
    )
    values = [getattr(r, metric) for r in records]
    values = [float(v) for v in values if v is not None]
    if len(values) < max(min_samples, 1):
        return None
    return mean(values)


def compute_baselines(
    history: Sequence[DailyMetric],
    target_date: date | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
    min_samples: int = MIN_SAMPLES,
) -> Baselines:
    """Compute every metric's baseline independently."""
    records = (
        trailing_window(history, target_date, window_days)
        if target_date is not None
        else list(history)
    )
    complete = [
        r for r in records
        if r.hrv is not None and r.resting_hr is not None and r.sleep_minutes is not None
    ]
    return Baselines(
        hrv=compute_baseline(records, "hrv", min_samples=min_samples),
        resting_hr=compute_baseline(records, "resting_hr", min_samples=min_samples),
        sleep_minutes=compute_baseline(records, "sleep_minutes", min_samples=min_samples),
        respiratory_rate=compute_baseline(records, "respiratory_rate", min_samples=min_samples),
        sample_count=len(complete),
    )
