"""Three-way trend classification by splitting a series in half."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from coachscore.models import Trend
from coachscore.scoring.stats import mean


MIN_POINTS = 6
CHANGE_THRESHOLD_PCT = 5.0


def percent_change(recent: Sequence[float], older: Sequence[float]) -> float | None:
    """``(mean(recent) - mean(older)) / mean(older) * 100``.

    Returns None when either half is empty or the older mean is zero.
    """
    recent_avg = mean(recent)
    older_avg = mean(older)
    if recent_avg is None or older_avg is None or older_avg == 0:
        return None
    return (recent_avg - older_avg) / older_avg * 100.0


def classify_trend(
    series: Sequence[Any],
    selector: Callable[[Any], float] | None = None,
    min_points: int = MIN_POINTS,
    threshold_pct: float = CHANGE_THRESHOLD_PCT,
) -> Trend:
    """Compare the recent half of *series* against the older half.

    Args:
        series: Data points ordered most-recent first.
        selector: Maps each point to a number (identity if None).
        min_points: Below this many points the trend is always stable.
        threshold_pct: Change beyond +/- this percentage counts as a trend.
    """
    if len(series) < min_points:
        return Trend.STABLE

    values = [float(selector(p)) if selector else float(p) for p in series]
    midpoint = len(values) // 2
    change = percent_change(values[:midpoint], values[midpoint:])
    if change is None:
        return Trend.STABLE
    if change > threshold_pct:
        return Trend.IMPROVING
    if change < -threshold_pct:
        return Trend.DECLINING
    return Trend.STABLE
