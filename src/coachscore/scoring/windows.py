"""Activity selection: recency windows and type filters.

Every function returns a new list ordered most-recent first and never
raises on empty input.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Sequence

from coachscore.models import ActivityRecord


DEFAULT_WINDOW_DAYS = 28
DEFAULT_LIMIT = 28
MIN_ACTIVITIES = 3

VIRTUAL_NAME_MARKERS = ("zwift", "virtual", "indoor")

VirtualClassifier = Callable[[ActivityRecord], bool]


def is_virtual_ride(activity: ActivityRecord) -> bool:
    """Guess whether an activity was ridden indoors / on a trainer app.

    Name matching is a heuristic (English-only, app-specific); pass another
    classifier to :func:`exclude_virtual` to replace it.
    """
    if "virtual" in activity.sport_type.lower():
        return True
    name = activity.name.lower()
    return any(marker in name for marker in VIRTUAL_NAME_MARKERS)


def _naive(ts: datetime) -> datetime:
    # Records are naive wall-clock time; drop any offset on caller bounds
    return ts.replace(tzinfo=None)


def day_start(d: date | datetime) -> datetime:
    """Midnight at the start of *d*."""
    if isinstance(d, datetime):
        d = d.date()
    return datetime.combine(d, time.min)


def newest_first(activities: Iterable[ActivityRecord]) -> list[ActivityRecord]:
    return sorted(activities, key=lambda a: a.start_date_local, reverse=True)


def recent_activities(
    activities: Sequence[ActivityRecord],
    limit: int = DEFAULT_LIMIT,
) -> list[ActivityRecord]:
    """The *limit* most recent activities."""
    return newest_first(activities)[:max(limit, 0)]


def activities_between(
    activities: Sequence[ActivityRecord],
    start: datetime,
    end: datetime,
) -> list[ActivityRecord]:
    """Activities with ``start <= start_date_local < end``."""
    lo, hi = _naive(start), _naive(end)
    return newest_first(
        a for a in activities if lo <= a.start_date_local < hi
    )


def activities_since(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime,
    days: int,
) -> list[ActivityRecord]:
    """Activities in the *days* calendar days ending with (and including) *as_of*."""
    end = day_start(as_of) + timedelta(days=1)
    return activities_between(activities, end - timedelta(days=days), end)


def select_window(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime | None = None,
    days: int = DEFAULT_WINDOW_DAYS,
    limit: int = DEFAULT_LIMIT,
    min_count: int = MIN_ACTIVITIES,
) -> list[ActivityRecord]:
    """Pick the activities a training score should look at.

    With *as_of*, the trailing *days* window is used unless it is too sparse
    (fewer than *min_count*), in which case the most recent *limit*
    activities are used instead.  Without *as_of*, always the most recent
    *limit*.
    """
    if as_of is not None:
        windowed = activities_since(activities, as_of, days)
        if len(windowed) >= min_count:
            return windowed[:limit]
    return recent_activities(activities, limit)


def filter_types(
    activities: Sequence[ActivityRecord],
    types: Iterable[str],
) -> list[ActivityRecord]:
    """Keep activities whose ``type`` or ``sport_type`` is in *types*."""
    wanted = {t.lower() for t in types}
    return newest_first(
        a for a in activities
        if a.type.lower() in wanted or a.sport_type.lower() in wanted
    )


def exclude_virtual(
    activities: Sequence[ActivityRecord],
    is_virtual: VirtualClassifier = is_virtual_ride,
) -> list[ActivityRecord]:
    """Drop indoor/virtual sessions, as judged by *is_virtual*."""
    return newest_first(a for a in activities if not is_virtual(a))
