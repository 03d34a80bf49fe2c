"""Rider profile: five 1-10 levels with a concrete next-level target each.

Where the health axes grade the last few weeks in bands, the profile turns
the same signals into a ladder:

    stamina     -- longest ride in the last 28 days, one level per 30 min
    economy     -- output-per-beat on rides over an hour, last 2 weeks vs
                   the 4 before, shown as an estimated cardiac drift
    punch       -- best 5-minute power as a multiple of FTP
    discipline  -- average active days per week over 8 weeks
    capacity    -- acute:chronic workload ratio

Without power streams there is no true best 5-minute effort; callers that
have one pass ``best_5min_power``, otherwise 110% of FTP is assumed.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Sequence

from coachscore.models import ActivityRecord
from coachscore.scoring.health import _window_end, acute_chronic_ratio, weekly_active_days
from coachscore.scoring.stats import clamp, mean, round_half_up
from coachscore.scoring.windows import activities_between, day_start


MIN_LEVEL = 1
MAX_LEVEL = 10

DEFAULT_FTP = 250.0  # watts
DEFAULT_PUNCH_RATIO = 1.1

STAMINA_DAYS = 28
STAMINA_STEP_MIN = 30.0

ECONOMY_DAYS = 42
ECONOMY_RECENT_DAYS = 14
ECONOMY_MIN_SECONDS = 3600.0
ECONOMY_NEUTRAL_DRIFT = 5.0  # % drift shown when EF is unchanged
ECONOMY_NEXT_STEP = 1.5

PUNCH_SCALE = 40.0  # levels per unit of (ratio - 1)
DISCIPLINE_SCALE = 1.5  # levels per weekly active day
CAPACITY_SCALE = 15.0  # levels per unit of (ACWR - 1)


@dataclass
class LevelDetail:
    """One rung of the ladder and what it takes to reach the next."""

    level: int
    current_value: str
    next_level_criteria: str
    prompt: str

    def __repr__(self) -> str:
        return f"LevelDetail(level={self.level}, current={self.current_value!r})"


@dataclass
class RiderProfile:
    discipline: LevelDetail
    stamina: LevelDetail
    punch: LevelDetail
    capacity: LevelDetail
    economy: LevelDetail

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"RiderProfile(discipline={self.discipline.level}, "
            f"stamina={self.stamina.level}, "
            f"punch={self.punch.level}, "
            f"capacity={self.capacity.level}, "
            f"economy={self.economy.level})"
        )


def _level(raw: float) -> int:
    return int(math.floor(clamp(raw, MIN_LEVEL, MAX_LEVEL)))


def _round_to(value: float, places: int) -> float:
    scale = 10 ** places
    return round_half_up(value * scale) / scale


def format_duration(minutes: float) -> str:
    """``"2h 15m"``, or ``"45m"`` under an hour."""
    hours = int(minutes // 60)
    mins = round_half_up(minutes % 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


# ---------------------------------------------------------------------------
# Ladders
# ---------------------------------------------------------------------------


def stamina_level(activities: Sequence[ActivityRecord], as_of: date | datetime) -> LevelDetail:
    """Longest ride in the 28 days up to the end of *as_of*."""
    end = _window_end(as_of)
    window = activities_between(activities, day_start(as_of) - timedelta(days=STAMINA_DAYS), end)
    longest_min = max([a.moving_time for a in window], default=0.0) / 60.0

    level = _level(1 + longest_min / STAMINA_STEP_MIN)
    next_min = level * STAMINA_STEP_MIN

    if level >= MAX_LEVEL:
        prompt = "Grand Tour Stamina. Maintain your long rides."
    else:
        prompt = f"Complete a {format_duration(next_min)} ride this month to Level Up."

    return LevelDetail(
        level=level,
        current_value=format_duration(longest_min),
        next_level_criteria=format_duration(next_min),
        prompt=prompt,
    )


def _efficiency_factor(activity: ActivityRecord) -> float | None:
    power = activity.weighted_average_watts or activity.average_watts
    if not power or not activity.average_heartrate:
        return None
    return power / activity.average_heartrate


def economy_level(activities: Sequence[ActivityRecord], as_of: date | datetime) -> LevelDetail:
    """Recent vs baseline output-per-beat on rides over an hour.

    A 1% gain in efficiency factor is read as 1% less drift and one level
    up from the neutral level 5.
    """
    start = day_start(as_of)
    window = activities_between(activities, start - timedelta(days=ECONOMY_DAYS), _window_end(as_of))
    rated = []
    for a in window:
        ef = _efficiency_factor(a) if a.moving_time >= ECONOMY_MIN_SECONDS else None
        if ef is not None:
            rated.append((a, ef))
    if not rated:
        return LevelDetail(
            level=MIN_LEVEL,
            current_value="N/A",
            next_level_criteria="N/A",
            prompt="Record rides > 60m with Power & HR to track Economy.",
        )

    split = start - timedelta(days=ECONOMY_RECENT_DAYS)
    recent = mean([ef for a, ef in rated if a.start_date_local >= split]) or 0.0
    baseline = mean([ef for a, ef in rated if a.start_date_local < split]) or 0.0

    if recent > 0 and baseline > 0:
        change_pct = (recent - baseline) / baseline * 100.0
        drift = ECONOMY_NEUTRAL_DRIFT - change_pct
        shown = "< 1" if drift <= 0 else f"{drift:.1f}"
        return LevelDetail(
            level=_level(ECONOMY_NEUTRAL_DRIFT + change_pct),
            current_value=f"{shown}% Est. Drift",
            next_level_criteria=f"< {max(0.0, drift - ECONOMY_NEXT_STEP):.1f}% Drift",
            prompt="Focus on steady Zone 2 rides to reduce cardiac drift.",
        )

    return LevelDetail(
        level=5,
        current_value="~5% Est. Drift",
        next_level_criteria="< 3.5% Drift",
        prompt="Keep recording long rides to establish Economy baseline.",
    )


def punch_level(ftp: float = DEFAULT_FTP, best_5min_power: float | None = None) -> LevelDetail:
    """Best 5-minute power relative to FTP; 1.25x FTP is the top level."""
    if ftp <= 0:
        raise ValueError(f"ftp must be positive, got {ftp}")
    best = best_5min_power or ftp * DEFAULT_PUNCH_RATIO
    ratio = best / ftp

    level = _level((ratio - 1.0) * PUNCH_SCALE)
    next_watts = round_half_up(((level + 1) / PUNCH_SCALE + 1.0) * ftp)

    return LevelDetail(
        level=level,
        current_value=f"{round_half_up(best)}w (x{ratio:.2f})",
        next_level_criteria=f"{next_watts}w for 5m",
        prompt=f"Hit {next_watts}w for 5 mins to Level Up.",
    )


def discipline_level(activities: Sequence[ActivityRecord], as_of: date | datetime) -> LevelDetail:
    avg_days = _round_to(mean(weekly_active_days(activities, as_of)) or 0.0, 1)
    level = max(MIN_LEVEL, min(MAX_LEVEL, int(math.floor(avg_days * DISCIPLINE_SCALE))))
    next_days = math.ceil((level + 1) / DISCIPLINE_SCALE)

    top = level >= MAX_LEVEL
    return LevelDetail(
        level=level,
        current_value=f"{avg_days:.1f} days/wk",
        next_level_criteria="Max" if top else f"{next_days} days/wk",
        prompt="Keep the streak alive." if top else "Don't break the chain. Aim for consistency.",
    )


def capacity_level(activities: Sequence[ActivityRecord], as_of: date | datetime) -> LevelDetail:
    """Acute:chronic ratio; 1.0 is level 5, each 1/15 above or below is a level."""
    _, _, ratio = acute_chronic_ratio(activities, as_of)
    ratio = _round_to(ratio, 2)

    # +0.001 keeps a ratio exactly on a level boundary at that level
    level = _level(5 + (ratio - 1.0 + 0.001) * CAPACITY_SCALE)
    next_ratio = (level + 1 - 5) / CAPACITY_SCALE + 1.0

    top = level >= MAX_LEVEL
    return LevelDetail(
        level=level,
        current_value=f"{ratio:.2f}",
        next_level_criteria=f"{next_ratio:.2f}",
        prompt="Max Growth Rate." if top else f"Safely increase volume to ACWR {next_ratio:.2f}.",
    )


def score_rider_profile(
    activities: Sequence[ActivityRecord],
    as_of: date | datetime,
    ftp: float = DEFAULT_FTP,
    best_5min_power: float | None = None,
) -> RiderProfile:
    """Build all five ladders for the rider as of *as_of*.

    Args:
        activities: Logged sessions, any order.
        as_of: Reference day; windows end at the close of this day.
        ftp: Functional threshold power in watts.
        best_5min_power: Best 5-minute power in watts, if known.

    Returns:
        RiderProfile with one :class:`LevelDetail` per ladder.
    """
    return RiderProfile(
        discipline=discipline_level(activities, as_of),
        stamina=stamina_level(activities, as_of),
        punch=punch_level(ftp, best_5min_power),
        capacity=capacity_level(activities, as_of),
        economy=economy_level(activities, as_of),
    )
