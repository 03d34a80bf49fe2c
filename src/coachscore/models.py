"""Record and result types shared by the scoring engine.

Input records (:class:`DailyMetric`, :class:`ActivityRecord`) are frozen so a
scorer can never mutate the history it was handed.  Result types carry a
``to_dict`` for JSON output, following the same shape everywhere.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any


class Trend(str, Enum):
    """Direction of a metric over its recent window."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class DataQuality(str, Enum):
    """How much history backs a composite score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    LIMITED = "limited"


def _parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    # Provider timestamps end in "Z"; fromisoformat only learned that in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DailyMetric:
    """One user's biometrics for one calendar date."""

    user_id: str
    date: date
    sleep_minutes: int | None = None
    resting_hr: float | None = None  # bpm, None when the device had no reading
    hrv: float | None = None  # ms
    respiratory_rate: float | None = None  # breaths/min
    recovery_score: int | None = None  # derived 0-100
    source: str = "manual"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyMetric:
        """Build from a stored row or a JSON object."""
        sleep = data.get("sleep_minutes")
        score = data.get("recovery_score")
        return cls(
            user_id=str(data.get("user_id", "")),
            date=_parse_date(data["date"]),
            sleep_minutes=None if sleep is None else int(sleep),
            resting_hr=_optional_float(data.get("resting_hr")),
            hrv=_optional_float(data.get("hrv")),
            respiratory_rate=_optional_float(data.get("respiratory_rate")),
            recovery_score=None if score is None else int(score),
            source=data.get("source") or "manual",
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        return d


@dataclass(frozen=True)
class DailyReading:
    """Today's biometrics, as fed to the recovery scorer."""

    sleep_minutes: float | None
    hrv: float | None
    resting_hr: float | None
    respiratory_rate: float | None = None


@dataclass(frozen=True)
class ActivityRecord:
    """A single logged exercise session."""

    distance: float  # meters
    moving_time: float  # seconds
    average_speed: float  # m/s
    total_elevation_gain: float  # meters
    start_date_local: datetime
    type: str = "Ride"
    sport_type: str = ""
    name: str = ""
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    average_watts: float | None = None
    weighted_average_watts: float | None = None

    def __post_init__(self):
        # start_date_local is wall-clock time; an offset (often a bogus "Z")
        # would make aware and naive records incomparable
        if self.start_date_local.tzinfo is not None:
            object.__setattr__(self, "start_date_local", self.start_date_local.replace(tzinfo=None))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivityRecord:
        """Build from a provider activity object (Strava-style keys)."""
        return cls(
            distance=float(data.get("distance") or 0.0),
            moving_time=float(data.get("moving_time") or 0.0),
            average_speed=float(data.get("average_speed") or 0.0),
            total_elevation_gain=float(data.get("total_elevation_gain") or 0.0),
            start_date_local=_parse_timestamp(data["start_date_local"]),
            type=data.get("type") or "Ride",
            sport_type=data.get("sport_type") or "",
            name=data.get("name") or "",
            average_heartrate=_optional_float(data.get("average_heartrate")),
            max_heartrate=_optional_float(data.get("max_heartrate")),
            average_watts=_optional_float(data.get("average_watts")),
            weighted_average_watts=_optional_float(data.get("weighted_average_watts")),
        )

    @property
    def day(self) -> date:
        return self.start_date_local.date()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class Baselines:
    """Trailing-window means for each daily metric (None = not enough data)."""

    hrv: float | None = None
    resting_hr: float | None = None
    sleep_minutes: float | None = None
    respiratory_rate: float | None = None
    sample_count: int = 0  # records with hrv, resting_hr and sleep all present

    @property
    def cold_start(self) -> bool:
        return self.hrv is None or self.resting_hr is None


@dataclass
class Component:
    """One line of a dimension's breakdown."""

    name: str
    value: str | float
    contribution: int  # points added to the dimension score


@dataclass
class DimensionScore:
    """A single 0-100 axis with its breakdown, trend and advice."""

    score: int
    components: list[Component] = field(default_factory=list)
    trend: Trend = Trend.STABLE
    suggestion: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "components": [asdict(c) for c in self.components],
            "trend": self.trend.value,
            "suggestion": self.suggestion,
        }

    def __repr__(self) -> str:
        return (
            f"DimensionScore(score={self.score}, trend={self.trend.value}, "
            f"components={len(self.components)})"
        )


@dataclass
class CompositeScore:
    """Weighted combination of five dimension scores."""

    overall: int
    dimensions: dict[str, DimensionScore]
    data_quality: DataQuality
    generated_at: datetime | None = None
    mode: str = "training"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return {
            "overall": self.overall,
            "mode": self.mode,
            "data_quality": self.data_quality.value,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "dimensions": {k: v.to_dict() for k, v in self.dimensions.items()},
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        dims = ", ".join(f"{k}={v.score}" for k, v in self.dimensions.items())
        return f"CompositeScore({self.mode}: overall={self.overall}, {dims})"
