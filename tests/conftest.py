"""Shared fixtures and helpers for the coachscore test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from coachscore.models import ActivityRecord, DailyMetric, DailyReading
from coachscore.store import JsonlMetricStore


# ---------------------------------------------------------------------------
# Daily metric helpers
# ---------------------------------------------------------------------------


def make_metric(
    day: date,
    hrv: float | None = 50.0,
    resting_hr: float | None = 60.0,
    sleep_minutes: int | None = 420,
    respiratory_rate: float | None = None,
    user_id: str = "user-1",
) -> DailyMetric:
    """Build one DailyMetric row."""
    return DailyMetric(
        user_id=user_id,
        date=day,
        sleep_minutes=sleep_minutes,
        resting_hr=resting_hr,
        hrv=hrv,
        respiratory_rate=respiratory_rate,
    )


def make_history(
    days: int,
    end: date = date(2024, 3, 1),
    **kwargs,
) -> list[DailyMetric]:
    """*days* identical rows on the days before *end*, newest first."""
    return [make_metric(end - timedelta(days=i), **kwargs) for i in range(1, days + 1)]


def make_reading(
    hrv: float | None = 50.0,
    resting_hr: float | None = 60.0,
    sleep_minutes: float | None = 450.0,
    respiratory_rate: float | None = None,
) -> DailyReading:
    return DailyReading(
        sleep_minutes=sleep_minutes,
        hrv=hrv,
        resting_hr=resting_hr,
        respiratory_rate=respiratory_rate,
    )


# ---------------------------------------------------------------------------
# Activity helpers
# ---------------------------------------------------------------------------


def make_activity(
    start: datetime,
    distance: float = 30000.0,
    moving_time: float = 3600.0,
    average_speed: float = 7.5,
    total_elevation_gain: float = 300.0,
    **kwargs,
) -> ActivityRecord:
    """Build an ActivityRecord (a one-hour 30 km ride by default)."""
    return ActivityRecord(
        distance=distance,
        moving_time=moving_time,
        average_speed=average_speed,
        total_elevation_gain=total_elevation_gain,
        start_date_local=start,
        **kwargs,
    )


def make_activities(
    count: int,
    end: datetime = datetime(2024, 3, 1, 8, 0),
    every_days: int = 1,
    **kwargs,
) -> list[ActivityRecord]:
    """*count* activities spaced *every_days* apart ending at *end*, newest first."""
    return [
        make_activity(end - timedelta(days=i * every_days), **kwargs)
        for i in range(count)
    ]


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def activity_dict(activity: ActivityRecord) -> dict:
    """Provider-style JSON object for an ActivityRecord."""
    return {
        "distance": activity.distance,
        "moving_time": activity.moving_time,
        "average_speed": activity.average_speed,
        "total_elevation_gain": activity.total_elevation_gain,
        "start_date_local": activity.start_date_local.isoformat(),
        "type": activity.type,
        "sport_type": activity.sport_type,
        "name": activity.name,
        "average_heartrate": activity.average_heartrate,
        "max_heartrate": activity.max_heartrate,
    }


@pytest.fixture
def store(tmp_path: Path) -> JsonlMetricStore:
    """Empty JSONL store with one bearer token registered."""
    return JsonlMetricStore(tmp_path / "metrics.jsonl", ingest_keys={"tok-123": "user-1"})


@pytest.fixture
def seeded_store(store: JsonlMetricStore) -> JsonlMetricStore:
    """Store holding 5 days of steady history before 2024-03-01."""
    for metric in make_history(5, end=date(2024, 3, 1), respiratory_rate=15.0):
        store.upsert(metric)
    return store
