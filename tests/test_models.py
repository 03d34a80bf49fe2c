"""Tests for coachscore.models -- record parsing and result serialization."""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from coachscore.models import (
    ActivityRecord,
    Baselines,
    Component,
    CompositeScore,
    DailyMetric,
    DataQuality,
    DimensionScore,
    Trend,
)


class TestDailyMetric:
    def test_from_dict(self):
        m = DailyMetric.from_dict({
            "user_id": "u1",
            "date": "2024-03-01",
            "sleep_minutes": 420,
            "resting_hr": 55,
            "hrv": 62.5,
        })
        assert m.date == date(2024, 3, 1)
        assert m.resting_hr == 55.0
        assert m.respiratory_rate is None
        assert m.source == "manual"

    def test_round_trip_through_dict(self):
        m = DailyMetric("u1", date(2024, 3, 1), 420, None, 60.0, 14.5, 88, "ingest")
        d = m.to_dict()
        assert d["date"] == "2024-03-01"
        assert DailyMetric.from_dict(d) == m

    def test_frozen(self):
        m = DailyMetric("u1", date(2024, 3, 1))
        with pytest.raises(AttributeError):
            m.hrv = 10.0


class TestActivityRecord:
    def test_from_provider_dict(self):
        a = ActivityRecord.from_dict({
            "distance": 30500.2,
            "moving_time": 3720,
            "average_speed": 8.2,
            "total_elevation_gain": 410,
            "start_date_local": "2024-03-01T07:30:00Z",
            "type": "Ride",
            "sport_type": "VirtualRide",
            "name": "Zwift",
            "average_heartrate": 142.0,
        })
        assert a.start_date_local == datetime(2024, 3, 1, 7, 30)
        assert a.start_date_local.tzinfo is None
        assert a.day == date(2024, 3, 1)
        assert a.sport_type == "VirtualRide"
        assert a.max_heartrate is None

    def test_offset_dropped_keeping_wall_clock(self):
        plus_two = timezone(timedelta(hours=2))
        a = ActivityRecord(1.0, 1.0, 1.0, 0.0, datetime(2024, 3, 1, 7, 30, tzinfo=plus_two))
        assert a.start_date_local == datetime(2024, 3, 1, 7, 30)

    def test_missing_numbers_default_to_zero(self):
        a = ActivityRecord.from_dict({"start_date_local": "2024-03-01T07:30:00"})
        assert a.distance == 0.0
        assert a.type == "Ride"


class TestResults:
    def test_baselines_cold_start(self):
        assert Baselines().cold_start
        assert not Baselines(hrv=50.0, resting_hr=60.0).cold_start

    def test_dimension_to_dict(self):
        dim = DimensionScore(
            score=70,
            components=[Component("Weekly Hours", "7.0h/week", 25)],
            trend=Trend.IMPROVING,
            suggestion="Keep going",
        )
        d = dim.to_dict()
        assert d["trend"] == "improving"
        assert d["components"] == [{"name": "Weekly Hours", "value": "7.0h/week", "contribution": 25}]
        assert "score=70" in repr(dim)

    def test_composite_to_json(self):
        comp = CompositeScore(
            overall=64,
            dimensions={"power": DimensionScore(score=64)},
            data_quality=DataQuality.GOOD,
            generated_at=datetime(2024, 3, 1),
        )
        data = json.loads(comp.to_json())
        assert data["overall"] == 64
        assert data["data_quality"] == "good"
        assert data["generated_at"] == "2024-03-01T00:00:00"
        assert data["dimensions"]["power"]["trend"] == "stable"
        assert repr(comp) == "CompositeScore(training: overall=64, power=64)"
