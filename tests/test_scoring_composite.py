"""Tests for coachscore.scoring.composite -- weighted composite assembly."""

from datetime import date, datetime, timedelta

import pytest

from coachscore.models import ActivityRecord, DataQuality, DimensionScore
from coachscore.scoring.composite import (
    HEALTH_WEIGHTS,
    TRAINING_WEIGHTS,
    assess_data_quality,
    combine,
    score_health_balance,
    score_training,
)
from coachscore.scoring.dimensions import NEED_MORE_DATA

from tests.conftest import make_activities, make_activity


END = datetime(2024, 3, 1, 8, 0)


class TestWeights:
    @pytest.mark.parametrize("weights", [TRAINING_WEIGHTS, HEALTH_WEIGHTS])
    def test_sum_to_one(self, weights):
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_training_dimensions(self):
        assert set(TRAINING_WEIGHTS) == {"power", "endurance", "consistency", "speed", "training_load"}


class TestCombine:
    def test_weighted_sum(self):
        scores = {"a": DimensionScore(score=100), "b": DimensionScore(score=50)}
        assert combine(scores, {"a": 0.5, "b": 0.5}) == 75

    def test_rounds_half_up(self):
        scores = {"a": DimensionScore(score=51), "b": DimensionScore(score=50)}
        assert combine(scores, {"a": 0.5, "b": 0.5}) == 51

    def test_bad_weight_sum(self):
        scores = {"a": DimensionScore(score=100), "b": DimensionScore(score=50)}
        with pytest.raises(ValueError, match="sum to 1.0"):
            combine(scores, {"a": 0.5, "b": 0.6})

    def test_mismatched_dimensions(self):
        with pytest.raises(ValueError):
            combine({"a": DimensionScore(score=1)}, {"b": 1.0})


class TestDataQuality:
    def test_empty(self):
        assert assess_data_quality([]) == DataQuality.LIMITED

    def test_short_history(self):
        assert assess_data_quality(make_activities(7, end=END)) == DataQuality.LIMITED

    def test_good_without_heart_rate(self):
        assert assess_data_quality(make_activities(50, end=END)) == DataQuality.GOOD

    def test_excellent_with_heart_rate(self):
        acts = make_activities(50, end=END, average_heartrate=140.0)
        assert assess_data_quality(acts) == DataQuality.EXCELLENT


class TestScoreTraining:
    def test_too_few_activities(self):
        result = score_training(make_activities(2, end=END))
        assert result.overall == 0
        assert all(d.score == 0 for d in result.dimensions.values())
        assert all(d.suggestion == NEED_MORE_DATA for d in result.dimensions.values())

    def test_empty(self):
        result = score_training([])
        assert result.overall == 0
        assert result.generated_at is None
        assert result.data_quality == DataQuality.LIMITED

    def test_week_of_daily_rides(self):
        result = score_training(make_activities(7, end=END))
        dims = {k: v.score for k, v in result.dimensions.items()}
        assert dims == {"power": 29, "endurance": 47, "consistency": 80, "speed": 65, "training_load": 70}
        # 0.2*29 + 0.25*47 + 0.2*80 + 0.15*65 + 0.2*70 = 57.3
        assert result.overall == 57
        assert result.mode == "training"
        assert result.generated_at == END

    def test_as_of_window(self):
        old = make_activities(20, end=END - timedelta(days=60))
        recent = make_activities(10, end=END)
        result = score_training(old + recent, as_of=date(2024, 3, 1))
        assert result.generated_at == datetime(2024, 3, 1)
        assert result.dimensions["endurance"].score == score_training(recent).dimensions["endurance"].score

    def test_outdoor_only(self):
        outdoor = make_activities(2, end=END, name="Morning Ride")
        virtual = make_activities(5, end=END - timedelta(days=3), sport_type="VirtualRide")
        assert score_training(outdoor + virtual).overall > 0
        assert score_training(outdoor + virtual, outdoor_only=True).overall == 0

    def test_custom_classifier(self):
        acts = make_activities(7, end=END)
        result = score_training(acts, outdoor_only=True, is_virtual=lambda a: False)
        assert result.overall == score_training(acts).overall

    def test_recomputation_is_identical(self):
        acts = make_activities(25, end=END, every_days=2, average_heartrate=145.0)
        assert score_training(acts).to_json() == score_training(acts).to_json()

    def test_mixed_utc_and_naive_timestamps(self):
        utc = ActivityRecord.from_dict({
            "distance": 30000, "moving_time": 3600, "average_speed": 7.5,
            "total_elevation_gain": 300, "start_date_local": "2024-03-02T08:00:00Z",
        })
        result = score_training([utc] + make_activities(4, end=END))
        assert 0 <= result.overall <= 100
        assert result.generated_at == datetime(2024, 3, 2, 8, 0)
        health = score_health_balance([utc] + make_activities(4, end=END))
        assert 0 <= health.overall <= 100

    def test_bounds(self):
        acts = [make_activity(END - timedelta(days=i), average_speed=30.0, distance=5e5) for i in range(10)]
        result = score_training(acts)
        assert 0 <= result.overall <= 100


class TestScoreHealthBalance:
    def test_empty(self):
        result = score_health_balance([])
        assert result.overall == 0
        assert result.mode == "health"
        assert set(result.dimensions) == set(HEALTH_WEIGHTS)

    def test_steady_daily_training(self):
        result = score_health_balance(make_activities(56, end=END), as_of=date(2024, 3, 1))
        dims = {k: v.score for k, v in result.dimensions.items()}
        assert dims == {"load": 85, "consistency": 100, "endurance": 80, "intensity": 50, "efficiency": 50}
        assert result.overall == 73
        assert result.data_quality == DataQuality.GOOD
        assert result.generated_at == datetime(2024, 3, 1)

    def test_defaults_to_newest_activity(self):
        acts = make_activities(56, end=END)
        assert score_health_balance(acts).generated_at == END

    def test_deterministic_for_fixed_as_of(self):
        acts = make_activities(40, end=END, average_heartrate=150.0)
        a = score_health_balance(acts, as_of=date(2024, 3, 1))
        b = score_health_balance(list(reversed(acts)), as_of=date(2024, 3, 1))
        assert a.to_dict() == b.to_dict()
