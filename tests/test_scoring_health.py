"""Tests for coachscore.scoring.health -- health balance axes."""

from datetime import date, datetime, timedelta

import pytest

from coachscore.models import Trend
from coachscore.scoring.health import (
    HEALTH_AXES,
    acute_chronic_ratio,
    efficiency_factor,
    score_efficiency,
    score_habit,
    score_health_axes,
    score_intensity,
    score_load,
    score_long_ride,
    weekly_active_days,
    zone_split,
)

from tests.conftest import make_activities, make_activity


AS_OF = date(2024, 3, 1)
END = datetime(2024, 3, 1, 8, 0)


def daily(days: int = 56, **kwargs):
    return make_activities(days, end=END, **kwargs)


class TestLoad:
    def test_steady_training_ratio_is_one(self):
        acute, chronic, ratio = acute_chronic_ratio(daily(), AS_OF)
        assert acute == pytest.approx(420.0)
        assert chronic == pytest.approx(420.0)
        assert ratio == pytest.approx(1.0)

    def test_steady_training_is_maintenance(self):
        result = score_load(daily(), AS_OF)
        assert result.score == 85
        assert result.trend == Trend.STABLE

    def test_no_history_at_all(self):
        _, _, ratio = acute_chronic_ratio([], AS_OF)
        assert ratio == 1.0

    def test_build_week(self):
        # Six weeks of 1h rides, then this week at 1h20
        base = [make_activity(END - timedelta(days=i)) for i in range(7, 42)]
        week = [make_activity(END - timedelta(days=i), moving_time=4800.0) for i in range(7)]
        result = score_load(base + week, AS_OF)
        assert result.score == 100
        assert result.trend == Trend.IMPROVING

    def test_too_much_too_soon(self):
        week = [make_activity(END - timedelta(days=i), moving_time=3 * 3600.0) for i in range(7)]
        result = score_load(week, AS_OF)
        assert result.score == 50

    def test_detraining(self):
        base = [make_activity(END - timedelta(days=i)) for i in range(7, 42)]
        result = score_load(base, AS_OF)
        assert result.score == 60
        assert result.trend == Trend.DECLINING


class TestHabit:
    def test_weekly_blocks(self):
        assert weekly_active_days(daily(), AS_OF) == [7] * 8

    def test_machine_like(self):
        assert score_habit(daily(), AS_OF).score == 100

    def test_erratic(self):
        # Alternate full weeks with empty weeks
        acts = [
            a for a in daily()
            if ((END - a.start_date_local).days // 7) % 2 == 0
        ]
        result = score_habit(acts, AS_OF)
        assert result.score == 50


class TestLongRide:
    def test_comfort_zone(self):
        result = score_long_ride(daily(35), AS_OF)
        assert result.score == 80
        assert "66 mins" in result.suggestion

    def test_pushing_boundaries(self):
        acts = daily(35) + [make_activity(END - timedelta(hours=1), moving_time=2 * 3600.0)]
        assert score_long_ride(acts, AS_OF).score == 100

    def test_regression(self):
        base = [make_activity(END - timedelta(days=i)) for i in range(7, 35)]
        week = [make_activity(END - timedelta(days=i), moving_time=1800.0) for i in range(7)]
        result = score_long_ride(base + week, AS_OF)
        assert result.score == 50
        assert result.trend == Trend.DECLINING


class TestIntensity:
    def test_no_heart_rate(self):
        total, z4, z3 = zone_split(daily(7))
        assert total == pytest.approx(7 * 3600.0)
        assert z4 == 0.0 and z3 == 0.0
        assert score_intensity(daily(7), AS_OF).score == 50

    def test_hard_sessions_polarized(self):
        acts = daily(7, average_heartrate=165.0)
        assert score_intensity(acts, AS_OF).score == 100

    def test_tempo_heavy_is_penalized(self):
        acts = daily(7, average_heartrate=145.0)
        result = score_intensity(acts, AS_OF)
        assert result.score == 60
        assert "Junk mile" in result.suggestion

    def test_intervals_from_max_hr(self):
        acts = daily(7, average_heartrate=120.0, max_heartrate=175.0)
        _, z4, z3 = zone_split(acts)
        assert z4 == pytest.approx(15.0)
        assert z3 == pytest.approx(25.0)
        assert score_intensity(acts, AS_OF).score == 75


class TestEfficiency:
    def test_factor_prefers_power(self):
        a = make_activity(END, average_heartrate=140.0, weighted_average_watts=210.0)
        assert efficiency_factor(a) == pytest.approx(1.5)

    def test_factor_falls_back_to_speed(self):
        a = make_activity(END, average_heartrate=150.0, average_speed=7.5)
        assert efficiency_factor(a) == pytest.approx(5.0)

    def test_factor_needs_heart_rate(self):
        assert efficiency_factor(make_activity(END)) is None
        assert efficiency_factor(make_activity(END, average_heartrate=40.0)) is None

    def test_no_data(self):
        result = score_efficiency(daily(), AS_OF)
        assert result.score == 50
        assert result.suggestion.startswith("No HR/power data")

    def test_gains(self):
        base = [make_activity(END - timedelta(days=i), average_heartrate=150.0) for i in range(7, 35)]
        week = [make_activity(END - timedelta(days=i), average_heartrate=140.0) for i in range(7)]
        result = score_efficiency(base + week, AS_OF)
        assert result.score == 100
        assert result.trend == Trend.IMPROVING

    def test_loss(self):
        base = [make_activity(END - timedelta(days=i), average_heartrate=140.0) for i in range(7, 35)]
        week = [make_activity(END - timedelta(days=i), average_heartrate=150.0) for i in range(7)]
        assert score_efficiency(base + week, AS_OF).score == 50


class TestHealthAxes:
    def test_all_axes_present(self):
        axes = score_health_axes(daily(), AS_OF)
        assert set(axes) == set(HEALTH_AXES)
        for axis in axes.values():
            assert 0 <= axis.score <= 100

    def test_sparse_history_forces_stable(self):
        acts = [make_activity(END - timedelta(days=i), moving_time=3 * 3600.0) for i in range(3)]
        axes = score_health_axes(acts, AS_OF)
        assert all(axis.trend == Trend.STABLE for axis in axes.values())

    def test_ignores_activities_after_as_of(self):
        later = [make_activity(END + timedelta(days=3), moving_time=5 * 3600.0)]
        assert (
            {k: v.to_dict() for k, v in score_health_axes(daily(), AS_OF).items()}
            == {k: v.to_dict() for k, v in score_health_axes(daily() + later, AS_OF).items()}
        )
