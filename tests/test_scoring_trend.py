"""Tests for coachscore.scoring.trend -- split-half trend classification."""

import pytest

from coachscore.models import Trend
from coachscore.scoring.trend import classify_trend, percent_change


class TestPercentChange:
    def test_increase(self):
        assert percent_change([110.0], [100.0]) == pytest.approx(10.0)

    def test_decrease(self):
        assert percent_change([90.0, 90.0], [100.0, 100.0]) == pytest.approx(-10.0)

    def test_zero_older_mean(self):
        assert percent_change([5.0], [0.0]) is None

    def test_empty_half(self):
        assert percent_change([], [1.0]) is None


class TestClassifyTrend:
    def test_too_few_points_is_stable(self):
        # Huge change, but only 5 points
        assert classify_trend([100.0, 100.0, 1.0, 1.0, 1.0]) == Trend.STABLE

    def test_improving(self):
        # Most recent first: recent half is higher
        assert classify_trend([12.0, 12.0, 12.0, 10.0, 10.0, 10.0]) == Trend.IMPROVING

    def test_declining(self):
        assert classify_trend([8.0, 8.0, 8.0, 10.0, 10.0, 10.0]) == Trend.DECLINING

    def test_within_threshold_is_stable(self):
        assert classify_trend([10.4, 10.4, 10.4, 10.0, 10.0, 10.0]) == Trend.STABLE

    def test_threshold_is_exclusive(self):
        assert classify_trend([10.5, 10.5, 10.5, 10.0, 10.0, 10.0]) == Trend.STABLE

    def test_odd_length_puts_extra_point_in_older_half(self):
        # 7 points: recent = first 3, older = last 4
        series = [20.0, 20.0, 20.0, 10.0, 10.0, 10.0, 10.0]
        assert classify_trend(series) == Trend.IMPROVING

    def test_selector(self):
        points = [{"v": v} for v in [5.0, 5.0, 5.0, 10.0, 10.0, 10.0]]
        assert classify_trend(points, lambda p: p["v"]) == Trend.DECLINING

    def test_zero_baseline_is_stable(self):
        assert classify_trend([1.0, 1.0, 1.0, 0.0, 0.0, 0.0]) == Trend.STABLE

    def test_custom_min_points(self):
        assert classify_trend([2.0, 1.0], min_points=2) == Trend.IMPROVING
