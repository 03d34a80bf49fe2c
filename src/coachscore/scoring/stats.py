"""Small numeric helpers shared by every scorer.

This is the shared foundation for the scoring modules.  It provides:
  - Bounded arithmetic (clamp, half-up rounding to an integer score)
  - Mean / population standard deviation / coefficient of variation
  - Unit conversions used by the activity dimensions
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


# ---------------------------------------------------------------------------
# Unit conversions
# ---------------------------------------------------------------------------

MPS_TO_MPH = 2.237
METERS_TO_MILES = 0.000621371
METERS_TO_FEET = 3.28084
SECONDS_PER_DAY = 86400.0


def mph(speed_mps: float) -> float:
    return speed_mps * MPS_TO_MPH


def miles(meters: float) -> float:
    return meters * METERS_TO_MILES


# ---------------------------------------------------------------------------
# Bounds and rounding
# ---------------------------------------------------------------------------


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp *value* into ``[lo, hi]``. NaN collapses to *lo*."""
    if math.isnan(value):
        return lo
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def to_score(value: float) -> int:
    """Round and bound a raw point total to an integer 0-100 score."""
    return int(clamp(round_half_up(clamp(value, -1e9, 1e9))))


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float | None:
    """Arithmetic mean, or None for an empty sequence."""
    if len(values) == 0:
        return None
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """stdev / mean as a percentage. 0.0 when the mean is not positive."""
    m = mean(values)
    if m is None or m <= 0:
        return 0.0
    return pstdev(values) / m * 100.0
