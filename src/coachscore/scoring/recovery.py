"""Recovery score computation (baseline-relative).

Recovery compares today's HRV and resting heart rate against the user's own
trailing baseline, adds an absolute sleep target, and subtracts a flat
penalty when breathing rate is elevated (a common early sign of illness).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from coachscore.models import Baselines, DailyMetric, DailyReading
from coachscore.scoring.baseline import compute_baseline, compute_baselines
from coachscore.scoring.stats import clamp, round_half_up


@dataclass
class RecoveryResult:
    """Recovery score and its components."""

    score: int  # 0-100 composite recovery score
    hrv_score: float  # 0-100 HRV sub-score
    rhr_score: float  # 0-100 resting HR sub-score
    sleep_score: float  # 0-100 sleep sub-score
    baselines: Baselines
    cold_start: bool = False
    illness_flag: bool = False
    breakdown: dict = field(default_factory=dict)
    explanation: str = ""

    def __repr__(self) -> str:
        if self.cold_start:
            return f"RecoveryResult(score={self.score}, cold_start)"
        return (
            f"RecoveryResult(score={self.score}, "
            f"hrv={self.hrv_score:.0f}, "
            f"rhr={self.rhr_score:.0f}, "
            f"sleep={self.sleep_score:.0f}"
            f"{', illness' if self.illness_flag else ''})"
        )


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Weights for the composite recovery score
W_HRV = 0.50
W_RHR = 0.30
W_SLEEP = 0.20

COLD_START_SCORE = 50
MIN_VALID_DAYS = 3

# A 10% deviation in the wrong direction costs 20 points
DECAY_RATE = 200.0

SLEEP_TARGET_MIN = 450.0  # 7.5 h

ILLNESS_RESP_MARGIN = 2.0  # breaths/min above baseline
ILLNESS_PENALTY = 20.0

NEUTRAL_SUBSCORE = 50.0  # used when today's value for a metric is missing


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def _higher_is_better(current: float, baseline: float, decay: float) -> float:
    if current >= baseline:
        return 100.0
    if baseline <= 0:
        return 0.0
    drop = (baseline - current) / baseline
    return max(0.0, 100.0 - drop * decay)


def _lower_is_better(current: float, baseline: float, decay: float) -> float:
    if current <= baseline:
        return 100.0
    if baseline <= 0:
        return 0.0
    rise = (current - baseline) / baseline
    return max(0.0, 100.0 - rise * decay)


def _sleep_subscore(sleep_minutes: float | None, target: float) -> float:
    if sleep_minutes is None:
        return NEUTRAL_SUBSCORE
    if target <= 0:
        return 0.0
    return clamp(sleep_minutes / target * 100.0)


def _explain(
    hrv_s: float,
    rhr_s: float,
    sleep_s: float,
    illness: bool,
    score: int,
) -> str:
    parts = []
    parts.append("HRV at or above baseline" if hrv_s >= 100 else f"HRV below baseline ({hrv_s:.0f}/100)")
    parts.append("resting HR at or below baseline" if rhr_s >= 100 else f"resting HR elevated ({rhr_s:.0f}/100)")
    parts.append(f"sleep {sleep_s:.0f}% of target")
    if illness:
        parts.append("respiratory rate elevated, possible illness")
    return f"Recovery {score}: " + "; ".join(parts) + "."


# ---------------------------------------------------------------------------
# Composite scoring
# ---------------------------------------------------------------------------


def score_recovery(
    current: DailyReading,
    history: Sequence[DailyMetric],
    decay_rate: float = DECAY_RATE,
    sleep_target_min: float = SLEEP_TARGET_MIN,
    illness_margin: float = ILLNESS_RESP_MARGIN,
    illness_penalty: float = ILLNESS_PENALTY,
) -> RecoveryResult:
    """Compute today's recovery score against the trailing history.

    Args:
        current: Today's sleep, HRV, resting HR and optional breathing rate.
        history: Prior daily metrics (normally the 30 days before today).
        decay_rate: Points lost per unit of fractional deviation from baseline.
        sleep_target_min: Sleep that earns a full sleep sub-score.
        illness_margin: Breaths/min above baseline that trigger the penalty
            (the comparison is strict).
        illness_penalty: Flat points subtracted when the penalty triggers.

    Returns:
        RecoveryResult; ``score`` is exactly 50 with fewer than 3 complete
        history records.
    """
    valid = [
        d for d in history
        if d.hrv is not None and d.resting_hr is not None and d.sleep_minutes is not None
    ]

    baselines = compute_baselines(valid, min_samples=MIN_VALID_DAYS)
    # Breathing-rate baseline uses any record that has it, even incomplete ones
    baselines.respiratory_rate = compute_baseline(history, "respiratory_rate", min_samples=1)

    if baselines.cold_start:
        return RecoveryResult(
            score=COLD_START_SCORE,
            hrv_score=NEUTRAL_SUBSCORE,
            rhr_score=NEUTRAL_SUBSCORE,
            sleep_score=NEUTRAL_SUBSCORE,
            baselines=baselines,
            cold_start=True,
            breakdown={"valid_days": len(valid)},
            explanation=(
                f"Not enough history yet ({len(valid)} of {MIN_VALID_DAYS} days); "
                f"showing a neutral score."
            ),
        )

    # --- HRV ---
    if current.hrv is None:
        hrv_s = NEUTRAL_SUBSCORE
    else:
        hrv_s = _higher_is_better(current.hrv, baselines.hrv, decay_rate)

    # --- Resting HR ---
    if current.resting_hr is None:
        rhr_s = NEUTRAL_SUBSCORE
    else:
        rhr_s = _lower_is_better(current.resting_hr, baselines.resting_hr, decay_rate)

    # --- Sleep (absolute target, not personalised) ---
    sleep_s = _sleep_subscore(current.sleep_minutes, sleep_target_min)

    total = W_HRV * hrv_s + W_RHR * rhr_s + W_SLEEP * sleep_s

    # --- Illness penalty ---
    illness = (
        current.respiratory_rate is not None
        and baselines.respiratory_rate is not None
        and current.respiratory_rate > baselines.respiratory_rate + illness_margin
    )
    if illness:
        total -= illness_penalty

    score = round_half_up(clamp(total))

    return RecoveryResult(
        score=score,
        hrv_score=round(hrv_s, 1),
        rhr_score=round(rhr_s, 1),
        sleep_score=round(sleep_s, 1),
        baselines=baselines,
        illness_flag=illness,
        breakdown={
            "hrv_component": round(W_HRV * hrv_s, 1),
            "rhr_component": round(W_RHR * rhr_s, 1),
            "sleep_component": round(W_SLEEP * sleep_s, 1),
            "illness_penalty": -illness_penalty if illness else 0.0,
            "valid_days": len(valid),
        },
        explanation=_explain(hrv_s, rhr_s, sleep_s, illness, score),
    )


def recovery_score(current: DailyReading, history: Sequence[DailyMetric]) -> int:
    """Just the 0-100 integer from :func:`score_recovery`."""
    return score_recovery(current, history).score
