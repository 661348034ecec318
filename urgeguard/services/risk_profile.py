"""
Baseline risk curve and peak-window search.

The 24-hour curve is a pure function of the onboarding answers: a flat
floor, plus self-reported danger windows, plus screen-time exposure,
trigger-specific hour bonuses and an isolation bonus, clamped to [5, 95].
"""

import math
from typing import Dict, List, Optional, Sequence

from urgeguard.schemas.risk import (
    AlonePattern,
    HourlyRisk,
    OnboardingProfile,
    PeakWindow,
    RiskLevel,
    ScreenTimeBucket,
)

BASE_FLOOR = 15
DEFAULT_FLAT_RISK = 20
RISK_WINDOW_BONUS = 35
MIN_RISK = 5
MAX_RISK = 95

HIGH_THRESHOLD = 70
MODERATE_THRESHOLD = 40

WINDOW_HOURS: Dict[str, Sequence[int]] = {
    "morning": range(6, 12),
    "afternoon": range(12, 18),
    "evening": range(18, 22),
    "latenight": (22, 23, 24, 25),  # wraps to 0, 1
    "verylate": range(2, 6),
}

SCREEN_TIME_BONUS: Dict[ScreenTimeBucket, int] = {
    ScreenTimeBucket.OVER_6: 10,
    ScreenTimeBucket.FOUR_TO_6: 5,
}

# trigger -> (hours, bonus)
TRIGGER_HOURS: Dict[str, tuple] = {
    "loneliness": ((20, 21, 22, 23, 0, 1, 2), 15),
    "fatigue": ((22, 23, 0, 1, 2, 3), 15),
    "boredom": ((12, 13, 14, 15, 20, 21, 22), 10),
    "socialmedia": ((19, 20, 21, 22, 23, 0), 12),
}

ALONE_BONUS = 8
ALONE_PATTERNS = (AlonePattern.ALWAYS, AlonePattern.USUALLY)

PEAK_MIN_LENGTH = 3
PEAK_MAX_LENGTH = 6


def classify_risk(risk: float) -> RiskLevel:
    if risk >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if risk >= MODERATE_THRESHOLD:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def format_hour(hour: int) -> str:
    """13 -> '1 PM'."""
    hour %= 24
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def _entry(hour: int, risk: int) -> HourlyRisk:
    return HourlyRisk(hour=hour, base_risk=risk, risk_level=classify_risk(risk), label=format_hour(hour))


def build_hourly_profile(profile: Optional[OnboardingProfile]) -> List[HourlyRisk]:
    """Onboarding snapshot -> 24 HourlyRisk entries ordered by hour."""
    if profile is None:
        return [_entry(hour, DEFAULT_FLAT_RISK) for hour in range(24)]

    risk = [BASE_FLOOR] * 24

    for window in profile.risk_windows:
        for hour in WINDOW_HOURS.get(window, ()):
            risk[hour % 24] += RISK_WINDOW_BONUS

    screen_bonus = SCREEN_TIME_BONUS.get(profile.screen_time, 0)

    for trigger in profile.triggers:
        hours, bonus = TRIGGER_HOURS.get(trigger, ((), 0))
        for hour in hours:
            risk[hour] += bonus

    alone_bonus = ALONE_BONUS if profile.alone_pattern in ALONE_PATTERNS else 0

    return [
        _entry(hour, max(MIN_RISK, min(MAX_RISK, value + screen_bonus + alone_bonus)))
        for hour, value in enumerate(risk)
    ]


def find_peak_window(hourly: Sequence[HourlyRisk], triggers: Sequence[str] = ()) -> PeakWindow:
    """
    Exhaustive scan over every start hour and every length 3..6 with
    wraparound. Strictly-greater comparison keeps the first maximum in
    (start, length) scan order.
    """
    risks = [h.base_risk for h in sorted(hourly, key=lambda h: h.hour)]

    best_avg = float("-inf")
    best_start, best_length = 0, PEAK_MIN_LENGTH
    for start in range(24):
        for length in range(PEAK_MIN_LENGTH, PEAK_MAX_LENGTH + 1):
            avg = sum(risks[(start + i) % 24] for i in range(length)) / length
            if avg > best_avg:
                best_avg, best_start, best_length = avg, start, length

    return PeakWindow(
        start_hour=best_start,
        end_hour=(best_start + best_length - 1) % 24,
        length=best_length,
        avg_risk=round_half_up(best_avg),
        triggers=list(triggers),
    )


def round_half_up(value: float) -> int:
    # Math.round semantics; Python's round() is banker's rounding
    return math.floor(value + 0.5)
