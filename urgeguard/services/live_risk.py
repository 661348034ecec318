"""
Live risk aggregation.

Two estimators feed the number the UI treats as "current risk":
  - profile-hour: the baseline curve value for the current hour
  - frequency: the trailing week's average screen-on count for this
    hour-of-day, mapped through a fixed piecewise curve
The live score blends them. Urge/lapse logs add short-horizon spikes.

All reads are side-effect free, so overlapping refreshes converge.
Store failures fall back to the profile-hour estimate or a flat 20.
"""

import logging
from datetime import datetime
from typing import List, Optional

from urgeguard.config import Settings, settings as default_settings
from urgeguard.models import URGE_EVENT_TYPES, EventType
from urgeguard.schemas.risk import (
    HourlyRisk,
    LiveRisk,
    OnboardingProfile,
    PeakWindow,
    RiskAssessment,
    RiskLevel,
    RiskZone,
    TrendPoint,
)
from urgeguard.clock import DAY_MS, HOUR_MS, MINUTE_MS, Clock, system_clock, to_ms
from urgeguard.services.risk_profile import (
    HIGH_THRESHOLD,
    MODERATE_THRESHOLD,
    build_hourly_profile,
    classify_risk,
    find_peak_window,
    round_half_up,
)
from urgeguard.store.reader import STORE_ERRORS, EventStore

logger = logging.getLogger("urgeguard")

LATE_NIGHT_HOURS = (22, 23, 0, 1, 2, 3, 4)
FREQUENCY_CEILING = 90
TREND_BUCKET_MINUTES = 10
TREND_SPAN_HOURS = 3


def clamp_percentage(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def frequency_to_risk(avg_count: float) -> int:
    """Average daily screen-on count for one hour -> risk percentage."""
    n = avg_count
    if n <= 0:
        risk = 20.0
    elif n <= 2:
        risk = 20 + 5 * n
    elif n <= 5:
        risk = 30 + 6.67 * (n - 2)
    elif n <= 9:
        risk = 50 + 5 * (n - 5)
    else:
        risk = 70 + min(4 * (n - 9), 20)
    return max(0, min(FREQUENCY_CEILING, round_half_up(risk)))


def blend(frequency_risk: int, profile_risk: int, frequency_weight: float) -> int:
    return clamp_percentage(frequency_weight * frequency_risk + (1 - frequency_weight) * profile_risk)


def zone_for(percentage: int) -> RiskZone:
    if percentage >= HIGH_THRESHOLD:
        return RiskZone.STORM_WARNING
    if percentage >= MODERATE_THRESHOLD:
        return RiskZone.STORM_WATCH
    return RiskZone.CLEAR_SKIES


def _message(level: RiskLevel, urge_spike_active: bool) -> str:
    if level == RiskLevel.HIGH:
        return "Urge detected - Stay strong!" if urge_spike_active else "Danger hour - Stay alert"
    if level == RiskLevel.MODERATE:
        return "Moderate risk period"
    return "Low risk - keep it up!"


class LiveRiskAggregator:
    def __init__(
        self,
        store: EventStore,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config or default_settings
        self.clock = clock

    # ------------------------------------------
    # Baseline curve
    # ------------------------------------------

    async def _read_profile(self) -> Optional[OnboardingProfile]:
        try:
            return await self.store.latest_profile()
        except STORE_ERRORS as e:
            logger.warning("baseline_profile_fallback", extra={"error": str(e)})
            return None

    async def baseline_profile(self) -> List[HourlyRisk]:
        """Re-reads the latest onboarding snapshot on every call."""
        return build_hourly_profile(await self._read_profile())

    async def peak_window(self) -> PeakWindow:
        profile = await self._read_profile()
        return find_peak_window(build_hourly_profile(profile), profile.triggers if profile else ())

    async def profile_risk(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        hourly = await self.baseline_profile()
        return hourly[now.hour].base_risk

    # ------------------------------------------
    # Frequency estimator
    # ------------------------------------------

    async def frequency_risk_for_hour(self, hour: int, now: Optional[datetime] = None) -> int:
        """Raises STORE_ERRORS; callers pick the fallback."""
        now = now or self.clock()
        days = self.config.frequency_lookback_days
        avg = await self.store.avg_daily_event_count_for_hour(
            EventType.SCREEN_ON, hour, to_ms(now) - days * DAY_MS, days
        )
        return frequency_to_risk(avg)

    async def frequency_risk(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        try:
            return await self.frequency_risk_for_hour(now.hour, now)
        except STORE_ERRORS as e:
            logger.warning("frequency_risk_fallback", extra={"error": str(e)})
            return await self.profile_risk(now)

    async def live_risk(self, now: Optional[datetime] = None) -> LiveRisk:
        now = now or self.clock()
        profile_risk = await self.profile_risk(now)
        frequency_risk = await self.frequency_risk(now)
        live = blend(frequency_risk, profile_risk, self.config.live_frequency_weight)
        logger.debug(
            "live_risk_computed",
            extra={"live": live, "frequency": frequency_risk, "profile": profile_risk},
        )
        return LiveRisk(live_risk=live, frequency_risk=frequency_risk, profile_risk=profile_risk)

    # ------------------------------------------
    # Spikes
    # ------------------------------------------

    async def active_urge_spike(self, now: Optional[datetime] = None) -> int:
        """+15 per urge/lapse inside the user's urge duration, capped at +30."""
        now = now or self.clock()
        try:
            minutes = await self.store.urge_duration_minutes()
            count = await self.store.count_events(URGE_EVENT_TYPES, to_ms(now) - minutes * MINUTE_MS)
        except STORE_ERRORS as e:
            logger.warning("urge_spike_fallback", extra={"error": str(e)})
            return 0
        return min(count * self.config.active_spike_per_event, self.config.active_spike_cap)

    async def spiked_risk(self, baseline: int, now: Optional[datetime] = None) -> int:
        return clamp_percentage(baseline + await self.active_urge_spike(now))

    async def urge_spike_active(self, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        since = to_ms(now) - self.config.urge_spike_window_minutes * MINUTE_MS
        try:
            return await self.store.count_events(EventType.URGE_LOGGED, since) > 0
        except STORE_ERRORS as e:
            logger.warning("urge_window_fallback", extra={"error": str(e)})
            return False

    async def current_risk(self, now: Optional[datetime] = None) -> RiskAssessment:
        """
        Assessment shown right after a log action: the profile-hour baseline,
        bumped by a flat amount if an urge was logged in the last few minutes.
        """
        now = now or self.clock()
        profile = await self._read_profile()
        hourly = build_hourly_profile(profile)
        baseline = hourly[now.hour].base_risk

        spike = await self.urge_spike_active(now)
        percentage = baseline
        if spike:
            percentage = min(self.config.urge_spike_ceiling, baseline + self.config.urge_spike_bonus)
        percentage = clamp_percentage(percentage)

        peak = find_peak_window(hourly, profile.triggers if profile else ())

        level = classify_risk(percentage)
        return RiskAssessment(
            level=level,
            percentage=percentage,
            zone=zone_for(percentage),
            message=_message(level, spike),
            peak_hours=peak.hours,
            urge_spike_active=spike,
        )

    # ------------------------------------------
    # Trend
    # ------------------------------------------

    async def risk_trend(self, now: Optional[datetime] = None) -> List[TrendPoint]:
        """Screen activity in 10-minute buckets over the last 3 hours."""
        now = now or self.clock()
        end = to_ms(now)
        start = end - TREND_SPAN_HOURS * HOUR_MS
        bucket_ms = TREND_BUCKET_MINUTES * MINUTE_MS

        try:
            timestamps = await self.store.event_timestamps(EventType.SCREEN_ON, start)
        except STORE_ERRORS as e:
            logger.warning("risk_trend_fallback", extra={"error": str(e)})
            return []

        counts = {}
        for ts in timestamps:
            bucket = start + ((ts - start) // bucket_ms) * bucket_ms
            counts[bucket] = counts.get(bucket, 0) + 1

        points = []
        bucket = start
        while bucket <= end:
            hour = datetime.fromtimestamp(bucket / 1000).hour
            risk = counts.get(bucket, 0) * 10
            if hour in LATE_NIGHT_HOURS:
                risk += 20
            points.append(TrendPoint(time=bucket, risk=min(risk, 100)))
            bucket += bucket_ms
        return points
