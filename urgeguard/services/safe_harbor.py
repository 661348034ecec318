"""
Safe-harbor forecast: the next hour whose risk drops under the
moderate threshold. None means no such hour inside the horizon, which
callers treat as "stay cautious", not as an error.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from urgeguard.config import Settings, settings as default_settings
from urgeguard.models import EventType
from urgeguard.schemas.risk import SafeHarbor
from urgeguard.clock import DAY_MS, Clock, system_clock, to_ms
from urgeguard.services.live_risk import frequency_to_risk
from urgeguard.services.risk_profile import build_hourly_profile, format_hour
from urgeguard.store.reader import STORE_ERRORS, EventStore

logger = logging.getLogger("urgeguard")


def scan_safe_harbor(
    risk_for_hour: Callable[[int], int],
    now: datetime,
    horizon: int,
    threshold: int = 40,
) -> Optional[SafeHarbor]:
    for offset in range(1, horizon + 1):
        check_hour = (now.hour + offset) % 24
        if risk_for_hour(check_hour) >= threshold:
            continue

        remainder = 60 - now.minute
        if remainder == 60:
            hours_until, minutes_until = offset, 0
        else:
            hours_until, minutes_until = offset - 1, remainder
        return SafeHarbor(
            safe_hour=check_hour,
            hours_until=hours_until,
            minutes_until=minutes_until,
            label=format_hour(check_hour),
        )
    return None


class SafeHarborScanner:
    def __init__(
        self,
        store: EventStore,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config or default_settings
        self.clock = clock

    async def from_profile(self, now: Optional[datetime] = None) -> Optional[SafeHarbor]:
        """Scans the baseline curve up to 24 hours ahead."""
        now = now or self.clock()
        try:
            profile = await self.store.latest_profile()
        except STORE_ERRORS as e:
            logger.warning("safe_harbor_profile_fallback", extra={"error": str(e)})
            return None

        hourly = build_hourly_profile(profile)
        return scan_safe_harbor(
            lambda hour: hourly[hour].base_risk,
            now,
            self.config.safe_harbor_profile_horizon_hours,
            self.config.safe_harbor_threshold,
        )

    async def from_frequency(self, now: Optional[datetime] = None) -> Optional[SafeHarbor]:
        """Scans the screen-on frequency curve up to 12 hours ahead."""
        now = now or self.clock()
        days = self.config.frequency_lookback_days
        try:
            pattern = await self.store.hourly_pattern(EventType.SCREEN_ON, to_ms(now) - days * DAY_MS)
        except STORE_ERRORS as e:
            logger.warning("safe_harbor_frequency_fallback", extra={"error": str(e)})
            return None

        return scan_safe_harbor(
            lambda hour: frequency_to_risk(pattern[hour] / days),
            now,
            self.config.safe_harbor_frequency_horizon_hours,
            self.config.safe_harbor_threshold,
        )
