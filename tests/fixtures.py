from datetime import datetime, timedelta

from urgeguard.clock import to_ms
from urgeguard.models import EventType
from urgeguard.schemas.risk import OnboardingProfile


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def ms_ago(self, **kwargs) -> int:
        return to_ms(self.now - timedelta(**kwargs))


LATENIGHT_HEAVY_USER = OnboardingProfile(
    screen_time="6+ hours",
    risk_windows=["latenight"],
    triggers=[],
    alone_pattern="rarely",
    day_pattern="nopattern",
)


async def add_daily_events(recorder, now: datetime, hour: int, per_day: int, days: int = 7,
                           event_type: EventType = EventType.SCREEN_ON, minute: int = 30):
    """per_day events at hour:minute on each of the previous `days` days."""
    for back in range(1, days + 1):
        day = (now - timedelta(days=back)).replace(hour=hour, minute=minute, second=0, microsecond=0)
        for i in range(per_day):
            await recorder.append_event(event_type, timestamp=to_ms(day) + i * 1000)
