from datetime import datetime
from typing import Callable

# Naive local wall-clock time; hour-of-day arithmetic is local
Clock = Callable[[], datetime]

system_clock: Clock = datetime.now

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)
