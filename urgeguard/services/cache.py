"""
Single-slot TTL cache.

Holds at most one (key, value) pair. A lookup hits only when the stored
key is equal to the requested key and the entry has not expired; a put
always overwrites the slot (last writer wins).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, Optional, TypeVar

from urgeguard.clock import Clock, system_clock

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry(Generic[T]):
    key: str
    value: T
    expires_at: datetime


class CacheSlot(Generic[T]):
    def __init__(self, ttl: timedelta, clock: Clock = system_clock):
        self.ttl = ttl
        self._clock = clock
        self._entry: Optional[_Entry[T]] = None

    def get(self, key: str) -> Optional[T]:
        entry = self._entry
        if entry is None or entry.key != key:
            return None
        if self._clock() >= entry.expires_at:
            return None
        return entry.value

    def put(self, key: str, value: T) -> T:
        self._entry = _Entry(key=key, value=value, expires_at=self._clock() + self.ttl)
        return value

    def invalidate(self) -> None:
        self._entry = None

    @property
    def key(self) -> Optional[str]:
        return self._entry.key if self._entry else None
