from datetime import datetime, timedelta

from urgeguard.services.cache import CacheSlot
from tests.fixtures import FakeClock


def _slot():
    clock = FakeClock(datetime(2026, 10, 19, 14, 20))
    return CacheSlot(ttl=timedelta(minutes=5), clock=clock), clock


def test_hit_returns_stored_object():
    slot, _ = _slot()
    value = {"p": 0.4}
    slot.put("a", value)
    assert slot.get("a") is value


def test_key_mismatch_misses():
    slot, _ = _slot()
    slot.put("a", 1)
    assert slot.get("b") is None


def test_entry_expires_after_ttl():
    slot, clock = _slot()
    slot.put("a", 1)
    clock.advance(minutes=4, seconds=59)
    assert slot.get("a") == 1
    clock.advance(seconds=1)
    assert slot.get("a") is None


def test_single_slot_last_writer_wins():
    slot, _ = _slot()
    slot.put("a", 1)
    slot.put("b", 2)
    assert slot.get("a") is None
    assert slot.get("b") == 2
    assert slot.key == "b"


def test_invalidate_clears_slot():
    slot, _ = _slot()
    slot.put("a", 1)
    slot.invalidate()
    assert slot.get("a") is None
    assert slot.key is None
