import pytest
from datetime import timedelta

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from urgeguard.clock import to_ms
from urgeguard.models import URGE_EVENT_TYPES, EventType
from urgeguard.schemas.risk import OnboardingProfile
from urgeguard.services.live_risk import LiveRiskAggregator
from urgeguard.store import EventStore
from tests.fixtures import LATENIGHT_HEAVY_USER

pytestmark = pytest.mark.asyncio

LEGACY_PROFILE_DDL = """
CREATE TABLE user_profile (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    screen_time TEXT,
    risk_hours TEXT,
    triggers TEXT,
    alone_pattern TEXT,
    day_pattern TEXT,
    created_at INTEGER
)
"""


async def test_missing_profile_reads_none(store):
    read = await store.read_profile()
    assert read.profile is None
    assert read.layer == "current"


async def test_replace_profile_keeps_only_latest(store, recorder, db_engine):
    await recorder.replace_profile(LATENIGHT_HEAVY_USER)
    await recorder.replace_profile(OnboardingProfile(
        screen_time="2-4 hours",
        risk_windows=["morning"],
        triggers=["stress"],
        alone_pattern="always",
        urge_duration_minutes=35,
    ))

    async with db_engine.connect() as conn:
        count = (await conn.execute(text("SELECT COUNT(*) FROM user_profile"))).scalar_one()
    assert count == 1

    read = await store.read_profile()
    assert read.layer == "current"
    assert read.profile.risk_windows == ["morning"]
    assert read.profile.urge_duration_minutes == 35
    assert await store.urge_duration_minutes() == 35


async def test_legacy_schema_falls_back_to_reduced_columns(empty_engine):
    async with empty_engine.begin() as conn:
        await conn.execute(text(LEGACY_PROFILE_DDL))
        await conn.execute(text(
            "INSERT INTO user_profile (screen_time, risk_hours, triggers, alone_pattern, day_pattern, created_at) "
            "VALUES ('6+ hours', '[\"latenight\"]', '[\"socialmedia\"]', 'rarely', 'weekends', 1)"
        ))
    store = EventStore(async_sessionmaker(empty_engine, class_=AsyncSession, expire_on_commit=False))

    read = await store.read_profile()
    assert read.layer == "legacy"
    assert read.profile.risk_windows == ["latenight"]
    assert read.profile.triggers == ["socialmedia"]
    assert read.profile.urge_duration_minutes == 20


async def test_no_profile_table_reads_none(broken_store):
    read = await broken_store.read_profile()
    assert (read.profile, read.layer) == (None, None)
    assert await broken_store.urge_duration_minutes() == 20


async def test_corrupt_profile_row_reads_none(store, db_engine):
    async with db_engine.begin() as conn:
        await conn.execute(text(
            "INSERT INTO user_profile (screen_time, risk_hours, triggers, alone_pattern, day_pattern, created_at) "
            "VALUES ('6+ hours', 'not json', '[]', 'rarely', 'nopattern', 1)"
        ))
    assert await store.latest_profile() is None


@pytest.mark.parametrize("risk_hours,triggers", [
    ("null", "[]"),
    ("5", "[]"),
    ("[]", "{\"stress\": true}"),
])
async def test_non_list_profile_answers_read_none(store, db_engine, clock, risk_hours, triggers):
    async with db_engine.begin() as conn:
        await conn.execute(
            text(
                "INSERT INTO user_profile (screen_time, risk_hours, triggers, alone_pattern, day_pattern, created_at) "
                "VALUES ('6+ hours', :risk_hours, :triggers, 'rarely', 'nopattern', 1)"
            ),
            {"risk_hours": risk_hours, "triggers": triggers},
        )
    assert await store.latest_profile() is None

    live = await LiveRiskAggregator(store, clock=clock).live_risk()
    assert live.profile_risk == 20
    assert live.live_risk == 20


async def test_non_string_list_items_are_skipped(store, db_engine):
    async with db_engine.begin() as conn:
        await conn.execute(text(
            "INSERT INTO user_profile (screen_time, risk_hours, triggers, alone_pattern, day_pattern, created_at) "
            "VALUES ('6+ hours', '[1, \"latenight\", null]', '[1]', 'rarely', 'nopattern', 1)"
        ))
    profile = await store.latest_profile()
    assert profile.risk_windows == ["latenight"]
    assert profile.triggers == []


async def test_unknown_stored_answers_are_dropped(store, db_engine):
    async with db_engine.begin() as conn:
        await conn.execute(text(
            "INSERT INTO user_profile (screen_time, risk_hours, triggers, alone_pattern, day_pattern, created_at) "
            "VALUES ('4-6 hours', '[\"evening\", \"brunch\"]', '[\"gaming\", \"fatigue\"]', 'usually', 'weekdays', 1)"
        ))
    profile = await store.latest_profile()
    assert profile.risk_windows == ["evening"]
    assert profile.triggers == ["fatigue"]


async def test_count_events_by_type_and_window(store, recorder, clock):
    await recorder.append_event(EventType.URGE_LOGGED, timestamp=clock.ms_ago(minutes=5))
    await recorder.append_event(EventType.LAPSE_LOGGED, timestamp=clock.ms_ago(minutes=15))
    await recorder.append_event(EventType.SCREEN_ON, timestamp=clock.ms_ago(minutes=1))
    await recorder.append_event(EventType.URGE_LOGGED, timestamp=clock.ms_ago(hours=2))

    since = clock.ms_ago(minutes=30)
    assert await store.count_events(EventType.URGE_LOGGED, since) == 1
    assert await store.count_events(URGE_EVENT_TYPES, since) == 2
    assert await store.count_events("screen_on", since) == 1


async def test_count_in_range_excludes_start_includes_end(store, recorder, clock):
    start = clock.ms_ago(hours=1)
    end = clock.ms_ago(minutes=0)
    for ts in (start, start + 1, end, end + 1):
        await recorder.append_event(EventType.URGE_LOGGED, timestamp=ts)
    assert await store.count_events_in_range(EventType.URGE_LOGGED, start, end) == 2


async def test_hourly_pattern_and_daily_average(store, recorder, clock):
    now = clock()
    for days_back, hour in ((1, 9), (2, 9), (3, 9), (1, 21)):
        moment = (now - timedelta(days=days_back)).replace(hour=hour, minute=15)
        await recorder.append_event(EventType.SCREEN_ON, timestamp=to_ms(moment))

    since = clock.ms_ago(days=7)
    pattern = await store.hourly_pattern(EventType.SCREEN_ON, since)
    assert len(pattern) == 24
    assert pattern[9] == 3
    assert pattern[21] == 1
    assert sum(pattern) == 4
    assert await store.avg_daily_event_count_for_hour(EventType.SCREEN_ON, 9, since, 7) == pytest.approx(3 / 7)


async def test_last_event_time(store, recorder, clock):
    assert await store.last_event_time(EventType.URGE_LOGGED) is None
    await recorder.append_event(EventType.URGE_LOGGED, timestamp=clock.ms_ago(hours=3))
    await recorder.append_event(EventType.URGE_LOGGED, timestamp=clock.ms_ago(hours=1))
    assert await store.last_event_time(EventType.URGE_LOGGED) == clock.ms_ago(hours=1)


async def test_intervention_shown_and_completed(store, recorder, clock):
    await recorder.log_intervention_shown("breathing", 82, timestamp=clock.ms_ago(minutes=5))
    entry = await recorder.log_intervention_completed(helped=True, duration_seconds=64)
    assert entry.completed is True
    assert entry.helped is True
    assert entry.duration == 64
    assert await store.interventions_in_window(30, clock.ms_ago(minutes=0)) == 1
    assert await store.count_events(EventType.INTERVENTION_SHOWN, clock.ms_ago(hours=1)) == 1
    assert await store.count_events(EventType.INTERVENTION_COMPLETED, clock.ms_ago(hours=1)) == 1


async def test_completing_without_any_intervention_is_noop(recorder):
    assert await recorder.log_intervention_completed(helped=False, duration_seconds=10) is None


async def test_wipe_removes_everything(store, recorder, clock):
    await recorder.replace_profile(LATENIGHT_HEAVY_USER)
    await recorder.append_event(EventType.URGE_LOGGED)
    await recorder.record_risk_snapshot(50)
    await recorder.wipe_all()
    assert await store.latest_profile() is None
    assert await store.count_events(EventType.URGE_LOGGED, 0) == 0
    assert await store.risk_snapshots(clock.ms_ago(minutes=0)) == []
