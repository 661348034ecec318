"""
Read side of the local behavior database.

Every method here is a single suspension point against SQLite. Failures
(missing table, missing column, locked or unreachable file) surface as
one of STORE_ERRORS; the estimators decide on the fallback value. The one
exception is the onboarding profile read, which walks a declarative table
of column sets so that databases created before a column existed still
produce a profile.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import func, select

from urgeguard.config import settings
from urgeguard.models import CheckIn, Event, EventType, EveningRoutine, InterventionLog, RiskSnapshot, UrgeSession
from urgeguard.schemas.risk import RISK_WINDOWS, TRIGGERS, OnboardingProfile, normalize_token
from urgeguard.schemas.intervention import SessionStats

logger = logging.getLogger("urgeguard")

STORE_ERRORS = (SQLAlchemyError, OSError)

DEFAULT_URGE_DURATION = settings.default_urge_duration_minutes

# Tried in order; first layer whose query succeeds wins.
PROFILE_COLUMN_LAYERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (
        "current",
        (
            "screen_time", "risk_hours", "triggers", "alone_pattern", "day_pattern",
            "urge_duration", "emergency_contact_name", "emergency_contact_phone",
        ),
    ),
    (
        "legacy",
        ("screen_time", "risk_hours", "triggers", "alone_pattern", "day_pattern"),
    ),
)

EventTypes = Union[str, EventType, Iterable[Union[str, EventType]]]


def _type_values(event_types: EventTypes) -> List[str]:
    if isinstance(event_types, (str, EventType)):
        event_types = [event_types]
    return [t.value if isinstance(t, EventType) else t for t in event_types]


def local_hour(timestamp_ms: int) -> int:
    return datetime.fromtimestamp(timestamp_ms / 1000).hour


@dataclass(frozen=True)
class ProfileRead:
    """Outcome of the layered profile read."""

    profile: Optional[OnboardingProfile]
    layer: Optional[str]  # which column set answered; None if none did


def _json_names(raw: Optional[str]) -> List[str]:
    decoded = json.loads(raw or "[]")
    if not isinstance(decoded, list):
        raise ValueError(f"expected a JSON list, got {type(decoded).__name__}")
    return [item for item in decoded if isinstance(item, str)]


def _profile_from_row(row: dict) -> OnboardingProfile:
    windows = [w for w in _json_names(row["risk_hours"]) if normalize_token(w) in RISK_WINDOWS]
    triggers = [t for t in _json_names(row["triggers"]) if normalize_token(t) in TRIGGERS]
    return OnboardingProfile(
        screen_time=row["screen_time"],
        risk_windows=windows,
        triggers=triggers,
        alone_pattern=row["alone_pattern"],
        day_pattern=row["day_pattern"],
        urge_duration_minutes=int(row.get("urge_duration") or DEFAULT_URGE_DURATION),
        emergency_contact_name=row.get("emergency_contact_name"),
        emergency_contact_phone=row.get("emergency_contact_phone"),
    )


class EventStore:
    """
    Query contract consumed by the risk engine.
    Holds no state besides the session factory; never caches a profile.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    # ------------------------------------------
    # Profile
    # ------------------------------------------

    async def read_profile(self) -> ProfileRead:
        for layer, columns in PROFILE_COLUMN_LAYERS:
            statement = text(
                f"SELECT {', '.join(columns)} FROM user_profile "
                "ORDER BY created_at DESC LIMIT 1"
            )
            try:
                async with self._session_factory() as session:
                    row = (await session.execute(statement)).mappings().first()
            except STORE_ERRORS as e:
                logger.warning("profile_layer_failed", extra={"layer": layer, "error": str(e)})
                continue

            if row is None:
                return ProfileRead(profile=None, layer=layer)
            try:
                return ProfileRead(profile=_profile_from_row(dict(row)), layer=layer)
            except ValueError as e:
                # Unparseable or non-list JSON, or an answer outside the known buckets
                logger.warning("profile_row_invalid", extra={"layer": layer, "error": str(e)})
                return ProfileRead(profile=None, layer=layer)

        return ProfileRead(profile=None, layer=None)

    async def latest_profile(self) -> Optional[OnboardingProfile]:
        return (await self.read_profile()).profile

    async def urge_duration_minutes(self) -> int:
        profile = await self.latest_profile()
        return profile.urge_duration_minutes if profile else DEFAULT_URGE_DURATION

    # ------------------------------------------
    # Events
    # ------------------------------------------

    async def count_events(self, event_types: EventTypes, since_ms: int) -> int:
        statement = (
            select(func.count(Event.id))
            .where(Event.event_type.in_(_type_values(event_types)))
            .where(Event.timestamp > since_ms)
        )
        async with self._session_factory() as session:
            return (await session.execute(statement)).scalar_one() or 0

    async def count_events_in_range(self, event_types: EventTypes, from_ms: int, to_ms: int) -> int:
        statement = (
            select(func.count(Event.id))
            .where(Event.event_type.in_(_type_values(event_types)))
            .where(Event.timestamp > from_ms)
            .where(Event.timestamp <= to_ms)
        )
        async with self._session_factory() as session:
            return (await session.execute(statement)).scalar_one() or 0

    async def event_timestamps(self, event_types: EventTypes, since_ms: int) -> List[int]:
        statement = (
            select(Event.timestamp)
            .where(Event.event_type.in_(_type_values(event_types)))
            .where(Event.timestamp > since_ms)
            .order_by(Event.timestamp)
        )
        async with self._session_factory() as session:
            return list((await session.execute(statement)).scalars().all())

    async def hourly_pattern(self, event_types: EventTypes, since_ms: int) -> List[int]:
        """Event counts per local hour-of-day since the cutoff (24 entries)."""
        counts = [0] * 24
        for ts in await self.event_timestamps(event_types, since_ms):
            counts[local_hour(ts)] += 1
        return counts

    async def avg_daily_event_count_for_hour(
        self, event_types: EventTypes, hour: int, since_ms: int, days: int
    ) -> float:
        pattern = await self.hourly_pattern(event_types, since_ms)
        return pattern[hour % 24] / max(days, 1)

    async def last_event_time(self, event_types: EventTypes) -> Optional[int]:
        statement = select(func.max(Event.timestamp)).where(
            Event.event_type.in_(_type_values(event_types))
        )
        async with self._session_factory() as session:
            return (await session.execute(statement)).scalar_one()

    # ------------------------------------------
    # Check-ins and routine
    # ------------------------------------------

    async def recent_check_in(self) -> Optional[CheckIn]:
        statement = select(CheckIn).order_by(CheckIn.timestamp.desc()).limit(1)
        async with self._session_factory() as session:
            return (await session.execute(statement)).scalars().first()

    async def evening_routine_done(self, day: date) -> bool:
        statement = select(EveningRoutine.fully_completed).where(EveningRoutine.date == day.isoformat())
        async with self._session_factory() as session:
            done = (await session.execute(statement)).scalars().first()
        return bool(done)

    # ------------------------------------------
    # Interventions
    # ------------------------------------------

    async def interventions_in_window(self, minutes: int, now_ms: int) -> int:
        since = now_ms - minutes * 60 * 1000
        statement = select(func.count(InterventionLog.id)).where(InterventionLog.timestamp > since)
        async with self._session_factory() as session:
            return (await session.execute(statement)).scalar_one() or 0

    async def recent_sessions_by_type(self) -> List[SessionStats]:
        reduction = func.avg(UrgeSession.intensity_before - UrgeSession.intensity_after)
        statement = (
            select(UrgeSession.intervention_type, reduction, func.count(UrgeSession.id))
            .where(UrgeSession.intervention_type.is_not(None))
            .where(UrgeSession.intensity_before.is_not(None))
            .where(UrgeSession.intensity_after.is_not(None))
            .group_by(UrgeSession.intervention_type)
            .order_by(reduction.desc(), UrgeSession.intervention_type)
        )
        async with self._session_factory() as session:
            rows: Sequence = (await session.execute(statement)).all()
        return [SessionStats(type=t, mean_reduction=float(r), count=c) for t, r, c in rows]

    async def risk_snapshots(self, until_ms: int) -> List[RiskSnapshot]:
        statement = (
            select(RiskSnapshot)
            .where(RiskSnapshot.timestamp <= until_ms)
            .order_by(RiskSnapshot.timestamp)
        )
        async with self._session_factory() as session:
            return list((await session.execute(statement)).scalars().all())
