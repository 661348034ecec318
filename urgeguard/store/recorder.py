"""
Write side of the local behavior database, used by the logging layer.
The engine itself never writes.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import delete
from sqlmodel import select

from urgeguard.db import get_db_session
from urgeguard.models import (
    CheckIn,
    Event,
    EventType,
    EveningRoutine,
    InterventionLog,
    RiskSnapshot,
    UrgeSession,
    UserProfile,
)
from urgeguard.schemas.risk import OnboardingProfile
from urgeguard.clock import Clock, system_clock, to_ms

logger = logging.getLogger("urgeguard")


class EventRecorder:
    """Append-only writes plus the destructive profile replacement."""

    def __init__(self, session_factory, clock: Clock = system_clock):
        self._session_factory = session_factory
        self._clock = clock

    def _now_ms(self) -> int:
        return to_ms(self._clock())

    def today(self) -> date:
        return self._clock().date()

    async def append_event(
        self,
        event_type: EventType,
        timestamp: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Event:
        event = Event(
            event_type=EventType(event_type).value,
            timestamp=timestamp if timestamp is not None else self._now_ms(),
            payload=json.dumps(metadata) if metadata is not None else None,
        )
        async with get_db_session(self._session_factory) as session:
            session.add(event)
        return event

    async def replace_profile(self, profile: OnboardingProfile, created_at: Optional[int] = None) -> UserProfile:
        """
        Latest-wins: drop every prior snapshot, then store this one.
        Earlier answers are not recoverable afterwards.
        """
        row = UserProfile(
            screen_time=profile.screen_time.value,
            risk_hours=json.dumps(profile.risk_windows),
            triggers=json.dumps(profile.triggers),
            alone_pattern=profile.alone_pattern.value,
            day_pattern=profile.day_pattern.value,
            urge_duration=str(profile.urge_duration_minutes),
            emergency_contact_name=profile.emergency_contact_name,
            emergency_contact_phone=profile.emergency_contact_phone,
            created_at=created_at if created_at is not None else self._now_ms(),
        )
        async with get_db_session(self._session_factory) as session:
            await session.execute(delete(UserProfile))
            session.add(row)
        logger.info("profile_replaced", extra={"risk_windows": profile.risk_windows})
        return row

    async def log_intervention_shown(self, intervention_type: str, risk: int, timestamp: Optional[int] = None) -> InterventionLog:
        ts = timestamp if timestamp is not None else self._now_ms()
        entry = InterventionLog(type=intervention_type, timestamp=ts, risk_level=risk)
        async with get_db_session(self._session_factory) as session:
            session.add(entry)
            session.add(Event(
                event_type=EventType.INTERVENTION_SHOWN.value,
                timestamp=ts,
                payload=json.dumps({"type": intervention_type, "risk": risk}),
            ))
        return entry

    async def log_intervention_completed(
        self, helped: bool, duration_seconds: int, completed_at: Optional[int] = None
    ) -> Optional[InterventionLog]:
        """Marks the most recently shown intervention as completed."""
        ts = completed_at if completed_at is not None else self._now_ms()
        async with get_db_session(self._session_factory) as session:
            result = await session.execute(
                select(InterventionLog).order_by(InterventionLog.timestamp.desc()).limit(1)
            )
            entry = result.scalars().first()
            if entry is None:
                return None
            entry.completed = True
            entry.helped = helped
            entry.duration = duration_seconds
            entry.completed_at = ts
            session.add(Event(
                event_type=EventType.INTERVENTION_COMPLETED.value,
                timestamp=ts,
                payload=json.dumps({"type": entry.type, "helped": helped}),
            ))
        return entry

    async def log_urge_session(
        self,
        start_timestamp: Optional[int],
        intensity_before: int,
        intensity_after: Optional[int],
        intervention_type: str,
        what_helped: Optional[str] = None,
    ) -> UrgeSession:
        reduction = intensity_before - intensity_after if intensity_after is not None else None
        entry = UrgeSession(
            start_timestamp=start_timestamp if start_timestamp is not None else self._now_ms(),
            intensity_before=intensity_before,
            intensity_after=intensity_after,
            intervention_type=intervention_type,
            reduction=reduction,
            what_helped=what_helped,
        )
        async with get_db_session(self._session_factory) as session:
            session.add(entry)
        return entry

    async def log_check_in(self, stress_level: int, loneliness_level: int, timestamp: Optional[int] = None) -> CheckIn:
        entry = CheckIn(
            timestamp=timestamp if timestamp is not None else self._now_ms(),
            stress_level=stress_level,
            loneliness_level=loneliness_level,
        )
        async with get_db_session(self._session_factory) as session:
            session.add(entry)
        return entry

    async def complete_evening_routine(self, day: date, fully_completed: bool = True) -> None:
        async with get_db_session(self._session_factory) as session:
            result = await session.execute(select(EveningRoutine).where(EveningRoutine.date == day.isoformat()))
            entry = result.scalars().first() or EveningRoutine(date=day.isoformat())
            entry.fully_completed = fully_completed
            session.add(entry)

    async def record_risk_snapshot(self, risk: int, timestamp: Optional[int] = None) -> RiskSnapshot:
        entry = RiskSnapshot(timestamp=timestamp if timestamp is not None else self._now_ms(), risk=risk)
        async with get_db_session(self._session_factory) as session:
            session.add(entry)
        return entry

    async def wipe_all(self) -> None:
        """Full data wipe; the only path that removes events."""
        async with get_db_session(self._session_factory) as session:
            for table in (Event, UserProfile, InterventionLog, UrgeSession, CheckIn, EveningRoutine, RiskSnapshot):
                await session.execute(delete(table))
        logger.info("data_wiped")
