"""
Table definitions for the local behavior database.
Events are append-only; the profile table holds a single latest row.
"""

import time
from enum import Enum
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


def now_ms() -> int:
    return int(time.time() * 1000)


class EventType(str, Enum):
    SCREEN_ON = "screen_on"
    SCREEN_OFF = "screen_off"
    URGE_LOGGED = "URGE_LOGGED"
    LAPSE_LOGGED = "LAPSE_LOGGED"
    SAFETY_CHECK_IN = "SAFETY_CHECK_IN"
    INTERVENTION_SHOWN = "INTERVENTION_SHOWN"
    INTERVENTION_COMPLETED = "INTERVENTION_COMPLETED"


URGE_EVENT_TYPES = (EventType.URGE_LOGGED, EventType.LAPSE_LOGGED)


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_type: str = Field(index=True)
    timestamp: int = Field(index=True)
    # "metadata" is reserved on declarative classes
    payload: Optional[str] = Field(default=None, sa_column=Column("metadata", Text))


class UserProfile(SQLModel, table=True):
    __tablename__ = "user_profile"

    id: Optional[int] = Field(default=None, primary_key=True)
    screen_time: str
    risk_hours: str = "[]"  # JSON list of day-segment names
    triggers: str = "[]"  # JSON list of trigger names
    alone_pattern: str
    day_pattern: str
    urge_duration: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    created_at: int = Field(default_factory=now_ms, sa_column_kwargs={"nullable": False})


class InterventionLog(SQLModel, table=True):
    __tablename__ = "interventions"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str
    timestamp: int = Field(index=True)
    risk_level: Optional[int] = None
    completed: bool = False
    helped: Optional[bool] = None
    duration: Optional[int] = None  # seconds
    completed_at: Optional[int] = None


class UrgeSession(SQLModel, table=True):
    __tablename__ = "urge_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    start_timestamp: int
    intensity_before: Optional[int] = None
    intensity_after: Optional[int] = None
    intervention_type: Optional[str] = None
    reduction: Optional[int] = None
    what_helped: Optional[str] = None
    created_at: int = Field(default_factory=now_ms, sa_column_kwargs={"nullable": False})


class CheckIn(SQLModel, table=True):
    __tablename__ = "check_ins"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: int = Field(index=True)
    stress_level: int = Field(ge=1, le=5)
    loneliness_level: int = Field(ge=1, le=5)


class EveningRoutine(SQLModel, table=True):
    __tablename__ = "evening_routine"

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(unique=True, index=True)  # ISO date
    fully_completed: bool = False


class RiskSnapshot(SQLModel, table=True):
    __tablename__ = "risk_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: int = Field(index=True)
    risk: int
