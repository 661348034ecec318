"""
Risk schemas: the onboarding snapshot the engine reads and the
curve, window and assessment values it hands back to the UI.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class RiskZone(str, Enum):
    CLEAR_SKIES = "CLEAR_SKIES"
    STORM_WATCH = "STORM_WATCH"
    STORM_WARNING = "STORM_WARNING"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScreenTimeBucket(str, Enum):
    UNDER_2 = "<2 hours"
    TWO_TO_4 = "2-4 hours"
    FOUR_TO_6 = "4-6 hours"
    OVER_6 = "6+ hours"


class AlonePattern(str, Enum):
    ALWAYS = "always"
    USUALLY = "usually"
    SOMETIMES = "sometimes"
    RARELY = "rarely"


class DayPattern(str, Enum):
    WEEKENDS = "weekends"
    WEEKDAYS = "weekdays"
    NONE = "nopattern"


RISK_WINDOWS = ("morning", "afternoon", "evening", "latenight", "verylate")
TRIGGERS = ("stress", "loneliness", "boredom", "fatigue", "socialmedia")


def normalize_token(value: str) -> str:
    # "social-media", "Social Media" and "socialmedia" are the same answer
    return "".join(ch for ch in value.lower() if ch.isalnum())


class OnboardingProfile(BaseModel):
    """One-time self-report. Replaced wholesale on re-onboarding."""

    screen_time: ScreenTimeBucket
    risk_windows: List[str] = Field(default_factory=list)
    triggers: List[str] = Field(default_factory=list)
    alone_pattern: AlonePattern = AlonePattern.SOMETIMES
    day_pattern: DayPattern = DayPattern.NONE
    urge_duration_minutes: int = Field(20, ge=1, le=240)
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None

    @field_validator("screen_time", mode="before")
    @classmethod
    def normalize_screen_time(cls, v):
        if isinstance(v, str):
            # en dash from form labels
            return v.replace("–", "-").replace("—", "-")
        return v

    @field_validator("risk_windows")
    @classmethod
    def validate_windows(cls, v: List[str]) -> List[str]:
        cleaned = [normalize_token(w) for w in v]
        unknown = [w for w in cleaned if w not in RISK_WINDOWS]
        if unknown:
            raise ValueError(f"unknown risk windows: {unknown}")
        return list(dict.fromkeys(cleaned))

    @field_validator("triggers")
    @classmethod
    def validate_triggers(cls, v: List[str]) -> List[str]:
        cleaned = [normalize_token(t) for t in v]
        unknown = [t for t in cleaned if t not in TRIGGERS]
        if unknown:
            raise ValueError(f"unknown triggers: {unknown}")
        return list(dict.fromkeys(cleaned))


class HourlyRisk(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    base_risk: int = Field(..., ge=5, le=95)
    risk_level: RiskLevel
    label: str


class PeakWindow(BaseModel):
    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=0, le=23)
    length: int = Field(..., ge=3, le=6)
    avg_risk: int
    triggers: List[str] = Field(default_factory=list)

    @property
    def hours(self) -> List[int]:
        return [(self.start_hour + i) % 24 for i in range(self.length)]


class SafeHarbor(BaseModel):
    safe_hour: int = Field(..., ge=0, le=23)
    hours_until: int
    minutes_until: int
    label: str

    @computed_field
    @property
    def time_remaining(self) -> str:
        return f"{self.hours_until}h {self.minutes_until}m"


class RiskAssessment(BaseModel):
    """Current-risk card shown right after a log action."""

    level: RiskLevel
    percentage: int = Field(..., ge=0, le=100)
    zone: RiskZone
    message: str
    peak_hours: List[int] = Field(default_factory=list)
    urge_spike_active: bool = False


class LiveRisk(BaseModel):
    live_risk: int = Field(..., ge=0, le=100)
    frequency_risk: int
    profile_risk: int


class TrendPoint(BaseModel):
    time: int  # bucket start, epoch ms
    risk: int = Field(..., ge=0, le=100)
