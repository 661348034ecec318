from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class InterventionType(str, Enum):
    BREATHING = "breathing"
    URGE_SURFING = "urge_surfing"
    PATTERN_INTERRUPT = "pattern_interrupt"
    EMERGENCY_CONTACT = "emergency_contact"


class Intervention(BaseModel):
    id: str
    type: InterventionType
    title: str
    subtitle: str
    duration: int  # seconds


class SessionStats(BaseModel):
    """Completed urge sessions aggregated per intervention type."""

    type: str
    mean_reduction: float
    count: int


class Recommendation(BaseModel):
    recommended: str
    reasoning: str


class InterventionShown(BaseModel):
    type: InterventionType
    risk: int = Field(..., ge=0, le=100)


class InterventionCompleted(BaseModel):
    helped: bool
    duration_seconds: int = Field(..., ge=0)


class UrgeSessionCreate(BaseModel):
    """One finished urge session, rated 1-10 before and after."""

    intervention_type: InterventionType
    intensity_before: int = Field(..., ge=1, le=10)
    intensity_after: Optional[int] = Field(None, ge=1, le=10)
    start_timestamp: Optional[int] = None  # epoch ms; defaults to now
    what_helped: Optional[str] = None
