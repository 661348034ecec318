"""
UrgeGuard schemas package.
"""

from urgeguard.schemas.risk import (
    AlonePattern,
    Confidence,
    DayPattern,
    HourlyRisk,
    LiveRisk,
    OnboardingProfile,
    PeakWindow,
    RiskAssessment,
    RiskLevel,
    RiskZone,
    SafeHarbor,
    ScreenTimeBucket,
    TrendPoint,
)
from urgeguard.schemas.prediction import (
    CheckInCreate,
    EveningRoutineUpdate,
    PredictionFeatures,
    PredictionResult,
    RiskFactor,
)
from urgeguard.schemas.intervention import (
    Intervention,
    InterventionCompleted,
    InterventionShown,
    InterventionType,
    Recommendation,
    SessionStats,
    UrgeSessionCreate,
)

__all__ = [
    "AlonePattern",
    "Confidence",
    "DayPattern",
    "HourlyRisk",
    "LiveRisk",
    "OnboardingProfile",
    "PeakWindow",
    "RiskAssessment",
    "RiskLevel",
    "RiskZone",
    "SafeHarbor",
    "ScreenTimeBucket",
    "TrendPoint",
    "CheckInCreate",
    "EveningRoutineUpdate",
    "PredictionFeatures",
    "PredictionResult",
    "RiskFactor",
    "Intervention",
    "InterventionCompleted",
    "InterventionShown",
    "InterventionType",
    "Recommendation",
    "SessionStats",
    "UrgeSessionCreate",
]
