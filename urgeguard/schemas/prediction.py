from typing import List, Literal

from pydantic import BaseModel, Field

from urgeguard.schemas.risk import Confidence, RiskLevel

Severity = Literal["high", "medium", "low", "protective"]


class PredictionFeatures(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Sunday
    screen_unlocks_last_hour: int = 0
    evening_routine_done: bool = False
    is_late_night: bool = False
    is_recent_urge: bool = False
    stress_level: int = 0  # 0 = no check-in
    loneliness_level: int = 0
    # Context for confidence; not a model input and not part of the cache key
    hours_since_last_urge: float = 24.0

    def model_inputs(self) -> dict:
        return self.model_dump(exclude={"hours_since_last_urge"})


class RiskFactor(BaseModel):
    label: str
    impact: int = Field(..., ge=0, le=100)
    severity: Severity


class PredictionResult(BaseModel):
    probability: float = Field(..., gt=0, lt=1)
    confidence: Confidence
    risk_level: RiskLevel
    factors: List[RiskFactor]


class CheckInCreate(BaseModel):
    stress_level: int = Field(..., ge=1, le=5)
    loneliness_level: int = Field(..., ge=1, le=5)


class EveningRoutineUpdate(BaseModel):
    fully_completed: bool = True
