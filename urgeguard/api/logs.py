"""
Logging-layer endpoints: onboarding replacement and one-tap log actions.
"""

from typing import Literal

from fastapi import APIRouter, Depends

from urgeguard.api.deps import get_recorder, get_risk_engine
from urgeguard.models import EventType
from urgeguard.schemas.prediction import CheckInCreate, EveningRoutineUpdate
from urgeguard.schemas.risk import OnboardingProfile, RiskAssessment
from urgeguard.services.engine import RiskEngine
from urgeguard.store.recorder import EventRecorder

router = APIRouter(prefix="/api", tags=["logs"])

LOG_EVENT_TYPES = {
    "urge": EventType.URGE_LOGGED,
    "lapse": EventType.LAPSE_LOGGED,
    "safe": EventType.SAFETY_CHECK_IN,
}


@router.put("/profile", response_model=OnboardingProfile)
async def replace_profile(
    profile: OnboardingProfile,
    recorder: EventRecorder = Depends(get_recorder),
):
    """Re-onboarding overwrites the previous answers; no history is kept."""
    await recorder.replace_profile(profile)
    return profile


@router.post("/log/check-in")
async def log_check_in(
    body: CheckInCreate,
    recorder: EventRecorder = Depends(get_recorder),
):
    return await recorder.log_check_in(body.stress_level, body.loneliness_level)


@router.post("/log/evening-routine")
async def log_evening_routine(
    body: EveningRoutineUpdate,
    recorder: EventRecorder = Depends(get_recorder),
):
    day = recorder.today()
    await recorder.complete_evening_routine(day, body.fully_completed)
    return {"date": day.isoformat(), "fully_completed": body.fully_completed}


# Registered after the fixed log paths above
@router.post("/log/{kind}", response_model=RiskAssessment)
async def log_event(
    kind: Literal["urge", "lapse", "safe"],
    recorder: EventRecorder = Depends(get_recorder),
    engine: RiskEngine = Depends(get_risk_engine),
):
    await recorder.append_event(LOG_EVENT_TYPES[kind], metadata={"type": kind})
    if kind in ("urge", "lapse"):
        engine.on_urge_logged()
    return await engine.aggregator.current_risk()
