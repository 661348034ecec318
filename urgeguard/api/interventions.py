from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from urgeguard.api.deps import get_recorder, get_risk_engine
from urgeguard.schemas.intervention import (
    Intervention,
    InterventionCompleted,
    InterventionShown,
    Recommendation,
    UrgeSessionCreate,
)
from urgeguard.services.engine import RiskEngine
from urgeguard.services.interventions import available_interventions
from urgeguard.store.recorder import EventRecorder

router = APIRouter(prefix="/api/interventions", tags=["interventions"])


@router.get("", response_model=List[Intervention])
async def list_interventions():
    return available_interventions()


@router.get("/should-trigger")
async def should_trigger(
    risk: int = Query(..., ge=0, le=100),
    engine: RiskEngine = Depends(get_risk_engine),
):
    """Anti-spam gate for auto-triggered prompts."""
    return {"risk": risk, "should_trigger": await engine.gate.should_trigger(risk)}


@router.post("/shown")
async def intervention_shown(
    body: InterventionShown,
    recorder: EventRecorder = Depends(get_recorder),
):
    """Starts the cooldown window for auto-triggered prompts."""
    return await recorder.log_intervention_shown(body.type.value, body.risk)


@router.post("/completed")
async def intervention_completed(
    body: InterventionCompleted,
    recorder: EventRecorder = Depends(get_recorder),
):
    entry = await recorder.log_intervention_completed(body.helped, body.duration_seconds)
    if entry is None:
        raise HTTPException(status_code=404, detail="No intervention has been shown")
    return entry


@router.post("/sessions")
async def record_urge_session(
    body: UrgeSessionCreate,
    recorder: EventRecorder = Depends(get_recorder),
):
    return await recorder.log_urge_session(
        body.start_timestamp,
        body.intensity_before,
        body.intensity_after,
        body.intervention_type.value,
        what_helped=body.what_helped,
    )


@router.get("/recommendation", response_model=Recommendation)
async def get_recommendation(engine: RiskEngine = Depends(get_risk_engine)):
    return await engine.recommender.recommend()


@router.get("/accuracy")
async def get_accuracy(engine: RiskEngine = Depends(get_risk_engine)):
    return {"accuracy": await engine.accuracy.accuracy()}
