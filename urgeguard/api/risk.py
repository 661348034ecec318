"""
Risk endpoints consumed by the home screen and pattern map.
Only the refresh route writes, and only a risk snapshot.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends

from urgeguard.api.deps import get_recorder, get_risk_engine
from urgeguard.schemas.risk import HourlyRisk, LiveRisk, PeakWindow, RiskAssessment, SafeHarbor, TrendPoint
from urgeguard.services.engine import RiskEngine
from urgeguard.store.recorder import EventRecorder

router = APIRouter(prefix="/api/risk", tags=["risk"])


@router.get("/profile", response_model=List[HourlyRisk])
async def get_hourly_profile(engine: RiskEngine = Depends(get_risk_engine)):
    """24-hour baseline curve from the latest onboarding answers."""
    return await engine.aggregator.baseline_profile()


@router.get("/peak", response_model=PeakWindow)
async def get_peak_window(engine: RiskEngine = Depends(get_risk_engine)):
    return await engine.aggregator.peak_window()


@router.get("/live", response_model=LiveRisk)
async def get_live_risk(engine: RiskEngine = Depends(get_risk_engine)):
    """Blended frequency/profile risk used for display and gating."""
    return await engine.aggregator.live_risk()


@router.get("/current", response_model=RiskAssessment)
async def get_current_risk(engine: RiskEngine = Depends(get_risk_engine)):
    return await engine.aggregator.current_risk()


@router.get("/spike")
async def get_active_spike(engine: RiskEngine = Depends(get_risk_engine)):
    return {"spike": await engine.aggregator.active_urge_spike()}


@router.get("/trend", response_model=List[TrendPoint])
async def get_risk_trend(engine: RiskEngine = Depends(get_risk_engine)):
    return await engine.aggregator.risk_trend()


@router.get("/safe-harbor", response_model=Optional[SafeHarbor])
async def get_safe_harbor(
    source: Literal["profile", "frequency"] = "profile",
    engine: RiskEngine = Depends(get_risk_engine),
):
    """Next hour under the moderate threshold, or null."""
    if source == "frequency":
        return await engine.safe_harbor.from_frequency()
    return await engine.safe_harbor.from_profile()


@router.post("/refresh")
async def refresh_risk(
    engine: RiskEngine = Depends(get_risk_engine),
    recorder: EventRecorder = Depends(get_recorder),
):
    """
    Focus/timer refresh. Stores the live risk as a snapshot so the
    accuracy estimate can later score it against logged urges.
    """
    result = await engine.refresh()
    await recorder.record_risk_snapshot(result.live.live_risk)
    return {
        "live": result.live,
        "should_trigger": result.should_trigger,
        "prediction": result.prediction,
    }
