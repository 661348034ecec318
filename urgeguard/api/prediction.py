from fastapi import APIRouter, Depends

from urgeguard.api.deps import get_risk_engine
from urgeguard.schemas.prediction import PredictionResult
from urgeguard.services.engine import RiskEngine

router = APIRouter(prefix="/api/prediction", tags=["prediction"])


@router.get("", response_model=PredictionResult)
async def get_prediction(engine: RiskEngine = Depends(get_risk_engine)):
    """
    Logistic urge probability with its explanation.
    Shown for transparency; never used for gating.
    """
    return await engine.predictor.predict()


@router.post("/invalidate")
async def invalidate_prediction(engine: RiskEngine = Depends(get_risk_engine)):
    engine.predictor.invalidate()
    return {"invalidated": True}
