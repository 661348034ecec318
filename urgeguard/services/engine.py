"""
RiskEngine: wires the estimators to one store, one clock and the one
prediction cache slot, and runs the UI refresh cycle.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from urgeguard.config import Settings, settings as default_settings
from urgeguard.schemas.prediction import PredictionResult
from urgeguard.schemas.risk import LiveRisk
from urgeguard.clock import Clock, system_clock
from urgeguard.services.interventions import AccuracyEstimator, InterventionGate, InterventionRecommender
from urgeguard.services.live_risk import LiveRiskAggregator
from urgeguard.services.predictor import LogisticPredictor
from urgeguard.services.safe_harbor import SafeHarborScanner
from urgeguard.store.reader import EventStore

logger = logging.getLogger("urgeguard")


@dataclass(frozen=True)
class RefreshResult:
    live: LiveRisk
    should_trigger: bool
    prediction: PredictionResult


class RiskEngine:
    def __init__(
        self,
        store: EventStore,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        config = config or default_settings
        self.store = store
        self.clock = clock
        self.aggregator = LiveRiskAggregator(store, config, clock)
        self.safe_harbor = SafeHarborScanner(store, config, clock)
        self.predictor = LogisticPredictor(store, config=config, clock=clock)
        self.gate = InterventionGate(store, config, clock)
        self.recommender = InterventionRecommender(store)
        self.accuracy = AccuracyEstimator(store, config, clock)

    async def refresh(self, now: Optional[datetime] = None) -> RefreshResult:
        """
        Focus/timer refresh: live risk feeds the gate; the prediction is
        computed alongside for display only.
        """
        now = now or self.clock()
        live = await self.aggregator.live_risk(now)
        should_trigger = await self.gate.should_trigger(live.live_risk, now)
        prediction = await self.predictor.predict(now)
        logger.info(
            "risk_refreshed",
            extra={"live": live.live_risk, "should_trigger": should_trigger, "probability": prediction.probability},
        )
        return RefreshResult(live=live, should_trigger=should_trigger, prediction=prediction)

    def on_urge_logged(self) -> None:
        """Must run before the next prediction read."""
        self.predictor.invalidate()


_engine: Optional[RiskEngine] = None


def get_engine() -> RiskEngine:
    global _engine
    if _engine is None:
        from urgeguard.db import async_session

        _engine = RiskEngine(EventStore(async_session))
    return _engine
