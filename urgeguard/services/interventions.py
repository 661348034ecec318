"""
Intervention gate, recommender and retrospective accuracy.

The gate allows at most one auto-triggered prompt per rolling cooldown
window, and only at high risk. The recommender ranks intervention types
by how much they lowered urge intensity in past sessions.
"""

import logging
from datetime import datetime
from typing import List, Optional

from urgeguard.config import Settings, settings as default_settings
from urgeguard.models import URGE_EVENT_TYPES
from urgeguard.schemas.intervention import Intervention, InterventionType, Recommendation
from urgeguard.clock import HOUR_MS, Clock, system_clock, to_ms
from urgeguard.services.risk_profile import round_half_up
from urgeguard.store.reader import STORE_ERRORS, EventStore

logger = logging.getLogger("urgeguard")

DEFAULT_INTERVENTION = InterventionType.BREATHING.value
COLD_START_REASON = "Starting with breathing (most common)"
FALLBACK_REASON = "Starting with breathing (recommended)"

AVAILABLE_INTERVENTIONS = (
    Intervention(
        id="breathing", type=InterventionType.BREATHING,
        title="4-7-8 Breathing", subtitle="Calm your nervous system", duration=60,
    ),
    Intervention(
        id="urge_surfing", type=InterventionType.URGE_SURFING,
        title="Urge Surfing", subtitle="Ride the wave until it passes", duration=90,
    ),
    Intervention(
        id="pattern_interrupt", type=InterventionType.PATTERN_INTERRUPT,
        title="Pattern Break", subtitle="Quick distraction task", duration=30,
    ),
    Intervention(
        id="emergency", type=InterventionType.EMERGENCY_CONTACT,
        title="Call Support", subtitle="Reach out to someone", duration=0,
    ),
)


def available_interventions() -> List[Intervention]:
    return list(AVAILABLE_INTERVENTIONS)


class InterventionGate:
    def __init__(
        self,
        store: EventStore,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config or default_settings
        self.clock = clock

    async def should_trigger(self, current_risk: int, now: Optional[datetime] = None) -> bool:
        if current_risk < self.config.intervention_risk_threshold:
            return False

        now = now or self.clock()
        try:
            recent = await self.store.interventions_in_window(
                self.config.intervention_cooldown_minutes, to_ms(now)
            )
        except STORE_ERRORS as e:
            # Cooldown state unknown; stay closed
            logger.warning("intervention_gate_closed", extra={"error": str(e)})
            return False

        if recent > 0:
            logger.info("intervention_suppressed", extra={"risk": current_risk, "recent": recent})
            return False
        logger.info("intervention_triggered", extra={"risk": current_risk})
        return True


class InterventionRecommender:
    def __init__(self, store: EventStore):
        self.store = store

    async def recommend(self) -> Recommendation:
        try:
            stats = await self.store.recent_sessions_by_type()
        except STORE_ERRORS as e:
            logger.warning("recommendation_fallback", extra={"error": str(e)})
            return Recommendation(recommended=DEFAULT_INTERVENTION, reasoning=FALLBACK_REASON)

        if not stats:
            return Recommendation(recommended=DEFAULT_INTERVENTION, reasoning=COLD_START_REASON)

        best = max(stats, key=lambda s: s.mean_reduction)
        return Recommendation(
            recommended=best.type,
            reasoning=(
                f"{best.type} works best for you "
                f"({round_half_up(best.mean_reduction)}-point avg reduction, {best.count} uses)"
            ),
        )


class AccuracyEstimator:
    """
    Replays stored risk snapshots: a snapshot at or above the decision
    threshold is a correct call if an urge or lapse followed inside the
    validation window, and a snapshot below it is correct if none did.
    """

    def __init__(
        self,
        store: EventStore,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config or default_settings
        self.clock = clock

    async def accuracy(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        window_ms = self.config.accuracy_validation_hours * HOUR_MS
        fallback = self.config.accuracy_fallback

        try:
            # Only snapshots whose validation window has fully elapsed
            snapshots = await self.store.risk_snapshots(to_ms(now) - window_ms)
            if len(snapshots) < self.config.accuracy_min_samples:
                return fallback

            correct = 0
            for snapshot in snapshots:
                followed = await self.store.count_events_in_range(
                    URGE_EVENT_TYPES, snapshot.timestamp, snapshot.timestamp + window_ms
                ) > 0
                predicted = snapshot.risk >= self.config.accuracy_decision_threshold
                if predicted == followed:
                    correct += 1
        except STORE_ERRORS as e:
            logger.warning("accuracy_fallback", extra={"error": str(e)})
            return fallback

        return round_half_up(100 * correct / len(snapshots))
