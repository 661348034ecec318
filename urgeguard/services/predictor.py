"""
Fixed-weight logistic urge predictor.

The weight table drives the probability; a separate declarative rule
table produces the human-readable factors.

Results are memoized in a single CacheSlot keyed by a hash of the model
inputs. Logging an urge must call invalidate() before the next read.
"""

import hashlib
import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from urgeguard.config import Settings, settings as default_settings
from urgeguard.models import EventType
from urgeguard.schemas.prediction import PredictionFeatures, PredictionResult, RiskFactor, Severity
from urgeguard.schemas.risk import Confidence, RiskLevel
from urgeguard.services.cache import CacheSlot
from urgeguard.clock import HOUR_MS, Clock, system_clock, to_ms
from urgeguard.store.reader import STORE_ERRORS, EventStore

logger = logging.getLogger("urgeguard")

T = TypeVar("T")

INTERCEPT = -2.5

MODEL_WEIGHTS: Dict[str, float] = {
    "hour": 0.08,
    "day_of_week": 0.02,
    "screen_unlocks_last_hour": 0.15,
    "evening_routine_done": -0.8,  # routine is protective
    "is_late_night": 1.2,
    "is_recent_urge": -1.5,  # refractory period right after an urge
    "stress_level": 0.25,
    "loneliness_level": 0.2,
}

# Beyond this |z| the sigmoid rounds to exactly 0 or 1 in floating point
Z_LIMIT = 30.0

LOW_PROBABILITY = 0.3
HIGH_PROBABILITY = 0.7

RECENT_URGE_HOURS = 2
STALE_URGE_HOURS = 12
BUSY_UNLOCKS = 10
MAX_FACTORS = 5

NO_URGE_HOURS = 24.0


def is_late_night(hour: int) -> bool:
    return hour >= 22 or hour <= 4


def linear_score(features: PredictionFeatures) -> float:
    z = INTERCEPT
    for name, value in features.model_inputs().items():
        z += MODEL_WEIGHTS[name] * float(value)
    return z


def sigmoid(z: float) -> float:
    z = max(-Z_LIMIT, min(Z_LIMIT, z))
    return 1.0 / (1.0 + math.exp(-z))


def classify_probability(probability: float) -> RiskLevel:
    if probability < LOW_PROBABILITY:
        return RiskLevel.LOW
    if probability >= HIGH_PROBABILITY:
        return RiskLevel.HIGH
    return RiskLevel.MODERATE


def determine_confidence(features: PredictionFeatures) -> Confidence:
    if features.hours_since_last_urge < RECENT_URGE_HOURS:
        return Confidence.HIGH
    if features.screen_unlocks_last_hour > BUSY_UNLOCKS:
        return Confidence.HIGH
    if features.hours_since_last_urge > STALE_URGE_HOURS:
        return Confidence.LOW
    return Confidence.MEDIUM


def feature_hash(features: PredictionFeatures) -> str:
    payload = json.dumps(features.model_inputs(), sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()


# ==========================================
# EXPLANATION RULES
# ==========================================

@dataclass(frozen=True)
class ExplanationRule:
    name: str
    applies: Callable[[PredictionFeatures], bool]
    label: str  # str.format template over the feature fields
    impact: int
    severity: Severity

    def factor(self, features: PredictionFeatures) -> RiskFactor:
        return RiskFactor(
            label=self.label.format(**features.model_dump()),
            impact=self.impact,
            severity=self.severity,
        )


EXPLANATION_RULES = (
    ExplanationRule(
        "late_night", lambda f: f.is_late_night,
        "Late night hours (your danger zone)", 85, "high",
    ),
    ExplanationRule(
        "high_screen_activity", lambda f: f.screen_unlocks_last_hour > 5,
        "High activity ({screen_unlocks_last_hour} unlocks in last hour)", 75, "high",
    ),
    ExplanationRule(
        "elevated_stress", lambda f: f.stress_level >= 4,
        "Elevated stress (check-in {stress_level}/5)", 70, "medium",
    ),
    ExplanationRule(
        "elevated_loneliness", lambda f: f.loneliness_level >= 4,
        "Feeling isolated (check-in {loneliness_level}/5)", 65, "medium",
    ),
    ExplanationRule(
        "missed_evening_routine", lambda f: not f.evening_routine_done and f.hour >= 20,
        "Evening routine not completed yet", 55, "medium",
    ),
    ExplanationRule(
        "completed_evening_routine", lambda f: f.evening_routine_done,
        "Evening routine completed", 45, "protective",
    ),
    ExplanationRule(
        "refractory_protection", lambda f: f.is_recent_urge,
        "Recent urge logged (refractory period)", 40, "protective",
    ),
)

NOT_LATE_NIGHT = RiskFactor(label="Outside late-night hours", impact=20, severity="protective")
MONITORING_ACTIVE = RiskFactor(label="Monitoring active", impact=10, severity="protective")
BASELINE_ACTIVITY = RiskFactor(label="Normal activity pattern", impact=5, severity="low")


def explain(features: PredictionFeatures, rules=EXPLANATION_RULES, limit: int = MAX_FACTORS) -> List[RiskFactor]:
    """
    Fire rules, make sure something protective is shown, rank, truncate.
    When no rule fires the result is the lone baseline factor, with no
    protective entry.
    """
    factors = [rule.factor(features) for rule in rules if rule.applies(features)]
    if not factors:
        return [BASELINE_ACTIVITY]

    if not any(f.severity == "protective" for f in factors):
        factors.append(MONITORING_ACTIVE if features.is_late_night else NOT_LATE_NIGHT)

    ranked = sorted(factors, key=lambda f: f.impact, reverse=True)
    top = ranked[:limit]
    if not any(f.severity == "protective" for f in top):
        protective = next(f for f in ranked if f.severity == "protective")
        top = ranked[: limit - 1] + [protective]
    return top


# ==========================================
# PREDICTOR
# ==========================================

class LogisticPredictor:
    def __init__(
        self,
        store: EventStore,
        cache: Optional[CacheSlot[PredictionResult]] = None,
        config: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        self.store = store
        self.config = config or default_settings
        self.clock = clock
        self.cache = cache or CacheSlot(
            ttl=timedelta(seconds=self.config.prediction_cache_ttl_seconds),
            clock=clock,
        )

    async def _read(self, field: str, read: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await read()
        except STORE_ERRORS as e:
            logger.warning("feature_read_fallback", extra={"feature": field, "error": str(e)})
            return default

    async def extract_features(self, now: Optional[datetime] = None) -> PredictionFeatures:
        now = now or self.clock()
        now_ms = to_ms(now)

        unlocks = await self._read(
            "screen_unlocks_last_hour",
            lambda: self.store.count_events(EventType.SCREEN_ON, now_ms - HOUR_MS),
            0,
        )
        last_urge = await self._read(
            "hours_since_last_urge",
            lambda: self.store.last_event_time(EventType.URGE_LOGGED),
            None,
        )
        routine_done = await self._read(
            "evening_routine_done",
            lambda: self.store.evening_routine_done(now.date()),
            False,
        )
        check_in = await self._read("check_in", self.store.recent_check_in, None)

        hours_since_urge = NO_URGE_HOURS
        if last_urge is not None:
            hours_since_urge = max(0.0, (now_ms - last_urge) / HOUR_MS)

        return PredictionFeatures(
            hour=now.hour,
            day_of_week=(now.weekday() + 1) % 7,
            screen_unlocks_last_hour=unlocks,
            evening_routine_done=routine_done,
            is_late_night=is_late_night(now.hour),
            is_recent_urge=hours_since_urge < RECENT_URGE_HOURS,
            stress_level=check_in.stress_level if check_in else 0,
            loneliness_level=check_in.loneliness_level if check_in else 0,
            hours_since_last_urge=hours_since_urge,
        )

    def predict_features(self, features: PredictionFeatures) -> PredictionResult:
        """Uncached scoring; a pure function of the features."""
        probability = sigmoid(linear_score(features))
        return PredictionResult(
            probability=probability,
            confidence=determine_confidence(features),
            risk_level=classify_probability(probability),
            factors=explain(features),
        )

    async def predict(self, now: Optional[datetime] = None) -> PredictionResult:
        features = await self.extract_features(now)
        key = feature_hash(features)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = self.predict_features(features)
        logger.debug("prediction_computed", extra={"probability": result.probability})
        return self.cache.put(key, result)

    def invalidate(self) -> None:
        self.cache.invalidate()
