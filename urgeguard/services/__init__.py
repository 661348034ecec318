"""
UrgeGuard services package.
"""

from urgeguard.services.cache import CacheSlot
from urgeguard.services.engine import RiskEngine, get_engine
from urgeguard.services.interventions import AccuracyEstimator, InterventionGate, InterventionRecommender
from urgeguard.services.live_risk import LiveRiskAggregator
from urgeguard.services.predictor import LogisticPredictor
from urgeguard.services.risk_profile import build_hourly_profile, find_peak_window
from urgeguard.services.safe_harbor import SafeHarborScanner

__all__ = [
    "CacheSlot",
    "RiskEngine",
    "get_engine",
    "AccuracyEstimator",
    "InterventionGate",
    "InterventionRecommender",
    "LiveRiskAggregator",
    "LogisticPredictor",
    "build_hourly_profile",
    "find_peak_window",
    "SafeHarborScanner",
]
