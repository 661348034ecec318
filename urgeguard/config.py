"""
UrgeGuard - Configuration
Runtime settings plus every tunable constant of the risk engine.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ==========================================
    # RUNTIME
    # ==========================================
    env: str = "dev"  # dev | prod
    db_url: str = "sqlite+aiosqlite:///./urgeguard.db"
    cors_origins: list[str] = ["http://localhost:8081"]
    log_level: str = "INFO"

    # ==========================================
    # LIVE RISK
    # ==========================================
    live_frequency_weight: float = 0.6  # profile estimate gets the remainder
    frequency_lookback_days: int = 7
    default_urge_duration_minutes: int = 20
    active_spike_per_event: int = 15
    active_spike_cap: int = 30
    urge_spike_window_minutes: int = 5
    urge_spike_bonus: int = 15
    urge_spike_ceiling: int = 95

    # ==========================================
    # SAFE HARBOR
    # ==========================================
    safe_harbor_threshold: int = 40
    safe_harbor_profile_horizon_hours: int = 24
    safe_harbor_frequency_horizon_hours: int = 12

    # ==========================================
    # PREDICTION
    # ==========================================
    prediction_cache_ttl_seconds: int = 300

    # ==========================================
    # INTERVENTIONS (anti-spam gate)
    # ==========================================
    intervention_risk_threshold: int = 70
    intervention_cooldown_minutes: int = 30

    # ==========================================
    # RETROSPECTIVE ACCURACY
    # ==========================================
    accuracy_validation_hours: int = 2
    accuracy_decision_threshold: int = 60
    accuracy_min_samples: int = 5
    accuracy_fallback: int = 58

    class Config:
        env_file = ".env"
        env_prefix = "URGEGUARD_"


settings = Settings()


@lru_cache()
def get_engine_config() -> dict:
    """
    Engine constants as a plain dict.
    Cached; exposed on the health endpoint for transparency.
    """
    return {
        "live_frequency_weight": settings.live_frequency_weight,
        "frequency_lookback_days": settings.frequency_lookback_days,
        "urge_spike_window_minutes": settings.urge_spike_window_minutes,
        "prediction_cache_ttl_seconds": settings.prediction_cache_ttl_seconds,
        "intervention_risk_threshold": settings.intervention_risk_threshold,
        "intervention_cooldown_minutes": settings.intervention_cooldown_minutes,
        "safe_harbor_threshold": settings.safe_harbor_threshold,
    }
