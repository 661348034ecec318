from urgeguard.db import async_session
from urgeguard.services.engine import RiskEngine, get_engine
from urgeguard.store.recorder import EventRecorder


def get_risk_engine() -> RiskEngine:
    return get_engine()


def get_recorder() -> EventRecorder:
    return EventRecorder(async_session)
