"""
Event/profile store: read-only query contract for the engine and the
append-only recorder used by the logging layer.
"""

from urgeguard.store.reader import STORE_ERRORS, EventStore, ProfileRead
from urgeguard.store.recorder import EventRecorder

__all__ = ["STORE_ERRORS", "EventStore", "ProfileRead", "EventRecorder"]
