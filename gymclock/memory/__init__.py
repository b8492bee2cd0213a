"""
GymClock Memory - Event Models and Local Persistence
"""

from .event_models import (
    ClassListing,
    EventKind,
    IncompleteEvent,
    ScheduledEvent,
    lead_time,
)
from .kv_store import KeyValueStore, KeyValueStoreError, SessionStore
from .fired_alarms import FiredAlarmStore, RewardedClassStore

__all__ = [
    'ClassListing',
    'EventKind',
    'IncompleteEvent',
    'ScheduledEvent',
    'lead_time',
    'KeyValueStore',
    'KeyValueStoreError',
    'SessionStore',
    'FiredAlarmStore',
    'RewardedClassStore',
]
