"""
GymClock Fired-Alarm Store

Remembers which events have already produced a notification so a
reload never fires the same alarm twice.

Stored shape (version 1):
    {"version": 1, "ids": ["class:12", "workout:7"]}

Older clients stored a bare JSON array of integer ids with no kind.
Such a value is migrated by marking every id as fired for both kinds.
"""

import json
import logging
import threading
from typing import Iterable, Set

from gymclock.core.config import FIRED_ALARMS_KEY, REWARDED_CLASSES_KEY
from gymclock.memory.event_models import EventKind
from gymclock.memory.kv_store import KeyValueStore, KeyValueStoreError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class IdSetRepository:
    """
    Add-only persisted set of string keys.

    Membership is monotonic: nothing is ever removed. Storage problems
    on load yield an empty set instead of an error.
    """

    def __init__(self, kv: KeyValueStore, key: str):
        self.kv = kv
        self.key = key
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def load(self) -> Set[str]:
        """Hydrate from storage. Call once at startup."""
        raw = self.kv.get(self.key)
        ids = self._decode(raw) if raw else set()
        with self._lock:
            self._ids = ids
        logger.info(f"Loaded {len(ids)} ids from '{self.key}'")
        return set(ids)

    def _decode(self, raw: str) -> Set[str]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing persisted '{self.key}': {e}")
            return set()

        if isinstance(data, list):
            return self._migrate_legacy(data)

        if not isinstance(data, dict) or data.get("version") != SCHEMA_VERSION:
            logger.warning(f"Unknown schema for '{self.key}', starting empty")
            return set()

        stored = data.get("ids", [])
        if not isinstance(stored, list):
            return set()
        return {str(item) for item in stored}

    def _migrate_legacy(self, items: list) -> Set[str]:
        logger.info(f"Migrating legacy '{self.key}' array ({len(items)} items)")
        return {str(item) for item in items}

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._ids

    def add(self, key: str) -> bool:
        """
        Add and persist. Idempotent.

        Returns:
            True if the key was new
        """
        with self._lock:
            if key in self._ids:
                return False
            self._ids.add(key)
            snapshot = sorted(self._ids)

        try:
            self.kv.set(self.key, json.dumps({"version": SCHEMA_VERSION, "ids": snapshot}))
        except KeyValueStoreError as e:
            # Still remembered for this session
            logger.error(f"Could not persist '{self.key}': {e}")
        return True

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def keys(self) -> Iterable[str]:
        with self._lock:
            return sorted(self._ids)


class FiredAlarmStore(IdSetRepository):
    """Alarm keys ("<kind>:<id>") that have already fired."""

    def __init__(self, kv: KeyValueStore):
        super().__init__(kv, FIRED_ALARMS_KEY)

    def _migrate_legacy(self, items: list) -> Set[str]:
        keys = set()
        for item in items:
            if isinstance(item, int) and not isinstance(item, bool):
                for kind in EventKind:
                    keys.add(f"{kind.value}:{item}")
        logger.info(f"Migrated {len(items)} legacy alarm ids")
        return keys


class RewardedClassStore(IdSetRepository):
    """Show-class ids whose participants have been awarded points."""

    def __init__(self, kv: KeyValueStore):
        super().__init__(kv, REWARDED_CLASSES_KEY)
