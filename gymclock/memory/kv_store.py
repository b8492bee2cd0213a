"""
GymClock Key-Value Store - Persistent JSON Storage

Local persistence for the session token, the current user and the
fired-alarm set. Stored in ~/.gymclock/storage.json by default.

Design:
- One JSON object of string keys to string values
- Graceful corruption recovery (backup and reset)
- Atomic writes (temp file, then rename)
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from gymclock.core.config import STORAGE_PATH, TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class KeyValueStoreError(Exception):
    """Raised when storage cannot be written"""
    pass


class KeyValueStore:
    """
    File-backed string key-value storage.

    Reads never raise: missing, unreadable or malformed storage is
    treated as empty. Writes raise KeyValueStoreError.
    """

    def __init__(self, storage_path: Optional[Path] = None):
        """
        Args:
            storage_path: Custom storage file path (default: ~/.gymclock/storage.json)
        """
        self.storage_path = Path(storage_path) if storage_path else STORAGE_PATH
        self._lock = threading.RLock()
        logger.info(f"KeyValueStore initialized: {self.storage_path}")

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.storage_path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted JSON in storage: {e}")
            self._backup_corrupted()
            return {}
        except OSError as e:
            logger.error(f"Cannot read storage: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error("Storage root is not an object, ignoring it")
            return {}

        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]):
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.storage_path.with_suffix('.tmp')
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)
            temp_path.replace(self.storage_path)
        except OSError as e:
            logger.error(f"Failed to save storage: {e}", exc_info=True)
            raise KeyValueStoreError(f"Cannot save storage: {e}") from e

    def _backup_corrupted(self):
        backup_path = self.storage_path.with_suffix('.json.bak')
        try:
            self.storage_path.replace(backup_path)
            logger.warning(f"Backed up corrupted storage to: {backup_path}")
        except OSError as e:
            logger.error(f"Failed to back up corrupted storage: {e}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str):
        if not isinstance(value, str):
            raise TypeError("value must be str")
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)
        logger.debug(f"Stored key: {key}")

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
        return True


class SessionStore:
    """Bearer token and logged-in user, as the login page leaves them."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @property
    def token(self) -> Optional[str]:
        return self.kv.get(TOKEN_KEY) or None

    def current_user(self) -> Optional[dict]:
        raw = self.kv.get(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing user data: {e}")
            return None
        return user if isinstance(user, dict) else None

    def current_user_id(self) -> Optional[int]:
        user = self.current_user()
        if not user:
            return None
        user_id = user.get("id")
        return user_id if isinstance(user_id, int) else None

    def login(self, token: str, user: dict):
        self.kv.set(TOKEN_KEY, token)
        self.kv.set(USER_KEY, json.dumps(user))
        logger.info(f"Session stored for user {user.get('id')}")

    def logout(self):
        self.kv.delete(TOKEN_KEY)
        self.kv.delete(USER_KEY)
        logger.info("Session cleared")
