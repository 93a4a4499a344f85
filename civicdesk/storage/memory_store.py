"""
In-memory key-value store used for local development (USE_MOCK_DB) and tests.

When a path is given the whole map is written to a JSON file after every
mutation and loaded back on start, so a dev server keeps its data across
restarts.
"""

import json
import os
import threading
from typing import Any, Dict, List, Optional
import logging

from civicdesk.core.errors import StorageError
from .base import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.Lock()
        self._data: Dict[str, str] = {}
        if path:
            self._load()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        # Stored as JSON text so callers never share mutable state with the store
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON serializable") from e
        with self._lock:
            self._data[key] = raw
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._flush()

    def get_by_prefix(self, prefix: str) -> List[Any]:
        with self._lock:
            items = [(k, v) for k, v in self._data.items() if k.startswith(prefix)]
        items.sort(key=lambda item: item[0])
        return [json.loads(raw) for _, raw in items]

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load mock DB from {self.path}: {e}. Starting empty.")
            return
        if not isinstance(data, dict):
            logger.warning(f"Mock DB at {self.path} is not a JSON object. Starting empty.")
            return
        self._data = {k: json.dumps(v) for k, v in data.items()}
        logger.info(f"[MOCK DB] Loaded {len(self._data)} keys from {self.path}")

    def _flush(self) -> None:
        # Caller holds self._lock
        if not self.path:
            return
        try:
            snapshot = {k: json.loads(v) for k, v in self._data.items()}
            tmp_path = f"{self.path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to persist mock DB: {e}") from e
