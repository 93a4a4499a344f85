"""
Identifier generation for tickets and notifications.
"""

import threading
import time
import uuid
from typing import Callable


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class IdGenerator:
    """
    Time-derived ids.

    Ticket ids are ``TKT<epoch-ms>`` and strictly increase within a process:
    two tickets created in the same millisecond get consecutive values.
    Notification ids are ``notif_<epoch-ms>_<random suffix>``.
    """

    def __init__(self, clock_ms: Callable[[], int] = _epoch_ms):
        self._clock_ms = clock_ms
        self._lock = threading.Lock()
        self._last_ms = 0

    def ticket_id(self) -> str:
        with self._lock:
            ms = max(self._clock_ms(), self._last_ms + 1)
            self._last_ms = ms
        return f"TKT{ms}"

    def notification_id(self) -> str:
        return f"notif_{self._clock_ms()}_{uuid.uuid4().hex[:9]}"
