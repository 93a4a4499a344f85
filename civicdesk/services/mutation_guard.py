"""
Per-ticket mutation contract.

Ticket mutations (status update, upvote) are read-modify-write sequences
against the key-value store. They run inside ``guard.hold(ticket_id)``.

- TicketMutationGuard (default): no serialisation. Concurrent upvotes on
  one ticket can lose an increment or let a repeated voter through twice.
  This matches the store's per-key-only atomicity.
- KeyedLockGuard: one in-process lock per ticket id. Serialises same-ticket
  mutations inside a single worker process; separate processes still race.
"""

import threading
from contextlib import contextmanager
from typing import Dict, List


class TicketMutationGuard:

    @contextmanager
    def hold(self, ticket_id: str):
        yield


class KeyedLockGuard(TicketMutationGuard):

    def __init__(self):
        self._registry_lock = threading.Lock()
        # ticket id -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}

    @contextmanager
    def hold(self, ticket_id: str):
        with self._registry_lock:
            entry = self._locks.setdefault(ticket_id, [threading.Lock(), 0])
            entry[1] += 1
        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[ticket_id]

    def active_keys(self) -> int:
        with self._registry_lock:
            return len(self._locks)
