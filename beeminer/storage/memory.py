"""
In-memory state store used for development and tests.
"""

import threading
from typing import Dict, Optional

from beeminer.economy.errors import StaleStateError
from beeminer.economy.models import UserEconomyState

from .base import StateStore


class InMemoryStateStore(StateStore):
    """Keeps deep copies of player documents in a process-local dict."""

    def __init__(self):
        self._documents: Dict[str, UserEconomyState] = {}
        self._lock = threading.RLock()

    def load(self, user_id: str) -> Optional[UserEconomyState]:
        with self._lock:
            state = self._documents.get(user_id)
            return state.copy() if state else None

    def save(self, state: UserEconomyState, expected_version: Optional[int]) -> UserEconomyState:
        with self._lock:
            current = self._documents.get(state.user_id)
            current_version = current.version if current else None
            if current_version != expected_version:
                raise StaleStateError(state.user_id, expected_version)

            saved = state.copy()
            saved.version = (current_version or 0) + 1
            self._documents[state.user_id] = saved
            return saved.copy()

    def clear(self):
        with self._lock:
            self._documents.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
