"""
State Store Interface
=====================

Persistence boundary for player economy documents.

Stores implement ``load`` and ``save``; ``get_or_create`` is the single place
where a missing document is materialised, using the default policy of
``UserEconomyState`` (all counters zero, alveole level 1 unlocked, period
starting now).

Author: jetgause
Created: 2026-10-18
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from beeminer.economy.errors import StaleStateError
from beeminer.economy.models import UserEconomyState, utcnow

logger = logging.getLogger(__name__)


def new_default_state(user_id: str, now: Optional[datetime] = None) -> UserEconomyState:
    """Default document for a player seen for the first time."""
    now = now or utcnow()
    return UserEconomyState(user_id=user_id, period_start=now, last_updated=now)


class StateStore(ABC):
    """Abstract persistence collaborator for the economy engine."""

    @abstractmethod
    def load(self, user_id: str) -> Optional[UserEconomyState]:
        """
        Return the stored state or None if the player has no document.

        Raises:
            PersistenceError: If the backend cannot be read
        """

    @abstractmethod
    def save(self, state: UserEconomyState, expected_version: Optional[int]) -> UserEconomyState:
        """
        Persist ``state`` if the stored version still equals ``expected_version``.

        ``expected_version=None`` means the document must not exist yet.

        Returns:
            The saved state with its version bumped

        Raises:
            StaleStateError: If another writer got there first
            PersistenceError: If the backend cannot be written
        """

    def get_or_create(self, user_id: str) -> UserEconomyState:
        """Load the player's state, creating and saving the default if absent."""
        state = self.load(user_id)
        if state is not None:
            return state

        try:
            created = self.save(new_default_state(user_id), expected_version=None)
            logger.info(f"Created default economy state for user {user_id}")
            return created
        except StaleStateError:
            # Someone else created it between our load and insert
            state = self.load(user_id)
            if state is None:
                raise
            return state

    def set_invited_friends(self, user_id: str, count: int, attempts: int = 3) -> UserEconomyState:
        """
        Record the player's referral count.

        Referral counts are owned by the signup flow; the engine only reads
        them when checking mission requirements.
        """
        for _ in range(attempts):
            state = self.get_or_create(user_id)
            state.invited_friends_count = max(0, int(count))
            try:
                return self.save(state, expected_version=state.version)
            except StaleStateError:
                continue
        raise StaleStateError(user_id, None)
