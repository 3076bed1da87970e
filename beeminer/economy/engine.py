"""
Economy Engine
==============

Validates and applies economic transitions to a player's economy document.

Each operation loads the player's state (creating the default document on
first sight), checks preconditions, applies every effect to a copy, saves it
with a version check and returns a TransitionResult. Validation failures come
back as structured rejections; no exception leaves an operation.

Concurrency:
- Transitions for the same player are serialised by a per-player lock; a
  lock lives only while some transition holds or waits on it
- Saves are compare-and-swap on the document version; a lost race is retried
  against freshly loaded state
- Transitions for different players run in parallel

Author: jetgause
Created: 2026-10-18
"""

import json
import logging
import random
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional, Union

from .catalog import (
    ALVEOLES,
    BEE_COSTS,
    BVR_PER_LOT,
    DIAMONDS_PER_LOT,
    FLOWERS_PER_LOT,
    GRANTABLE_RESOURCES,
    HONEY_PER_LOT,
    MIN_HONEY_SALE,
    MISSIONS,
    PrizeKind,
    parse_bee_tier,
)
from .errors import (
    PersistenceError,
    Rejection,
    RejectionReason,
    StaleStateError,
)
from .models import TransitionResult, UserEconomyState, utcnow
from . import roulette

logger = logging.getLogger(__name__)

# Fields a client may set directly; everything else is server-computed.
CLIENT_FIELDS = ("contact_email", "preferences")

MAX_CONTACT_EMAIL_LENGTH = 254

# An apply function mutates the working copy and returns a payload, or a Rejection.
ApplyFn = Callable[[UserEconomyState], Union[Dict[str, Any], Rejection]]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class EconomyEngine:
    """
    Applies economy transitions against a state store.

    Args:
        store: Persistence collaborator (``load``/``save``/``get_or_create``)
        rng: Random source for roulette draws; seed it for reproducible spins
        allow_test_grants: Enable GrantTestResources (never in production)
        max_retries: Attempts per transition when a save loses a version race
        create_missing: Create the default document for unseen players
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        store,
        rng: Optional[random.Random] = None,
        allow_test_grants: bool = False,
        max_retries: int = 3,
        create_missing: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.allow_test_grants = allow_test_grants
        self.max_retries = max(1, max_retries)
        self.create_missing = create_missing
        self.clock = clock

        self._locks = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    # ==================== Queries ====================

    def get_state(self, user_id: str) -> TransitionResult:
        """Return the player's state, creating the default document if needed."""
        rejection = self._check_user_id(user_id)
        if rejection:
            return TransitionResult.rejected(rejection)

        with self._user_lock(user_id):
            try:
                state = self._load(user_id)
            except PersistenceError as e:
                return self._persistence_failure(user_id, "get_state", e)

        if state is None:
            return TransitionResult.rejected(self._user_not_found(user_id))
        return TransitionResult.accepted(state)

    # ==================== Transitions ====================

    def purchase_bee(self, user_id: str, tier_id: Any) -> TransitionResult:
        """Buy one bee of ``tier_id`` with flowers."""
        tier = parse_bee_tier(tier_id)

        def apply(state: UserEconomyState):
            if tier is None:
                if not tier_id:
                    return Rejection(RejectionReason.UNKNOWN_TIER, "Bee type ID is required")
                return Rejection(RejectionReason.UNKNOWN_TIER, f"Invalid bee type: {tier_id}")

            cost = BEE_COSTS[tier]
            if state.flowers < cost:
                return Rejection(
                    RejectionReason.INSUFFICIENT_FUNDS,
                    f"Not enough flowers. Need {cost}, have {state.flowers}",
                )

            state.flowers -= cost
            state.bee_counts[tier] += 1
            return {"bee": {"tier": tier.value, "cost": cost, "owned": state.bee_counts[tier]}}

        return self._transition(user_id, "buy_bee", apply)

    def sell_honey(self, user_id: str, amount: Any) -> TransitionResult:
        """
        Sell honey for diamonds, flowers and BVR coins.

        Every full lot of 300 honey pays one diamond, one flower and two BVR
        coins. The whole requested amount is deducted, including the part
        below the next full lot.
        """
        def apply(state: UserEconomyState):
            if not _is_int(amount) or amount <= 0:
                return Rejection(RejectionReason.INVALID_AMOUNT, "Amount must be greater than 0")
            if amount < MIN_HONEY_SALE:
                return Rejection(
                    RejectionReason.INVALID_AMOUNT,
                    f"Minimum {MIN_HONEY_SALE} honey required to sell",
                )
            if state.honey < amount:
                return Rejection(
                    RejectionReason.INSUFFICIENT_FUNDS,
                    f"Not enough honey. Have {state.honey}, trying to sell {amount}",
                )

            lots = amount // HONEY_PER_LOT
            rewards = {
                "diamonds": lots * DIAMONDS_PER_LOT,
                "flowers": lots * FLOWERS_PER_LOT,
                "bvr": lots * BVR_PER_LOT,
            }

            state.honey -= amount
            state.diamonds += rewards["diamonds"]
            state.flowers += rewards["flowers"]
            state.secondary_coin += rewards["bvr"]
            state.lifetime_diamonds_this_period += rewards["diamonds"]
            return {
                "sold": amount,
                "discarded": amount - lots * HONEY_PER_LOT,
                "rewards": rewards,
            }

        return self._transition(user_id, "sell_honey", apply)

    def unlock_alveole(self, user_id: str, level: Any) -> TransitionResult:
        """Unlock the alveole at ``level`` (1..6) with flowers."""
        def apply(state: UserEconomyState):
            if not _is_int(level) or level not in ALVEOLES:
                return Rejection(
                    RejectionReason.INVALID_LEVEL,
                    f"Alveole level must be between {min(ALVEOLES)} and {max(ALVEOLES)}",
                )
            if state.is_alveole_unlocked(level):
                return Rejection(RejectionReason.ALREADY_UNLOCKED, f"Alveole level {level} is already unlocked")

            alveole = ALVEOLES[level]
            if state.flowers < alveole.cost:
                return Rejection(
                    RejectionReason.INSUFFICIENT_FUNDS,
                    f"Not enough flowers. Need {alveole.cost}, have {state.flowers}",
                )

            state.flowers -= alveole.cost
            state.unlocked_alveoles[level] = True
            return {"alveole": alveole.to_dict()}

        return self._transition(user_id, "upgrade_alveole", apply)

    def spin_roulette(self, user_id: str) -> TransitionResult:
        """Spend one ticket on a weighted prize draw."""
        def apply(state: UserEconomyState):
            if state.tickets <= 0:
                return Rejection(RejectionReason.NO_TICKETS_AVAILABLE, "No tickets available")

            index, prize = roulette.spin(self.rng)

            state.tickets -= 1
            if prize.kind is PrizeKind.BEE:
                state.bee_counts[prize.tier] += prize.count
            elif prize.kind is PrizeKind.FLOWERS:
                state.flowers += prize.amount
            return {"prize": prize.to_dict(index)}

        return self._transition(user_id, "spin_roulette", apply)

    def claim_mission(self, user_id: str, mission_id: Any) -> TransitionResult:
        """Claim a referral mission once its friend requirement is met."""
        def apply(state: UserEconomyState):
            mission = MISSIONS.get(mission_id) if _is_int(mission_id) else None
            if mission is None:
                return Rejection(RejectionReason.UNKNOWN_MISSION, f"Unknown mission: {mission_id}")
            if mission.mission_id in state.claimed_mission_ids:
                return Rejection(RejectionReason.ALREADY_CLAIMED, f"Mission {mission.mission_id} already claimed")
            if state.invited_friends_count < mission.friends_required:
                return Rejection(
                    RejectionReason.REQUIREMENT_NOT_MET,
                    f"Mission {mission.mission_id} requires {mission.friends_required} invited friends, "
                    f"have {state.invited_friends_count}",
                )

            state.claimed_mission_ids.append(mission.mission_id)
            state.flowers += mission.flowers_reward
            state.tickets += mission.tickets_reward
            return {"mission": mission.to_dict()}

        return self._transition(user_id, "claim_mission", apply)

    def grant_test_resources(self, user_id: str, deltas: Dict[str, Any]) -> TransitionResult:
        """Add resources unconditionally. Only available when test grants are enabled."""
        if not self.allow_test_grants:
            return TransitionResult.rejected(
                Rejection(RejectionReason.FEATURE_DISABLED, "Test resources are disabled in this environment")
            )

        def apply(state: UserEconomyState):
            if not isinstance(deltas, dict):
                return Rejection(RejectionReason.INVALID_AMOUNT, "Resource deltas must be an object")
            for name, delta in deltas.items():
                if name not in GRANTABLE_RESOURCES:
                    return Rejection(RejectionReason.UNKNOWN_RESOURCE, f"Unknown resource: {name}")
                if not _is_int(delta) or delta < 0:
                    return Rejection(RejectionReason.INVALID_AMOUNT, f"Delta for {name} must be a non-negative integer")

            for name, delta in deltas.items():
                setattr(state, name, getattr(state, name) + delta)
            return {"granted": dict(deltas)}

        return self._transition(user_id, "add_test_resources", apply)

    def update_client_fields(self, user_id: str, fields: Dict[str, Any]) -> TransitionResult:
        """Set whitelisted client-owned fields; server-computed fields are refused."""
        def apply(state: UserEconomyState):
            if not isinstance(fields, dict):
                return Rejection(RejectionReason.INVALID_FIELD_VALUE, "Update must be an object")
            forbidden = sorted(name for name in fields if name not in CLIENT_FIELDS)
            if forbidden:
                return Rejection(
                    RejectionReason.FORBIDDEN_FIELD,
                    f"Fields cannot be set by the client: {', '.join(forbidden)}",
                )

            if "contact_email" in fields:
                email = fields["contact_email"]
                if email is not None and (
                    not isinstance(email, str) or "@" not in email or len(email) > MAX_CONTACT_EMAIL_LENGTH
                ):
                    return Rejection(RejectionReason.INVALID_FIELD_VALUE, "contact_email must be an email address")
                state.contact_email = email.strip() if email else None
            if "preferences" in fields:
                preferences = fields["preferences"]
                if not isinstance(preferences, dict):
                    return Rejection(RejectionReason.INVALID_FIELD_VALUE, "preferences must be an object")
                state.preferences = dict(preferences)
            return {"updated": sorted(fields)}

        return self._transition(user_id, "update_client_fields", apply)

    # ==================== Internals ====================

    def _transition(self, user_id: str, event: str, apply: ApplyFn) -> TransitionResult:
        rejection = self._check_user_id(user_id)
        if rejection:
            self._log_event(event, user_id=user_id, outcome="rejected", reason=rejection.reason.value)
            return TransitionResult.rejected(rejection)

        with self._user_lock(user_id):
            for attempt in range(1, self.max_retries + 1):
                try:
                    current = self._load(user_id)
                except PersistenceError as e:
                    return self._persistence_failure(user_id, event, e)

                if current is None:
                    return TransitionResult.rejected(self._user_not_found(user_id))

                working = current.copy()
                outcome = apply(working)
                if isinstance(outcome, Rejection):
                    self._log_event(event, user_id=user_id, outcome="rejected", reason=outcome.reason.value)
                    return TransitionResult.rejected(outcome, current)

                now = self.clock()
                working.last_updated = now
                working.record_transaction(event, outcome, now)

                try:
                    saved = self.store.save(working, expected_version=current.version)
                except StaleStateError:
                    logger.warning(
                        f"Concurrent update on user {user_id} during {event} "
                        f"(attempt {attempt}/{self.max_retries}), retrying"
                    )
                    continue
                except PersistenceError as e:
                    return self._persistence_failure(user_id, event, e)

                self._log_event(event, user_id=user_id, outcome="applied", version=saved.version, **outcome)
                return TransitionResult.accepted(saved, outcome)

        return self._persistence_failure(
            user_id, event, StaleStateError(user_id, None), retries_exhausted=True
        )

    def _load(self, user_id: str) -> Optional[UserEconomyState]:
        if self.create_missing:
            return self.store.get_or_create(user_id)
        return self.store.load(user_id)

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
        # The local reference keeps the entry alive until this holder is done
        with lock:
            yield

    @staticmethod
    def _check_user_id(user_id: Any) -> Optional[Rejection]:
        if not isinstance(user_id, str) or not user_id.strip():
            return Rejection(RejectionReason.INVALID_USER_ID, "User ID is required")
        return None

    @staticmethod
    def _user_not_found(user_id: str) -> Rejection:
        return Rejection(RejectionReason.USER_NOT_FOUND, f"Game state not found for user {user_id}")

    def _persistence_failure(
        self, user_id: str, event: str, error: Exception, retries_exhausted: bool = False
    ) -> TransitionResult:
        logger.error(f"Persistence failure for user {user_id} during {event}: {error}")
        self._log_event(event, user_id=user_id, outcome="failed", retries_exhausted=retries_exhausted)
        message = "Error saving game state, please retry" if retries_exhausted else "Error accessing game state"
        return TransitionResult.rejected(Rejection(RejectionReason.PERSISTENCE_FAILURE, message))

    @staticmethod
    def _log_event(event: str, **kwargs: Any) -> None:
        payload = {"event": event, "ts": datetime.now(timezone.utc).isoformat()}
        payload.update(kwargs)
        logger.info(json.dumps(payload, default=str))
