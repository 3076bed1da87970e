"""
Economy Data Models
===================

Per-player economy document and the result type returned by every
economy transition.

Author: jetgause
Created: 2026-10-18
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .catalog import ALVEOLES, DEFAULT_ALVEOLE_LEVEL, BeeTier
from .errors import Rejection

# Bounded history of applied transitions kept on the document.
MAX_TRANSACTIONS = 50


def default_bee_counts() -> Dict[BeeTier, int]:
    return {tier: 0 for tier in BeeTier}


def default_alveoles() -> Dict[int, bool]:
    return {level: level == DEFAULT_ALVEOLE_LEVEL for level in ALVEOLES}


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in documents."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_datetime(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return fallback
        return parsed.replace(tzinfo=None)
    return fallback


def _expect(data: Dict[str, Any], key: str, kind: type) -> Any:
    """Return data[key] (empty when missing or null) after checking its type."""
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise ValueError(f"'{key}' must be a {kind.__name__}, got {type(value).__name__}")
    return value


def _non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


@dataclass
class UserEconomyState:
    """
    Economy snapshot for one player.

    Bee counts and alveole flags are keyed by closed sets (BeeTier and levels
    1..6) and always carry every key, in catalog order.

    Attributes:
        user_id: Opaque player identifier
        honey: Collected honey
        flowers: Main spending currency
        diamonds: Earned by selling honey
        tickets: Roulette spins available
        secondary_coin: BVR coins earned by selling honey
        bee_counts: Owned bees per tier
        unlocked_alveoles: Unlock flag per alveole level
        claimed_mission_ids: Missions already rewarded, in claim order
        invited_friends_count: Referral count, maintained outside the engine
        lifetime_diamonds_this_period: Diamonds earned since period_start
        period_start: Start of the current diamond period
        last_updated: Time of the last applied transition
        version: Optimistic concurrency counter, 0 until first saved
        transactions: Most recent applied transitions
        contact_email: Client-owned address for notifications
        preferences: Client-owned cosmetic settings
        referrals: Referral records, maintained by the signup flow
        total_referral_earnings: Lifetime referral earnings, maintained outside the engine
        has_pending_funds: Payout flag, maintained outside the engine
    """
    user_id: str
    honey: int = 0
    flowers: int = 0
    diamonds: int = 0
    tickets: int = 0
    secondary_coin: int = 0
    bee_counts: Dict[BeeTier, int] = field(default_factory=default_bee_counts)
    unlocked_alveoles: Dict[int, bool] = field(default_factory=default_alveoles)
    claimed_mission_ids: List[int] = field(default_factory=list)
    invited_friends_count: int = 0
    lifetime_diamonds_this_period: int = 0
    period_start: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)
    version: int = 0
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    contact_email: Optional[str] = None
    preferences: Dict[str, Any] = field(default_factory=dict)
    referrals: List[Dict[str, Any]] = field(default_factory=list)
    total_referral_earnings: int = 0
    has_pending_funds: bool = False

    def copy(self) -> "UserEconomyState":
        """Deep copy of the document."""
        return copy.deepcopy(self)

    def is_alveole_unlocked(self, level: int) -> bool:
        return bool(self.unlocked_alveoles.get(level, False))

    def record_transaction(self, kind: str, details: Dict[str, Any], when: datetime):
        self.transactions.append({
            "type": kind,
            "details": details,
            "timestamp": when.isoformat(),
        })
        if len(self.transactions) > MAX_TRANSACTIONS:
            del self.transactions[:-MAX_TRANSACTIONS]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire document used by the game client."""
        return {
            "userId": self.user_id,
            "honey": self.honey,
            "flowers": self.flowers,
            "diamonds": self.diamonds,
            "tickets": self.tickets,
            "bvrCoins": self.secondary_coin,
            "bees": {tier.value: count for tier, count in self.bee_counts.items()},
            "alveoles": {str(level): unlocked for level, unlocked in self.unlocked_alveoles.items()},
            "invitedFriends": self.invited_friends_count,
            "claimedMissions": list(self.claimed_mission_ids),
            "diamondsThisYear": self.lifetime_diamonds_this_period,
            "yearStartDate": self.period_start.isoformat(),
            "lastUpdated": self.last_updated.isoformat(),
            "version": self.version,
            "transactions": list(self.transactions),
            "contactEmail": self.contact_email,
            "preferences": dict(self.preferences),
            "referrals": list(self.referrals),
            "totalReferralEarnings": self.total_referral_earnings,
            "hasPendingFunds": self.has_pending_funds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserEconomyState":
        """
        Create a state from a wire document; unknown tiers and levels are dropped.

        Raises:
            ValueError: If the document or one of its collections has the wrong shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Economy document must be an object, got {type(data).__name__}")
        now = utcnow()

        bee_counts = default_bee_counts()
        for key, count in _expect(data, "bees", dict).items():
            try:
                tier = BeeTier(key)
            except ValueError:
                continue
            bee_counts[tier] = _non_negative_int(count)

        alveoles = default_alveoles()
        for key, unlocked in _expect(data, "alveoles", dict).items():
            try:
                level = int(key)
            except (TypeError, ValueError):
                continue
            if level in alveoles:
                alveoles[level] = alveoles[level] or bool(unlocked)

        claimed: List[int] = []
        for mission_id in _expect(data, "claimedMissions", list):
            mission_id = _non_negative_int(mission_id)
            if mission_id not in claimed:
                claimed.append(mission_id)

        return cls(
            user_id=str(data.get("userId", "")),
            honey=_non_negative_int(data.get("honey", 0)),
            flowers=_non_negative_int(data.get("flowers", 0)),
            diamonds=_non_negative_int(data.get("diamonds", 0)),
            tickets=_non_negative_int(data.get("tickets", 0)),
            secondary_coin=_non_negative_int(data.get("bvrCoins", 0)),
            bee_counts=bee_counts,
            unlocked_alveoles=alveoles,
            claimed_mission_ids=claimed,
            invited_friends_count=_non_negative_int(data.get("invitedFriends", 0)),
            lifetime_diamonds_this_period=_non_negative_int(data.get("diamondsThisYear", 0)),
            period_start=_parse_datetime(data.get("yearStartDate"), now),
            last_updated=_parse_datetime(data.get("lastUpdated"), now),
            version=_non_negative_int(data.get("version", 0)),
            transactions=list(_expect(data, "transactions", list)),
            contact_email=data.get("contactEmail"),
            preferences=dict(_expect(data, "preferences", dict)),
            referrals=list(_expect(data, "referrals", list)),
            total_referral_earnings=_non_negative_int(data.get("totalReferralEarnings", 0)),
            has_pending_funds=bool(data.get("hasPendingFunds", False)),
        )


@dataclass
class TransitionResult:
    """Outcome of one economy transition: new state plus payload, or a rejection."""
    ok: bool
    state: Optional[UserEconomyState] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    rejection: Optional[Rejection] = None

    @classmethod
    def accepted(cls, state: UserEconomyState, payload: Optional[Dict[str, Any]] = None) -> "TransitionResult":
        return cls(ok=True, state=state, payload=payload or {})

    @classmethod
    def rejected(cls, rejection: Rejection, state: Optional[UserEconomyState] = None) -> "TransitionResult":
        return cls(ok=False, state=state, rejection=rejection)
