"""
Economy Catalog
===============

Fixed game tables shared by the economy engine and the API:
- Bee tiers and their flower costs
- Alveole (storage tier) capacities and unlock costs
- Roulette prize table with integer weights
- Referral missions and their rewards

Author: jetgause
Created: 2026-10-18
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class BeeTier(str, Enum):
    """Closed set of bee ownership classes, in catalog order."""
    BABY = "baby"
    WORKER = "worker"
    ELITE = "elite"
    ROYAL = "royal"
    QUEEN = "queen"


class PrizeKind(str, Enum):
    """What a roulette prize pays out."""
    BEE = "bee"
    FLOWERS = "flowers"


BEE_COSTS: Dict[BeeTier, int] = {
    BeeTier.BABY: 2000,
    BeeTier.WORKER: 10000,
    BeeTier.ELITE: 50000,
    BeeTier.ROYAL: 250000,
    BeeTier.QUEEN: 1200000,
}

# Honey sale conversion: every full lot yields these rewards.
HONEY_PER_LOT = 300
MIN_HONEY_SALE = 300
DIAMONDS_PER_LOT = 1
FLOWERS_PER_LOT = 1
BVR_PER_LOT = 2


@dataclass(frozen=True)
class Alveole:
    """A storage tier: unlocking it raises the honey capacity ceiling."""
    level: int
    capacity: int
    cost: int

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "capacity": self.capacity, "cost": self.cost}


ALVEOLES: Dict[int, Alveole] = {
    1: Alveole(level=1, capacity=1000000, cost=0),
    2: Alveole(level=2, capacity=3000000, cost=200000),
    3: Alveole(level=3, capacity=6000000, cost=500000),
    4: Alveole(level=4, capacity=14000000, cost=1250000),
    5: Alveole(level=5, capacity=30000000, cost=3500000),
    6: Alveole(level=6, capacity=48000000, cost=8000000),
}

# Level 1 is free and unlocked for every new player.
DEFAULT_ALVEOLE_LEVEL = 1


@dataclass(frozen=True)
class Prize:
    """
    A roulette prize.

    Attributes:
        prize_id: Stable identifier used by the client reveal animation
        kind: BEE or FLOWERS
        weight: Positive integer selection weight
        tier: Bee tier awarded (BEE prizes only)
        count: Number of bees awarded (BEE prizes only)
        amount: Flowers awarded (FLOWERS prizes only)
        label: Display text
    """
    prize_id: str
    kind: PrizeKind
    weight: int
    tier: Optional[BeeTier] = None
    count: int = 0
    amount: int = 0
    label: str = ""

    def to_dict(self, index: Optional[int] = None) -> Dict[str, Any]:
        data = {
            "id": self.prize_id,
            "kind": self.kind.value,
            "weight": self.weight,
            "tier": self.tier.value if self.tier else None,
            "count": self.count,
            "amount": self.amount,
            "label": self.label,
        }
        if index is not None:
            data["index"] = index
        return data


def _flowers(prize_id: str, amount: int, weight: int) -> Prize:
    return Prize(
        prize_id=prize_id,
        kind=PrizeKind.FLOWERS,
        weight=weight,
        amount=amount,
        label=f"{amount:,} flowers",
    )


def _bees(prize_id: str, tier: BeeTier, count: int, weight: int) -> Prize:
    noun = "bee" if count == 1 else "bees"
    return Prize(
        prize_id=prize_id,
        kind=PrizeKind.BEE,
        weight=weight,
        tier=tier,
        count=count,
        label=f"{count} {tier.value} {noun}",
    )


# Declaration order is the walk order of the weighted selection.
ROULETTE_PRIZES: Tuple[Prize, ...] = (
    _flowers("flowers_500", 500, 300),
    _flowers("flowers_1000", 1000, 220),
    _flowers("flowers_2500", 2500, 150),
    _bees("baby_x1", BeeTier.BABY, 1, 120),
    _flowers("flowers_5000", 5000, 90),
    _bees("baby_x2", BeeTier.BABY, 2, 60),
    _bees("worker_x1", BeeTier.WORKER, 1, 45),
    _flowers("flowers_10000", 10000, 35),
    _bees("worker_x2", BeeTier.WORKER, 2, 20),
    _flowers("flowers_25000", 25000, 15),
    _bees("elite_x1", BeeTier.ELITE, 1, 12),
    _flowers("flowers_50000", 50000, 8),
    _bees("elite_x2", BeeTier.ELITE, 2, 5),
    _bees("royal_x1", BeeTier.ROYAL, 1, 3),
    _flowers("flowers_250000", 250000, 2),
    _bees("queen_x1", BeeTier.QUEEN, 1, 1),
)

ROULETTE_TOTAL_WEIGHT = sum(p.weight for p in ROULETTE_PRIZES)


@dataclass(frozen=True)
class Mission:
    """A one-time reward unlocked by reaching a referral count."""
    mission_id: int
    friends_required: int
    flowers_reward: int
    tickets_reward: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.mission_id,
            "friendsRequired": self.friends_required,
            "flowersReward": self.flowers_reward,
            "ticketsReward": self.tickets_reward,
        }


MISSIONS: Dict[int, Mission] = {
    m.mission_id: m
    for m in (
        Mission(1, 1, 500, 0),
        Mission(2, 3, 1500, 0),
        Mission(3, 10, 4000, 0),
        Mission(4, 50, 12000, 1),
        Mission(5, 100, 30000, 2),
        Mission(6, 300, 70000, 3),
        Mission(7, 500, 160000, 5),
    )
}

# Resources the test grant may touch, keyed by wire name.
GRANTABLE_RESOURCES = ("honey", "flowers", "tickets", "diamonds", "secondary_coin")


def parse_bee_tier(value: Any) -> Optional[BeeTier]:
    """Return the BeeTier for ``value`` or None if it is not a known tier."""
    if isinstance(value, BeeTier):
        return value
    if not isinstance(value, str):
        return None
    try:
        return BeeTier(value.strip().lower())
    except ValueError:
        return None


def catalog_to_dict() -> Dict[str, Any]:
    """Static tables as sent to the game client."""
    return {
        "bees": [{"id": tier.value, "cost": cost} for tier, cost in BEE_COSTS.items()],
        "alveoles": [a.to_dict() for a in ALVEOLES.values()],
        "honeySale": {
            "minimum": MIN_HONEY_SALE,
            "lotSize": HONEY_PER_LOT,
            "perLot": {
                "diamonds": DIAMONDS_PER_LOT,
                "flowers": FLOWERS_PER_LOT,
                "bvr": BVR_PER_LOT,
            },
        },
        "roulette": {
            "totalWeight": ROULETTE_TOTAL_WEIGHT,
            "prizes": [p.to_dict(i) for i, p in enumerate(ROULETTE_PRIZES)],
        },
        "missions": [m.to_dict() for m in MISSIONS.values()],
    }
