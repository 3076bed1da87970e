"""
Roulette prize selection.

Weighted draw over the fixed prize table. Selection is a pure function of a
single uniform draw so spins can be replayed from a seeded random source.
"""

import random
from typing import Optional, Sequence, Tuple

from .catalog import ROULETTE_PRIZES, Prize


def total_weight(prizes: Sequence[Prize] = ROULETTE_PRIZES) -> int:
    return sum(p.weight for p in prizes)


def select_prize(draw: float, prizes: Sequence[Prize] = ROULETTE_PRIZES) -> Tuple[int, Prize]:
    """
    Pick the prize for a draw in ``[0, total_weight)``.

    Walks the table in declaration order subtracting each weight; the first
    entry where the remainder reaches zero or below wins. Falls back to the
    last entry if float drift leaves the remainder positive.
    """
    remainder = draw
    for index, prize in enumerate(prizes):
        remainder -= prize.weight
        if remainder <= 0:
            return index, prize
    return len(prizes) - 1, prizes[-1]


def spin(rng: Optional[random.Random] = None, prizes: Sequence[Prize] = ROULETTE_PRIZES) -> Tuple[int, Prize]:
    """Draw once from ``rng`` and return the selected (index, prize)."""
    rng = rng or random
    draw = rng.random() * total_weight(prizes)
    return select_prize(draw, prizes)
