"""
Economy Module
Handles the game economy: catalog tables, player state, and transitions
"""

from beeminer.economy.engine import EconomyEngine, CLIENT_FIELDS
from beeminer.economy.errors import Rejection, RejectionKind, RejectionReason
from beeminer.economy.models import TransitionResult, UserEconomyState

__all__ = [
    "EconomyEngine",
    "CLIENT_FIELDS",
    "Rejection",
    "RejectionKind",
    "RejectionReason",
    "TransitionResult",
    "UserEconomyState",
]
