"""
Economy Errors
==============

Rejection taxonomy for economy transitions and the storage exceptions the
engine converts into rejections.

Author: jetgause
Created: 2026-10-18
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class RejectionKind(str, Enum):
    """Broad rejection classes, each mapped to an HTTP status class."""
    USER_NOT_FOUND = "UserNotFound"
    INVALID_INPUT = "InvalidInput"
    UNKNOWN_ENTITY = "UnknownEntity"
    PRECONDITION_FAILED = "PreconditionFailed"
    FORBIDDEN = "Forbidden"
    PERSISTENCE_FAILURE = "PersistenceFailure"


class RejectionReason(str, Enum):
    """Specific reason a transition was refused."""
    USER_NOT_FOUND = "UserNotFound"
    INVALID_USER_ID = "InvalidUserId"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_LEVEL = "InvalidLevel"
    INVALID_FIELD_VALUE = "InvalidFieldValue"
    UNKNOWN_TIER = "UnknownTier"
    UNKNOWN_MISSION = "UnknownMission"
    UNKNOWN_RESOURCE = "UnknownResource"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    ALREADY_UNLOCKED = "AlreadyUnlocked"
    ALREADY_CLAIMED = "AlreadyClaimed"
    REQUIREMENT_NOT_MET = "RequirementNotMet"
    NO_TICKETS_AVAILABLE = "NoTicketsAvailable"
    FEATURE_DISABLED = "FeatureDisabled"
    FORBIDDEN_FIELD = "ForbiddenField"
    PERSISTENCE_FAILURE = "PersistenceFailure"


REASON_KINDS: Dict[RejectionReason, RejectionKind] = {
    RejectionReason.USER_NOT_FOUND: RejectionKind.USER_NOT_FOUND,
    RejectionReason.INVALID_USER_ID: RejectionKind.INVALID_INPUT,
    RejectionReason.INVALID_AMOUNT: RejectionKind.INVALID_INPUT,
    RejectionReason.INVALID_LEVEL: RejectionKind.INVALID_INPUT,
    RejectionReason.INVALID_FIELD_VALUE: RejectionKind.INVALID_INPUT,
    RejectionReason.UNKNOWN_TIER: RejectionKind.UNKNOWN_ENTITY,
    RejectionReason.UNKNOWN_MISSION: RejectionKind.UNKNOWN_ENTITY,
    RejectionReason.UNKNOWN_RESOURCE: RejectionKind.UNKNOWN_ENTITY,
    RejectionReason.INSUFFICIENT_FUNDS: RejectionKind.PRECONDITION_FAILED,
    RejectionReason.ALREADY_UNLOCKED: RejectionKind.PRECONDITION_FAILED,
    RejectionReason.ALREADY_CLAIMED: RejectionKind.PRECONDITION_FAILED,
    RejectionReason.REQUIREMENT_NOT_MET: RejectionKind.PRECONDITION_FAILED,
    RejectionReason.NO_TICKETS_AVAILABLE: RejectionKind.PRECONDITION_FAILED,
    RejectionReason.FEATURE_DISABLED: RejectionKind.FORBIDDEN,
    RejectionReason.FORBIDDEN_FIELD: RejectionKind.FORBIDDEN,
    RejectionReason.PERSISTENCE_FAILURE: RejectionKind.PERSISTENCE_FAILURE,
}

HTTP_STATUS_BY_KIND: Dict[RejectionKind, int] = {
    RejectionKind.USER_NOT_FOUND: 404,
    RejectionKind.INVALID_INPUT: 400,
    RejectionKind.UNKNOWN_ENTITY: 400,
    RejectionKind.PRECONDITION_FAILED: 400,
    RejectionKind.FORBIDDEN: 403,
    RejectionKind.PERSISTENCE_FAILURE: 500,
}


@dataclass(frozen=True)
class Rejection:
    """Structured refusal of a transition."""
    reason: RejectionReason
    message: str

    @property
    def kind(self) -> RejectionKind:
        return REASON_KINDS[self.reason]

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    @property
    def retryable(self) -> bool:
        # Writes are all-or-nothing, so only storage failures are safe to retry.
        return self.kind is RejectionKind.PERSISTENCE_FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind.value,
            "reason": self.reason.value,
            "message": self.message,
            "retryable": self.retryable,
        }


class PersistenceError(Exception):
    """Raised by state stores when a read or write fails."""


class StaleStateError(PersistenceError):
    """Raised when a save lost a compare-and-swap race on the state version."""

    def __init__(self, user_id: str, expected_version):
        super().__init__(
            f"State for user {user_id} changed concurrently "
            f"(expected version {expected_version})"
        )
        self.user_id = user_id
        self.expected_version = expected_version
