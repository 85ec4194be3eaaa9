"""Dispute state machine.

States: OPEN → UNDER_REVIEW → RESOLVED, with CLOSED as an admin dismissal.
"""

from enum import Enum

from growshare.core.exceptions import InvalidOperationError


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class DisputeReason(str, Enum):
    PROPERTY_NOT_AS_DESCRIBED = "PROPERTY_NOT_AS_DESCRIBED"
    ACCESS_ISSUES = "ACCESS_ISSUES"
    PAYMENT_DISPUTE = "PAYMENT_DISPUTE"
    EARLY_TERMINATION = "EARLY_TERMINATION"
    DAMAGE_CLAIM = "DAMAGE_CLAIM"
    SAFETY_CONCERN = "SAFETY_CONCERN"
    COMMUNICATION_ISSUES = "COMMUNICATION_ISSUES"
    OTHER = "OTHER"


class DisputeResolution(str, Enum):
    FULL_REFUND = "FULL_REFUND"
    PARTIAL_REFUND = "PARTIAL_REFUND"
    NO_REFUND = "NO_REFUND"
    DEPOSIT_RETURNED = "DEPOSIT_RETURNED"


DISPUTE_TRANSITIONS: dict[DisputeStatus, set[DisputeStatus]] = {
    DisputeStatus.OPEN: {DisputeStatus.UNDER_REVIEW, DisputeStatus.RESOLVED, DisputeStatus.CLOSED},
    DisputeStatus.UNDER_REVIEW: {DisputeStatus.OPEN, DisputeStatus.RESOLVED, DisputeStatus.CLOSED},  # can reopen
    DisputeStatus.RESOLVED: set(),
    DisputeStatus.CLOSED: set(),
}

# The only status change the booking parties may make themselves
PARTY_STATUS_TARGETS = frozenset({DisputeStatus.UNDER_REVIEW})


def assert_dispute_transition(current_status: str, new_status: str) -> None:
    """Validate dispute state transition."""
    allowed = DISPUTE_TRANSITIONS.get(DisputeStatus(current_status), set())
    if DisputeStatus(new_status) not in allowed:
        raise InvalidOperationError(
            f"Invalid dispute transition: {current_status} → {new_status}"
        )


def can_resolve_dispute(status: str) -> tuple[bool, str | None]:
    """Check if dispute can be resolved."""
    if status == DisputeStatus.RESOLVED:
        return False, "Dispute is already resolved"
    if status == DisputeStatus.CLOSED:
        return False, "Dispute has been closed"
    return True, None
