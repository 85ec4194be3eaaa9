"""Booking state machine."""

from enum import Enum

from growshare.core.exceptions import InvalidOperationError


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingParty(str, Enum):
    """How an actor relates to a particular booking."""

    OWNER = "owner"
    RENTER = "renter"
    ADMIN = "admin"
    SYSTEM = "system"


TERMINAL_STATUSES = frozenset(
    {BookingStatus.REJECTED, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)

# Statuses that hold the plot calendar
BLOCKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.ACTIVE}
)

BOOKING_TRANSITIONS: dict[BookingStatus, dict[BookingStatus, frozenset[BookingParty]]] = {
    BookingStatus.PENDING: {
        BookingStatus.APPROVED: frozenset({BookingParty.OWNER}),
        BookingStatus.REJECTED: frozenset({BookingParty.OWNER}),
        BookingStatus.CANCELLED: frozenset({BookingParty.RENTER, BookingParty.ADMIN}),
    },
    BookingStatus.APPROVED: {
        BookingStatus.ACTIVE: frozenset({BookingParty.OWNER, BookingParty.SYSTEM}),
        BookingStatus.CANCELLED: frozenset({BookingParty.RENTER, BookingParty.ADMIN}),
    },
    BookingStatus.ACTIVE: {
        BookingStatus.COMPLETED: frozenset({BookingParty.OWNER, BookingParty.SYSTEM}),
        BookingStatus.CANCELLED: frozenset({BookingParty.ADMIN}),
    },
    BookingStatus.REJECTED: {},
    BookingStatus.COMPLETED: {},
    BookingStatus.CANCELLED: {},
}


def allowed_parties(current: BookingStatus, target: BookingStatus) -> frozenset[BookingParty]:
    return BOOKING_TRANSITIONS.get(BookingStatus(current), {}).get(BookingStatus(target), frozenset())


def assert_booking_edge(
    current: str | BookingStatus, target: str | BookingStatus
) -> frozenset[BookingParty]:
    """Raise unless the edge exists; returns the parties allowed on it.

    Independent of who is asking, so a missing edge or a terminal source is
    reported the same way to every caller.
    """
    current = BookingStatus(current)
    target = BookingStatus(target)

    if current in TERMINAL_STATUSES:
        raise InvalidOperationError(
            f"Cannot change a {current.value.lower()} booking"
        )

    allowed = allowed_parties(current, target)
    if not allowed:
        raise InvalidOperationError(
            f"Invalid booking transition: {current.value} → {target.value}"
        )
    return allowed


def assert_booking_transition(
    current: str | BookingStatus,
    target: str | BookingStatus,
    parties: set[BookingParty] | frozenset[BookingParty],
) -> None:
    """Raise unless one of ``parties`` may move a booking from ``current`` to ``target``."""
    current = BookingStatus(current)
    target = BookingStatus(target)
    allowed = assert_booking_edge(current, target)
    if not allowed & set(parties):
        raise InvalidOperationError(
            f"Only the {' or '.join(sorted(p.value for p in allowed))} may move a booking "
            f"from {current.value} to {target.value}"
        )
