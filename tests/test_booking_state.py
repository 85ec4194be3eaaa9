"""Booking state machine table."""

import pytest

from growshare.core.exceptions import InvalidOperationError
from growshare.domain.booking_state import (
    BLOCKING_STATUSES,
    TERMINAL_STATUSES,
    BookingParty,
    BookingStatus,
    allowed_parties,
    assert_booking_transition,
)

OWNER = {BookingParty.OWNER}
RENTER = {BookingParty.RENTER}
ADMIN = {BookingParty.ADMIN}
SYSTEM = {BookingParty.SYSTEM}


@pytest.mark.parametrize(
    "current, target, parties",
    [
        ("PENDING", "APPROVED", OWNER),
        ("PENDING", "REJECTED", OWNER),
        ("PENDING", "CANCELLED", RENTER),
        ("PENDING", "CANCELLED", ADMIN),
        ("APPROVED", "CANCELLED", RENTER),
        ("APPROVED", "CANCELLED", ADMIN),
        ("APPROVED", "ACTIVE", OWNER),
        ("APPROVED", "ACTIVE", SYSTEM),
        ("ACTIVE", "COMPLETED", OWNER),
        ("ACTIVE", "COMPLETED", SYSTEM),
        ("ACTIVE", "CANCELLED", ADMIN),
    ],
)
def test_allowed_transitions(current, target, parties):
    assert_booking_transition(current, target, parties)


@pytest.mark.parametrize(
    "current, target, parties",
    [
        ("PENDING", "APPROVED", RENTER),
        ("PENDING", "APPROVED", ADMIN),
        ("PENDING", "CANCELLED", OWNER),
        ("APPROVED", "CANCELLED", OWNER),
        ("ACTIVE", "CANCELLED", RENTER),
        ("APPROVED", "ACTIVE", RENTER),
        ("ACTIVE", "COMPLETED", ADMIN),
    ],
)
def test_party_not_allowed_on_edge(current, target, parties):
    with pytest.raises(InvalidOperationError, match="Only the"):
        assert_booking_transition(current, target, parties)


@pytest.mark.parametrize(
    "current, target",
    [
        ("PENDING", "COMPLETED"),
        ("PENDING", "ACTIVE"),
        ("APPROVED", "REJECTED"),
        ("ACTIVE", "APPROVED"),
    ],
)
def test_missing_edge_is_invalid(current, target):
    with pytest.raises(InvalidOperationError, match="Invalid booking transition"):
        assert_booking_transition(current, target, OWNER | RENTER | ADMIN | SYSTEM)


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_terminal_states_have_no_exits(terminal):
    for target in BookingStatus:
        assert allowed_parties(terminal, target) == frozenset()
        with pytest.raises(InvalidOperationError):
            assert_booking_transition(terminal, target, ADMIN)


def test_blocking_statuses_hold_the_calendar():
    assert BLOCKING_STATUSES == {
        BookingStatus.PENDING,
        BookingStatus.APPROVED,
        BookingStatus.ACTIVE,
    }
    assert not BLOCKING_STATUSES & TERMINAL_STATUSES
