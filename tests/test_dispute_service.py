"""Disputes and their message thread."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from growshare.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from growshare.domain.booking_state import BookingStatus
from growshare.domain.dispute_state import DisputeStatus
from growshare.services.dispute_service import visible_messages
from growshare.services.notification_service import NotificationType
from tests.conftest import actor_for


@pytest.fixture
async def booking(db, bookings, plot, owner, renter):
    booking = await bookings.create_booking(
        db, plot.id, actor_for(renter), date(2025, 6, 1), date(2025, 8, 30)
    )
    return await bookings.transition_booking(db, booking.id, actor_for(owner), "APPROVED")


@pytest.fixture
async def dispute(db, disputes, dispatcher, booking, renter):
    dispute = await disputes.open_dispute(
        db, booking.id, actor_for(renter), "ACCESS_ISSUES", "The gate was locked all week."
    )
    dispatcher.sent.clear()
    return dispute


async def test_renter_opens_dispute(db, disputes, dispatcher, booking, owner, renter):
    dispatcher.sent.clear()
    dispute = await disputes.open_dispute(
        db,
        booking.id,
        actor_for(renter),
        "access_issues",
        "  The gate was locked all week.  ",
        requested_amount="100",
        evidence=["https://files.example.com/gate.jpg"],
    )

    assert dispute.status == DisputeStatus.OPEN.value
    assert dispute.reason == "ACCESS_ISSUES"
    assert dispute.description == "The gate was locked all week."
    assert dispute.requested_amount == Decimal("100.00")
    assert dispute.filed_by_id == renter.id
    assert dispute.evidence == ["https://files.example.com/gate.jpg"]
    assert booking.status == BookingStatus.APPROVED.value
    assert dispatcher.types_for(owner.id) == [NotificationType.DISPUTE_FILED]
    assert dispatcher.types_for(renter.id) == []


async def test_owner_filing_notifies_renter(db, disputes, dispatcher, booking, owner, renter):
    dispatcher.sent.clear()
    await disputes.open_dispute(db, booking.id, actor_for(owner), "DAMAGE_CLAIM", "Fence broken.")
    assert dispatcher.types_for(renter.id) == [NotificationType.DISPUTE_FILED]


async def test_second_dispute_conflicts(db, disputes, dispute, booking, owner):
    with pytest.raises(ConflictError):
        await disputes.open_dispute(db, booking.id, actor_for(owner), "OTHER", "Me too.")


async def test_stranger_cannot_file(db, disputes, booking, other_renter, admin):
    with pytest.raises(ForbiddenError):
        await disputes.open_dispute(db, booking.id, actor_for(other_renter), "OTHER", "Hi")
    with pytest.raises(ForbiddenError):
        await disputes.open_dispute(db, booking.id, actor_for(admin), "OTHER", "Hi")


async def test_missing_booking_is_not_found(db, disputes, renter):
    with pytest.raises(NotFoundError):
        await disputes.open_dispute(db, uuid4(), actor_for(renter), "OTHER", "Hi")


@pytest.mark.parametrize(
    "reason, description, amount",
    [
        ("NOT_A_REASON", "Valid description", None),
        ("OTHER", "   ", None),
        ("OTHER", "Valid description", "450.01"),
        ("OTHER", "Valid description", "-1"),
        ("OTHER", "Valid description", "lots"),
    ],
)
async def test_invalid_dispute_input(db, disputes, booking, renter, reason, description, amount):
    with pytest.raises(ValidationError):
        await disputes.open_dispute(
            db, booking.id, actor_for(renter), reason, description, requested_amount=amount
        )


async def test_validation_runs_before_lookup(db, disputes, renter):
    with pytest.raises(ValidationError):
        await disputes.open_dispute(db, uuid4(), actor_for(renter), "NOT_A_REASON", "x")


async def test_only_admin_resolves(db, disputes, dispute, renter, owner):
    for actor in (renter, owner):
        with pytest.raises(ForbiddenError):
            await disputes.resolve_dispute(db, dispute.id, actor_for(actor), "NO_REFUND", "No.")
    assert dispute.status == DisputeStatus.OPEN.value


async def test_admin_resolves_and_notifies_both(db, disputes, dispatcher, dispute, owner, renter, admin):
    resolved = await disputes.resolve_dispute(
        db, dispute.id, actor_for(admin), "PARTIAL_REFUND", "Half the month lost.",
        resolved_amount=Decimal("75"),
    )

    assert resolved.status == DisputeStatus.RESOLVED.value
    assert resolved.resolution == "PARTIAL_REFUND"
    assert resolved.resolution_notes == "Half the month lost."
    assert resolved.resolved_amount == Decimal("75.00")
    assert resolved.resolved_by_id == admin.id
    assert resolved.resolved_at is not None
    assert dispatcher.types_for(owner.id) == [NotificationType.DISPUTE_RESOLVED]
    assert dispatcher.types_for(renter.id) == [NotificationType.DISPUTE_RESOLVED]

    with pytest.raises(InvalidOperationError):
        await disputes.resolve_dispute(db, dispute.id, actor_for(admin), "NO_REFUND", "Again")


async def test_resolution_amount_is_bounded(db, disputes, dispute, admin):
    with pytest.raises(ValidationError):
        await disputes.resolve_dispute(
            db, dispute.id, actor_for(admin), "FULL_REFUND", None, resolved_amount="500"
        )
    with pytest.raises(ValidationError):
        await disputes.resolve_dispute(db, dispute.id, actor_for(admin), "EVERYTHING", None)


async def test_missing_dispute_is_not_found(db, disputes, admin):
    with pytest.raises(NotFoundError):
        await disputes.resolve_dispute(db, uuid4(), actor_for(admin), "NO_REFUND", None)


async def test_party_can_request_review(db, disputes, dispatcher, dispute, owner, renter):
    updated = await disputes.update_dispute_status(
        db, dispute.id, actor_for(owner), "UNDER_REVIEW"
    )
    assert updated.status == DisputeStatus.UNDER_REVIEW.value
    assert dispatcher.types_for(renter.id) == [NotificationType.DISPUTE_UNDER_REVIEW]
    assert dispatcher.types_for(owner.id) == []

    with pytest.raises(InvalidOperationError):
        await disputes.update_dispute_status(db, dispute.id, actor_for(owner), "UNDER_REVIEW")


async def test_party_cannot_close(db, disputes, dispute, renter, other_renter):
    with pytest.raises(ForbiddenError):
        await disputes.update_dispute_status(db, dispute.id, actor_for(renter), "CLOSED")
    with pytest.raises(ForbiddenError):
        await disputes.update_dispute_status(
            db, dispute.id, actor_for(other_renter), "UNDER_REVIEW"
        )


async def test_admin_status_changes(db, disputes, dispute, admin):
    with pytest.raises(InvalidOperationError):
        await disputes.update_dispute_status(db, dispute.id, actor_for(admin), "RESOLVED")

    await disputes.update_dispute_status(db, dispute.id, actor_for(admin), "UNDER_REVIEW")
    await disputes.update_dispute_status(db, dispute.id, actor_for(admin), "OPEN")
    closed = await disputes.update_dispute_status(db, dispute.id, actor_for(admin), "CLOSED")
    assert closed.status == DisputeStatus.CLOSED.value

    with pytest.raises(InvalidOperationError):
        await disputes.resolve_dispute(db, dispute.id, actor_for(admin), "NO_REFUND", None)


async def test_internal_messages_are_hidden_from_parties(db, disputes, dispute, booking, owner, renter, admin):
    await disputes.append_dispute_message(db, dispute.id, actor_for(renter), "Photos attached.")
    await disputes.append_dispute_message(
        db, dispute.id, actor_for(admin), "Owner has prior complaints.", is_internal=True
    )
    spoofed = await disputes.append_dispute_message(
        db, dispute.id, actor_for(owner), "I'll fix the gate.", is_internal=True
    )
    assert spoofed.is_internal is False

    renter_view = await disputes.get_dispute_for_viewer(db, booking.id, actor_for(renter))
    assert [m.content for m in renter_view.messages] == ["Photos attached.", "I'll fix the gate."]
    assert renter_view.viewer_is_admin is False

    admin_view = await disputes.get_dispute_for_viewer(db, booking.id, actor_for(admin))
    assert len(admin_view.messages) == 3
    assert admin_view.messages[1].is_internal is True


async def test_message_guards(db, disputes, dispute, renter, other_renter):
    with pytest.raises(ValidationError):
        await disputes.append_dispute_message(db, dispute.id, actor_for(renter), "   ")
    with pytest.raises(ForbiddenError):
        await disputes.append_dispute_message(db, dispute.id, actor_for(other_renter), "Hello")
    with pytest.raises(NotFoundError):
        await disputes.append_dispute_message(db, uuid4(), actor_for(renter), "Hello")


async def test_dispute_view_guards(db, disputes, booking, renter, other_renter):
    with pytest.raises(NotFoundError):
        await disputes.get_dispute_for_viewer(db, booking.id, actor_for(renter))
    with pytest.raises(ForbiddenError):
        await disputes.get_dispute_for_viewer(db, booking.id, actor_for(other_renter))
    with pytest.raises(NotFoundError):
        await disputes.get_dispute_for_viewer(db, uuid4(), actor_for(renter))


def test_visible_messages_filters_internal():
    class Msg:
        def __init__(self, content, is_internal):
            self.content = content
            self.is_internal = is_internal

    messages = [Msg("a", False), Msg("b", True), Msg("c", False)]
    assert [m.content for m in visible_messages(messages, viewer_is_admin=False)] == ["a", "c"]
    assert len(visible_messages(messages, viewer_is_admin=True)) == 3


async def test_list_disputes_for_user(db, disputes, dispute, owner, renter, other_renter):
    assert [d.id for d in await disputes.list_disputes_for_user(db, actor_for(renter), "filed")] == [dispute.id]
    assert await disputes.list_disputes_for_user(db, actor_for(renter), "received") == []
    assert [d.id for d in await disputes.list_disputes_for_user(db, actor_for(owner), "received")] == [dispute.id]
    assert [d.id for d in await disputes.list_disputes_for_user(db, actor_for(owner))] == [dispute.id]
    assert await disputes.list_disputes_for_user(db, actor_for(other_renter)) == []
    assert await disputes.list_disputes_for_user(db, actor_for(owner), status="RESOLVED") == []

    with pytest.raises(ValidationError):
        await disputes.list_disputes_for_user(db, actor_for(owner), "everyone")


async def test_admin_list_is_paginated(db, disputes, dispute, renter, admin):
    page = await disputes.list_disputes_for_admin(db, actor_for(admin), page=1, limit=1)
    assert page.total == 1
    assert page.total_pages == 1
    assert [d.id for d in page.items] == [dispute.id]

    empty = await disputes.list_disputes_for_admin(db, actor_for(admin), status="CLOSED")
    assert empty.total == 0
    assert empty.total_pages == 0

    with pytest.raises(ForbiddenError):
        await disputes.list_disputes_for_admin(db, actor_for(renter))
    with pytest.raises(ValidationError):
        await disputes.list_disputes_for_admin(db, actor_for(admin), page=0)
