"""Cancellation refund tiers.

Renter cancellation of an approved booking is refunded by notice given:
- 7 or more days before the start date: 100%
- 3 to 6 days before: 50%
- fewer than 3 days: 0%

Pending bookings cancel without penalty and administrator overrides refund
in full. Capturing the refund is the payment processor's job; the engine
only records what is owed.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from growshare.domain.booking_state import BookingParty, BookingStatus

# (minimum days before start, refund percentage), first match wins
REFUND_TIERS: list[tuple[int, Decimal]] = [
    (7, Decimal("100")),
    (3, Decimal("50")),
    (0, Decimal("0")),
]


def calculate_refund_percentage(
    start_date: date,
    cancellation_date: date,
    previous_status: BookingStatus,
    cancelled_by: BookingParty,
) -> Decimal:
    """Return the refund percentage (0-100) for a cancellation."""
    if cancelled_by == BookingParty.ADMIN:
        return Decimal("100")
    if BookingStatus(previous_status) == BookingStatus.PENDING:
        return Decimal("100")

    days_before = (start_date - cancellation_date).days
    for min_days, refund_pct in REFUND_TIERS:
        if days_before >= min_days:
            return refund_pct

    # Cancelling after the start date
    return Decimal("0")


def calculate_refund_amount(total_amount: Decimal, refund_pct: Decimal) -> Decimal:
    """Apply a refund percentage to a booking total, rounded to cents."""
    amount = Decimal(total_amount) * refund_pct / Decimal("100")
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
