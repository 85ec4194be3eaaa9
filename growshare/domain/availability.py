"""Date-range rules for new booking requests."""

import math
from datetime import date, datetime

from growshare.core.exceptions import ValidationError
from growshare.domain.booking_state import BLOCKING_STATUSES

__all__ = [
    "BLOCKING_STATUSES",
    "DAYS_PER_MONTH",
    "add_years",
    "duration_in_months",
    "parse_booking_date",
    "ranges_overlap",
    "validate_booking_window",
]

DAYS_PER_MONTH = 30


def parse_booking_date(value: date | datetime | str | None, field_name: str = "date") -> date:
    """Coerce a request value to a calendar date.

    Accepts dates, datetimes (time of day is dropped) and ISO 8601 strings in
    either form.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            return date.fromisoformat(raw)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}: {value!r} is not a valid calendar date")


def add_years(day: date, years: int) -> date:
    """Shift a date by whole years; 29 February lands on 28 February."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def duration_in_months(start_date: date, end_date: date) -> int:
    """Lease length in whole months, rounding any partial month up."""
    return math.ceil((end_date - start_date).days / DAYS_PER_MONTH)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive overlap test: ranges that merely touch still conflict."""
    return start_a <= end_b and start_b <= end_a


def validate_booking_window(
    start_date: date,
    end_date: date,
    today: date,
    horizon_years: int = 10,
) -> None:
    """Check the requested dates against today and the booking horizon."""
    if start_date < today:
        raise ValidationError("Start date cannot be in the past")
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")

    horizon = add_years(today, horizon_years)
    if start_date > horizon or end_date > horizon:
        raise ValidationError(
            f"Bookings cannot extend more than {horizon_years} years into the future"
        )
