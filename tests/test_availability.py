"""Date-range rules for booking requests."""

from datetime import date, datetime

import pytest

from growshare.core.exceptions import ValidationError
from growshare.domain.availability import (
    add_years,
    duration_in_months,
    parse_booking_date,
    ranges_overlap,
    validate_booking_window,
)

TODAY = date(2025, 5, 1)


@pytest.mark.parametrize(
    "value",
    [
        date(2025, 6, 1),
        datetime(2025, 6, 1, 15, 30),
        "2025-06-01",
        "2025-06-01T00:00:00",
        "2025-06-01T00:00:00Z",
        "2025-06-01T08:00:00+02:00",
    ],
)
def test_parse_booking_date_accepts_dates_and_datetimes(value):
    assert parse_booking_date(value) == date(2025, 6, 1)


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2025-02-30", None, 20250601])
def test_parse_booking_date_rejects_garbage(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_booking_date(value, "start date")
    assert exc_info.value.kind == "ValidationError"


def test_add_years_maps_leap_day_to_feb_28():
    assert add_years(date(2024, 2, 29), 10) == date(2034, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)
    assert add_years(date(2025, 5, 1), 10) == date(2035, 5, 1)


@pytest.mark.parametrize(
    "start, end, months",
    [
        (date(2025, 6, 1), date(2025, 8, 30), 3),  # 90 days
        (date(2025, 6, 1), date(2025, 8, 31), 4),  # 91 days
        (date(2025, 6, 1), date(2025, 6, 2), 1),
        (date(2025, 6, 1), date(2025, 7, 1), 1),  # 30 days
    ],
)
def test_duration_rounds_partial_months_up(start, end, months):
    assert duration_in_months(start, end) == months


def test_ranges_overlap_is_inclusive():
    a = (date(2025, 6, 1), date(2025, 8, 30))
    assert ranges_overlap(*a, date(2025, 6, 15), date(2025, 6, 20))
    assert ranges_overlap(*a, date(2025, 5, 1), date(2025, 6, 1))
    assert ranges_overlap(*a, date(2025, 8, 30), date(2025, 9, 30))
    assert ranges_overlap(*a, date(2025, 5, 1), date(2025, 12, 1))
    assert not ranges_overlap(*a, date(2025, 8, 31), date(2025, 9, 30))
    assert not ranges_overlap(*a, date(2025, 4, 1), date(2025, 5, 31))


def test_window_allows_same_day_start():
    validate_booking_window(TODAY, date(2025, 6, 1), TODAY)


def test_window_rejects_past_start():
    with pytest.raises(ValidationError, match="past"):
        validate_booking_window(date(2025, 4, 30), date(2025, 6, 1), TODAY)


@pytest.mark.parametrize("end", [date(2025, 6, 1), date(2025, 5, 31)])
def test_window_requires_end_after_start(end):
    with pytest.raises(ValidationError, match="after start"):
        validate_booking_window(date(2025, 6, 1), end, TODAY)


def test_window_enforces_horizon():
    validate_booking_window(date(2035, 4, 1), date(2035, 5, 1), TODAY)
    with pytest.raises(ValidationError, match="10 years"):
        validate_booking_window(date(2035, 4, 1), date(2035, 5, 2), TODAY)
