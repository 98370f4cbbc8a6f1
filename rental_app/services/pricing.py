"""Booking price and date-range validity."""
from dataclasses import dataclass
from typing import Optional

from rental_app.services.common import parse_when, round2, to_float_safe

MIN_BILLABLE_DAYS = 1


@dataclass(frozen=True)
class PriceQuote:
    days: int
    total_price: Optional[float]
    is_valid: bool
    error: Optional[str] = None


def _invalid(message: str) -> PriceQuote:
    return PriceQuote(days=0, total_price=None, is_valid=False, error=message)


def quote_booking(start_date, end_date, daily_rate) -> PriceQuote:
    """
    Work out the billable days and total for renting between two dates.

    - a date that cannot be parsed makes the range invalid
    - same start and end is a one-day rental
    - a later end date bills whole days between the two, never less than one
    - an end date before the start is invalid
    - the total is rounded to whole cents

    There is no upper limit on the rental length, and existing bookings are
    not consulted here.
    """
    rate = to_float_safe(daily_rate)
    if rate is None or rate <= 0:
        return _invalid("Vehicle has no valid daily rate")

    try:
        start = parse_when(start_date)
        end = parse_when(end_date)
    except (TypeError, ValueError):
        return _invalid("Please enter valid dates (YYYY-MM-DD)")

    if end > start:
        days = max(MIN_BILLABLE_DAYS, (end - start).days)
    elif end == start:
        days = MIN_BILLABLE_DAYS
    else:
        return _invalid("End date must be on or after the start date")

    return PriceQuote(days=days, total_price=round2(days * rate), is_valid=True)
