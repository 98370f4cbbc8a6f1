"""Cancellation window shown on the booking details page."""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional

from rental_app.services.common import _now, parse_when
from rental_app.utils.constants import CANCELLABLE_STATUSES

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF_HOURS = 24
# above this many hours the cancel button is rendered as a plain action
RELAXED_HOURS = 48


@dataclass(frozen=True)
class CancellationWindow:
    is_cancellable: bool
    hours_until_start: int
    countdown_text: str
    cancel_button_variant: str = "danger"

    def to_dict(self) -> dict:
        return asdict(self)


CLOSED = CancellationWindow(is_cancellable=False, hours_until_start=0, countdown_text="")


def whole_hours(delta: timedelta) -> int:
    """Whole hours in `delta`, truncated toward zero."""
    return int(delta.total_seconds() / 3600)


def format_remaining(delta: timedelta) -> str:
    total = max(0, int(delta.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes}m {seconds}s left"


def cancellation_window(start_date, status: str, now: Optional[datetime] = None,
                        cutoff_hours: int = DEFAULT_CUTOFF_HOURS) -> CancellationWindow:
    """
    A renter may cancel a pending or confirmed booking until `cutoff_hours`
    before it starts. The countdown counts down to that cutoff, not to the start.

    Pure: recomputing it every second changes nothing that is stored.
    An unparseable start date is logged and reported as not cancellable.
    """
    now = parse_when(now) if now is not None else _now()
    try:
        start = parse_when(start_date)
    except (TypeError, ValueError):
        logger.warning("Invalid booking start date encountered: %r", start_date)
        return CLOSED

    until_start = start - now
    hours = whole_hours(until_start)
    cancellable = (status or "").lower() in CANCELLABLE_STATUSES and hours > cutoff_hours

    if not cancellable:
        return CancellationWindow(is_cancellable=False, hours_until_start=hours, countdown_text="")

    remaining = until_start - timedelta(hours=cutoff_hours)
    return CancellationWindow(
        is_cancellable=True,
        hours_until_start=hours,
        countdown_text=format_remaining(remaining),
        cancel_button_variant="primary" if hours > RELAXED_HOURS else "danger",
    )
