"""Shared service helpers: store access, date parsing and row -> model mappers."""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from flask import current_app
from pydantic import ValidationError

from rental_app.exceptions import BackendError
from rental_app.models.booking import Booking, Payment, VehicleSummary
from rental_app.models.store import Store
from rental_app.models.user import UserProfile
from rental_app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

STORE_KEY = "rental_store"


def _store() -> Store:
    """Get the store registered on the active application."""
    return current_app.extensions[STORE_KEY]


def _config(key: str, default=None):
    """Read an app setting, falling back to `default` outside an app context."""
    try:
        return current_app.config.get(key, default)
    except RuntimeError:
        return default


# -------- date & math helpers --------
def parse_when(value) -> datetime:
    """
    Parse a booking date into an aware datetime.
    Accepts 'YYYY-MM-DD', ISO datetimes (with or without offset / 'Z'),
    date and datetime objects. A bare date or naive value is taken as UTC.
    Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("empty date")
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    else:
        raise ValueError(f"Unsupported date: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _now() -> datetime:
    """Wrapper for easier testing/mocking."""
    return datetime.now(timezone.utc)


def _today() -> date:
    return _now().date()


def round2(x: float) -> float:
    return round(float(x), 2)


def to_float_safe(value) -> Optional[float]:
    """Safely convert to float; return None if invalid."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _lc(s):
    """Safe lowercase for case-insensitive compare."""
    return (s or "").lower()


def blank_to_none(data: dict) -> dict:
    """Form posts send '' for untouched inputs; treat those as absent."""
    return {k: (v if not (isinstance(v, str) and not v.strip()) else None) for k, v in data.items()}


# -------- row -> model mappers (one per entity) --------
def _validated(model, row: dict, what: str):
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.error("Malformed %s row %s: %s", what, row.get("id"), e)
        raise BackendError(f"Stored {what} record is malformed") from e


def vehicle_from_row(row: Optional[dict]) -> Optional[Vehicle]:
    if not row:
        return None
    return _validated(Vehicle, row, "vehicle")


def booking_from_row(row: Optional[dict], vehicle_row: Optional[dict] = None) -> Optional[Booking]:
    if not row:
        return None
    data = dict(row)
    if vehicle_row:
        data["vehicle"] = VehicleSummary.model_validate(vehicle_row)
    return _validated(Booking, data, "booking")


def payment_from_row(row: Optional[dict]) -> Optional[Payment]:
    if not row:
        return None
    return _validated(Payment, row, "payment")


def profile_from_row(row: Optional[dict]) -> Optional[UserProfile]:
    if not row:
        return None
    return _validated(UserProfile, row, "profile")
