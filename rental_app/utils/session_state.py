"""
Per-session application state kept in the signed Flask session cookie:
who is signed in, and which booking is half-way through checkout.
"""
from typing import Optional

from flask import session

USER_KEY = "uid"
EMAIL_KEY = "email"
FLOW_KEY = "booking_flow"


class SessionState:
    """Thin accessor over `flask.session` with explicit start/end of a sign-in."""

    @staticmethod
    def begin(user) -> None:
        """Start a fresh session for `user` (an AuthUser)."""
        session.clear()
        session[USER_KEY] = user.id
        session[EMAIL_KEY] = user.email

    @staticmethod
    def end() -> None:
        """Drop everything, including any unfinished booking flow."""
        session.clear()

    @staticmethod
    def user_id() -> Optional[str]:
        return session.get(USER_KEY)

    # ---------- booking flow ----------
    @staticmethod
    def start_booking_flow(vehicle_id: str, booking_id: str, form: dict) -> None:
        session[FLOW_KEY] = {
            "vehicle_id": vehicle_id,
            "booking_id": booking_id,
            "form": {k: form.get(k, "") for k in ("start_date", "end_date", "pickup_address", "dropoff_address")},
        }

    @staticmethod
    def booking_flow() -> Optional[dict]:
        return session.get(FLOW_KEY)

    @staticmethod
    def clear_booking_flow() -> None:
        session.pop(FLOW_KEY, None)
