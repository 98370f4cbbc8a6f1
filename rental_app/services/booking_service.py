"""Booking lifecycle: create, pay, cancel, owner decisions and booking queries."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from pydantic import ValidationError

from rental_app.exceptions import (
    BackendError,
    BookingConflictError,
    BookingNotFoundError,
    InvalidTransitionError,
)
from rental_app.models.booking import Booking, BookingFormData, Payment, PaymentFormData
from rental_app.models.user import UserProfile
from rental_app.models.vehicle import Vehicle
from rental_app.services.common import (
    _config,
    _store,
    booking_from_row,
    parse_when,
    payment_from_row,
    profile_from_row,
    vehicle_from_row,
)
from rental_app.services.countdown import DEFAULT_CUTOFF_HOURS, cancellation_window
from rental_app.services.pricing import quote_booking
from rental_app.services.vehicle_service import validation_message
from rental_app.utils.constants import CANCELLABLE_STATUSES, BookingStatus, OwnerDecision, PaymentStatus
from rental_app.utils.security import new_transaction_id

if TYPE_CHECKING:
    from rental_app.models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)

OVERLAP_ALLOW = "allow"
OVERLAP_REJECT = "reject"

_ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    # completion is recorded outside this application
    BookingStatus.CONFIRMED.value: {BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value},
    BookingStatus.COMPLETED.value: set(),
    BookingStatus.CANCELLED.value: set(),
}


def validate_transition(current: str, target: str) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if target not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current=current, target=target)


def find_conflicts(st, vehicle_id: str, start_date, end_date) -> List[dict]:
    """
    Non-cancelled bookings of the vehicle whose dates touch [start, end].
    Both ends are inclusive; rows with unreadable dates are skipped.
    """
    start, end = parse_when(start_date), parse_when(end_date)
    out = []
    for b in st.list_bookings(vehicle_ids=[vehicle_id]):
        if b.get("status") == BookingStatus.CANCELLED.value:
            continue
        try:
            s, e = parse_when(b["start_date"]), parse_when(b["end_date"])
        except (KeyError, ValueError):
            continue
        if s <= end and e >= start:
            out.append(b)
    return out


@dataclass
class BookingDetails:
    booking: Booking
    vehicle: Optional[Vehicle] = None
    customer: Optional[UserProfile] = None
    payment: Optional[Payment] = None


class BookingService:
    """
    Renter-visible booking lifecycle:
      pending -> confirmed   (successful mock payment)
      pending|confirmed -> cancelled   (renter, more than the cutoff before start)
    `completed` is only ever read here.
    """

    # --------------- Commands ---------------
    @staticmethod
    def create_booking(user_id: str, vehicle_id: str, form: dict, *,
                       overlap_policy: Optional[str] = None, store: Optional["Store"] = None):
        """
        Price the requested dates and store a `pending` booking.

        Returns:
            (ok: bool, message: str, booking_id: Optional[str])
        """
        st = store or _store()
        if not user_id:
            return False, "Please sign in to book a vehicle", None

        vehicle = vehicle_from_row(st.get_vehicle(vehicle_id))
        if vehicle is None:
            return False, "Vehicle not found", None
        if not vehicle.available:
            return False, "This vehicle is not available for booking", None

        try:
            data = BookingFormData.model_validate(form)
        except ValidationError as e:
            return False, validation_message(e), None

        quote = quote_booking(data.start_date, data.end_date, vehicle.daily_rate)
        if not quote.is_valid:
            return False, quote.error, None

        policy = overlap_policy or _config("BOOKING_OVERLAP_POLICY", OVERLAP_ALLOW)
        if policy == OVERLAP_REJECT and find_conflicts(st, vehicle.id, data.start_date, data.end_date):
            logger.info("Booking conflict on vehicle %s for %s..%s", vehicle.id, data.start_date, data.end_date)
            return False, BookingConflictError().message, None

        try:
            bid = st.create_booking({
                "vehicle_id": vehicle.id,
                "user_id": user_id,
                "start_date": data.start_date,
                "end_date": data.end_date,
                "total_price": quote.total_price,
                "status": BookingStatus.PENDING.value,
                "owner_decision": OwnerDecision.PENDING.value,
                "pickup_address": data.pickup_address,
                "dropoff_address": data.dropoff_address,
                "payment_id": None,
            })
        except BackendError as e:
            logger.warning("create_booking failed for user %s: %s", user_id, e)
            return False, e.message, None

        logger.info("Booking %s created: %d day(s), total %.2f", bid, quote.days, quote.total_price)
        return True, "Booking created", bid

    @staticmethod
    def confirm_payment(booking_id: str, user_id: str, form: dict, *, store: Optional["Store"] = None):
        """
        Take the mock payment for a pending booking and confirm it.
        The payment row and the booking update are written together.

        Returns:
            (ok: bool, message: str, payment_id: Optional[str])
        """
        st = store or _store()
        booking = booking_from_row(st.get_booking(booking_id))
        if booking is None or booking.user_id != user_id:
            return False, "Booking not found", None

        try:
            validate_transition(booking.status, BookingStatus.CONFIRMED.value)
        except InvalidTransitionError:
            return False, f"This booking is already {booking.status}", None

        try:
            data = PaymentFormData.model_validate(form)
        except ValidationError as e:
            return False, validation_message(e), None

        try:
            pid = st.confirm_payment(
                booking_id,
                payment={
                    "amount": booking.total_price,
                    "status": PaymentStatus.COMPLETED.value,
                    "payment_method": data.payment_method,
                    "transaction_id": new_transaction_id(),
                },
                booking_updates={"status": BookingStatus.CONFIRMED.value},
                expected_status=BookingStatus.PENDING.value,
            )
        except InvalidTransitionError as e:
            logger.info("Payment for booking %s refused: %s", booking_id, e)
            return False, f"This booking is already {e.current}", None
        except BackendError as e:
            logger.warning("Payment for booking %s failed: %s", booking_id, e)
            return False, "Payment could not be completed, please try again", None

        logger.info("Booking %s confirmed with payment %s", booking_id, pid)
        return True, "Payment successful", pid

    @staticmethod
    def cancel_booking(booking_id: str, user_id: str, now: Optional[datetime] = None, *,
                       store: Optional["Store"] = None):
        """
        Renter cancellation. Allowed from pending or confirmed while the start
        is more than the cutoff away. Payments are left untouched.
        """
        st = store or _store()
        booking = booking_from_row(st.get_booking(booking_id))
        if booking is None or booking.user_id != user_id:
            return False, "Booking not found"

        try:
            validate_transition(booking.status, BookingStatus.CANCELLED.value)
        except InvalidTransitionError:
            return False, "Only pending or confirmed bookings can be cancelled"

        cutoff = _config("CANCELLATION_CUTOFF_HOURS", DEFAULT_CUTOFF_HOURS)
        window = cancellation_window(booking.start_date, booking.status, now=now, cutoff_hours=cutoff)
        if not window.is_cancellable:
            return False, f"Bookings can only be cancelled more than {cutoff} hours before the start"

        try:
            st.update_booking_if(booking_id, {"status": tuple(CANCELLABLE_STATUSES)},
                                 {"status": BookingStatus.CANCELLED.value})
        except InvalidTransitionError:
            return False, "Only pending or confirmed bookings can be cancelled"
        except BackendError as e:
            logger.warning("cancel_booking %s failed: %s", booking_id, e)
            return False, "Failed to cancel booking, please try again"
        return True, "Booking cancelled"

    @staticmethod
    def decide(booking_id: str, owner_id: str, decision: str, *, store: Optional["Store"] = None):
        """
        Record the vehicle owner's answer to a pending booking.
        Accepting only records the decision; rejecting also cancels the booking.
        """
        st = store or _store()
        booking = booking_from_row(st.get_booking(booking_id))
        if booking is None:
            return False, "Booking not found"
        vehicle = st.get_vehicle(booking.vehicle_id) or {}
        if vehicle.get("owner_id") != owner_id:
            return False, "Only the vehicle owner can respond to this booking"
        if booking.status != BookingStatus.PENDING.value:
            return False, "Only pending bookings can be accepted or rejected"
        if booking.owner_decision not in (None, OwnerDecision.PENDING.value):
            return False, f"Booking was already {booking.owner_decision}"

        updates = {"owner_decision": decision}
        if decision == OwnerDecision.REJECTED.value:
            validate_transition(booking.status, BookingStatus.CANCELLED.value)
            updates["status"] = BookingStatus.CANCELLED.value
        elif decision != OwnerDecision.ACCEPTED.value:
            return False, "Unknown decision"

        try:
            st.update_booking_if(booking_id, {"status": (BookingStatus.PENDING.value,),
                                              "owner_decision": (None, OwnerDecision.PENDING.value)}, updates)
        except InvalidTransitionError:
            return False, "This booking was changed in the meantime, please reload"
        except BackendError as e:
            logger.warning("Owner decision on %s failed: %s", booking_id, e)
            return False, e.message
        return True, f"Booking {decision}"

    @staticmethod
    def accept_booking(booking_id: str, owner_id: str, *, store: Optional["Store"] = None):
        return BookingService.decide(booking_id, owner_id, OwnerDecision.ACCEPTED.value, store=store)

    @staticmethod
    def reject_booking(booking_id: str, owner_id: str, *, store: Optional["Store"] = None):
        return BookingService.decide(booking_id, owner_id, OwnerDecision.REJECTED.value, store=store)

    # --------------- Queries ---------------
    @staticmethod
    def bookings_for_user(user_id: str, *, store: Optional["Store"] = None) -> List[Booking]:
        """The renter's bookings, newest first, each with a vehicle summary."""
        st = store or _store()
        out = [booking_from_row(b, st.get_vehicle(b["vehicle_id"])) for b in st.list_bookings(user_id=user_id)]
        out.sort(key=lambda b: b.created_at or "", reverse=True)
        return out

    @staticmethod
    def owner_bookings(owner_id: str, *, store: Optional["Store"] = None) -> List[BookingDetails]:
        """Bookings other users made on the owner's vehicles, newest first."""
        st = store or _store()
        vehicles = {v["id"]: v for v in st.list_vehicles(owner_id=owner_id)}
        if not vehicles:
            return []
        out = []
        for b in st.list_bookings(vehicle_ids=list(vehicles)):
            if b.get("user_id") == owner_id:
                continue
            out.append(BookingDetails(
                booking=booking_from_row(b, vehicles[b["vehicle_id"]]),
                vehicle=vehicle_from_row(vehicles[b["vehicle_id"]]),
                customer=profile_from_row(st.get_profile(b["user_id"])),
            ))
        out.sort(key=lambda d: d.booking.created_at or "", reverse=True)
        return out

    @staticmethod
    def booking_details(booking_id: str, viewer_id: str, *, store: Optional["Store"] = None) -> BookingDetails:
        """Booking with vehicle, customer and payment; visible to the renter and the vehicle owner."""
        st = store or _store()
        row = st.get_booking(booking_id)
        if not row:
            raise BookingNotFoundError()
        vehicle_row = st.get_vehicle(row["vehicle_id"])
        owner_id = (vehicle_row or {}).get("owner_id")
        if viewer_id not in (row.get("user_id"), owner_id):
            raise BookingNotFoundError()
        return BookingDetails(
            booking=booking_from_row(row, vehicle_row),
            vehicle=vehicle_from_row(vehicle_row),
            customer=profile_from_row(st.get_profile(row["user_id"])),
            payment=payment_from_row(st.get_payment(row["payment_id"])) if row.get("payment_id") else None,
        )
