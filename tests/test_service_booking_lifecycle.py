"""
Booking lifecycle through BookingService:
create (always pending) -> mock payment (confirmed) -> cancellation under the cutoff rule.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rental_app.exceptions import BackendError, BookingNotFoundError, InvalidTransitionError
from rental_app.services.booking_service import BookingService, validate_transition

CARD = {
    "payment_method": "credit_card",
    "card_number": "4111 1111 1111 1111",
    "card_holder": "Asha Rao",
    "expiry_date": "12/30",
    "cvv": "123",
}


def _form(start="2030-03-01", end="2030-03-04"):
    return {"start_date": start, "end_date": end, "pickup_address": "Airport", "dropoff_address": "Station"}


@pytest.fixture
def setup(store, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    renter = make_user("renter@example.com")
    vid = make_vehicle(owner, daily_rate=50.0)
    return owner, renter, vid


def test_new_booking_is_pending_with_fixed_price(store, setup):
    _owner, renter, vid = setup
    ok, msg, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    assert ok, msg
    row = store.get_booking(bid)
    assert row["status"] == "pending"
    assert row["owner_decision"] == "pending"
    assert row["total_price"] == 150.0
    assert row["payment_id"] is None


def test_price_is_not_recomputed_when_rate_changes(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    store.update_vehicle(vid, {"daily_rate": 999.0})
    assert store.get_booking(bid)["total_price"] == 150.0


@pytest.mark.parametrize("form", [
    _form(start="2030-03-04", end="2030-03-01"),
    _form(start="garbage"),
    dict(_form(), pickup_address="   "),
])
def test_invalid_booking_forms_are_rejected(store, setup, form):
    _owner, renter, vid = setup
    ok, msg, bid = BookingService.create_booking(renter, vid, form, store=store)
    assert not ok and bid is None and msg
    assert not store.bookings


def test_unavailable_vehicle_cannot_be_booked(store, setup):
    _owner, renter, vid = setup
    store.update_vehicle(vid, {"available": False})
    ok, _msg, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    assert not ok and bid is None


def test_payment_confirms_booking_and_links_payment(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)

    ok, msg, pid = BookingService.confirm_payment(bid, renter, dict(CARD), store=store)
    assert ok, msg
    booking = store.get_booking(bid)
    payment = store.get_payment(pid)
    assert booking["status"] == "confirmed"
    assert booking["payment_id"] == pid
    assert payment["amount"] == 150.0
    assert payment["status"] == "completed"
    assert payment["transaction_id"].startswith("TXN-")


def test_upi_payment(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    ok, msg, _pid = BookingService.confirm_payment(
        bid, renter, {"payment_method": "upi", "upi_id": "asha@okbank"}, store=store)
    assert ok, msg


@pytest.mark.parametrize("bad", [
    dict(CARD, card_number="1234"),
    dict(CARD, card_number="1 2 3 4 5 6 7"),
    dict(CARD, card_number="4111-1111-1111-1111"),
    dict(CARD, expiry_date="13/30"),
    dict(CARD, cvv="12"),
    {"payment_method": "upi", "upi_id": "no-at-sign"},
])
def test_invalid_payment_details_leave_booking_pending(store, setup, bad):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    ok, _msg, pid = BookingService.confirm_payment(bid, renter, bad, store=store)
    assert not ok and pid is None
    assert store.get_booking(bid)["status"] == "pending"
    assert not store.payments


def test_payment_is_all_or_nothing(store, setup, monkeypatch):
    """A failure while updating the booking also discards the payment row."""
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)

    def boom(booking_id, updates):
        raise BackendError("write failed")

    monkeypatch.setattr(store, "update_booking", boom)
    ok, msg, pid = BookingService.confirm_payment(bid, renter, dict(CARD), store=store)
    assert not ok and pid is None
    assert "try again" in msg
    assert not store.payments
    assert store.bookings[bid]["status"] == "pending"


def test_cannot_pay_twice(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    BookingService.confirm_payment(bid, renter, dict(CARD), store=store)
    ok, _msg, _pid = BookingService.confirm_payment(bid, renter, dict(CARD), store=store)
    assert not ok
    assert len(store.payments) == 1


def test_only_renter_can_pay(store, setup):
    owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    ok, _msg, _pid = BookingService.confirm_payment(bid, owner, dict(CARD), store=store)
    assert not ok


def _now():
    return datetime(2030, 3, 1, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("pay_first", [False, True])
def test_cancel_more_than_a_day_ahead(store, setup, pay_first):
    """Pending and confirmed bookings follow the same 24 hour rule."""
    _owner, renter, vid = setup
    start = (_now() + timedelta(hours=25)).isoformat()
    end = (_now() + timedelta(days=3)).isoformat()
    _, _, bid = BookingService.create_booking(renter, vid, _form(start, end), store=store)
    if pay_first:
        BookingService.confirm_payment(bid, renter, dict(CARD), store=store)

    ok, msg = BookingService.cancel_booking(bid, renter, now=_now(), store=store)
    assert ok, msg
    assert store.get_booking(bid)["status"] == "cancelled"


def test_cancel_inside_cutoff_refused(store, setup):
    _owner, renter, vid = setup
    start = (_now() + timedelta(hours=23)).isoformat()
    end = (_now() + timedelta(days=3)).isoformat()
    _, _, bid = BookingService.create_booking(renter, vid, _form(start, end), store=store)

    ok, _msg = BookingService.cancel_booking(bid, renter, now=_now(), store=store)
    assert not ok
    assert store.get_booking(bid)["status"] == "pending"


def test_cancel_keeps_payment(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    _, _, pid = BookingService.confirm_payment(bid, renter, dict(CARD), store=store)
    ok, _ = BookingService.cancel_booking(bid, renter, now=datetime(2030, 1, 1, tzinfo=timezone.utc), store=store)
    assert ok
    assert pid in store.payments


def test_cancelled_booking_cannot_be_cancelled_again(store, setup):
    _owner, renter, vid = setup
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)
    early = datetime(2030, 1, 1, tzinfo=timezone.utc)
    BookingService.cancel_booking(bid, renter, now=early, store=store)
    ok, _ = BookingService.cancel_booking(bid, renter, now=early, store=store)
    assert not ok


def test_transition_table():
    validate_transition("pending", "confirmed")
    validate_transition("confirmed", "completed")
    for current, target in [("cancelled", "confirmed"), ("completed", "cancelled"), ("pending", "completed")]:
        with pytest.raises(InvalidTransitionError):
            validate_transition(current, target)


def test_bookings_for_user_newest_first_with_vehicle(store, setup):
    _owner, renter, vid = setup
    _, _, first = BookingService.create_booking(renter, vid, _form(), store=store)
    _, _, second = BookingService.create_booking(renter, vid, _form("2030-04-01", "2030-04-02"), store=store)
    store.bookings[first]["created_at"] = "2030-01-01T00:00:00+00:00"
    store.bookings[second]["created_at"] = "2030-01-02T00:00:00+00:00"

    rows = BookingService.bookings_for_user(renter, store=store)
    assert [b.id for b in rows] == [second, first]
    assert rows[0].vehicle.make == "Toyota"


def test_booking_details_visible_to_renter_and_owner_only(store, setup, make_user):
    owner, renter, vid = setup
    stranger = make_user("stranger@example.com")
    _, _, bid = BookingService.create_booking(renter, vid, _form(), store=store)

    assert BookingService.booking_details(bid, renter, store=store).customer.id == renter
    assert BookingService.booking_details(bid, owner, store=store).vehicle.id == vid
    with pytest.raises(BookingNotFoundError):
        BookingService.booking_details(bid, stranger, store=store)
    with pytest.raises(BookingNotFoundError):
        BookingService.booking_details("missing", renter, store=store)
