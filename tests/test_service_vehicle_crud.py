"""
Vehicle create / update / delete through VehicleService, including the
ordered cascade (payments -> bookings -> vehicle) on delete.
"""

import pytest

from rental_app.exceptions import BackendError, VehicleNotFoundError
from rental_app.services.vehicle_service import VehicleService

PAYLOAD = {
    "make": " Honda ",
    "model": "City",
    "year": "2022",
    "category": "sedan",
    "type": "car",
    "daily_rate": "1800",
    "location": "Gachibowli",
}


def test_create_vehicle_validates_and_stores(store, make_user):
    owner = make_user("owner@example.com")
    ok, msg, vid = VehicleService.create_vehicle(owner, dict(PAYLOAD), store=store)
    assert ok, msg
    v = VehicleService.get_vehicle(vid, store=store)
    assert v.make == "Honda"
    assert v.daily_rate == 1800.0
    assert v.owner_id == owner
    assert v.image_url == "/static/images/placeholder.png"


@pytest.mark.parametrize("field,value", [
    ("daily_rate", "0"),
    ("daily_rate", "-5"),
    ("category", "spaceship"),
    ("year", "1800"),
    ("image_url", "ftp://example.com/car.png"),
])
def test_create_vehicle_rejects_bad_input(store, make_user, field, value):
    owner = make_user("owner@example.com")
    ok, msg, vid = VehicleService.create_vehicle(owner, dict(PAYLOAD, **{field: value}), store=store)
    assert not ok
    assert vid is None
    assert msg
    assert not store.vehicles


def test_create_vehicle_requires_owner(store):
    ok, _msg, vid = VehicleService.create_vehicle(None, dict(PAYLOAD), store=store)
    assert not ok and vid is None


def test_get_vehicle_missing_raises(store):
    with pytest.raises(VehicleNotFoundError):
        VehicleService.get_vehicle("nope", store=store)


def test_update_only_by_owner(store, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    stranger = make_user("stranger@example.com")
    vid = make_vehicle(owner)

    ok, _ = VehicleService.update_vehicle(vid, stranger, {"daily_rate": "10"}, store=store)
    assert not ok

    ok, _ = VehicleService.update_vehicle(vid, owner, {"daily_rate": "75", "available": False}, store=store)
    assert ok
    v = VehicleService.get_vehicle(vid, store=store)
    assert v.daily_rate == 75.0
    assert v.available is False
    assert v.make == "Toyota"


def _booked_and_paid(store, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    renter = make_user("renter@example.com")
    vid = make_vehicle(owner)
    bid = store.create_booking({
        "vehicle_id": vid, "user_id": renter, "start_date": "2030-01-10", "end_date": "2030-01-12",
        "total_price": 100.0, "status": "pending", "owner_decision": "pending",
    })
    pid = store.confirm_payment(bid, {"amount": 100.0, "status": "completed", "payment_method": "upi"},
                                {"status": "confirmed"})
    return owner, vid, bid, pid


def test_delete_cascades_payments_then_bookings(store, make_user, make_vehicle):
    owner, vid, bid, pid = _booked_and_paid(store, make_user, make_vehicle)

    ok, msg = VehicleService.delete_vehicle(vid, owner_id=owner, store=store)
    assert ok, msg
    assert vid not in store.vehicles
    assert bid not in store.bookings
    assert pid not in store.payments


def test_delete_only_by_owner(store, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    stranger = make_user("stranger@example.com")
    vid = make_vehicle(owner)
    ok, _ = VehicleService.delete_vehicle(vid, owner_id=stranger, store=store)
    assert not ok
    assert vid in store.vehicles


def test_failed_step_aborts_delete(store, make_user, make_vehicle, monkeypatch):
    """If removing the bookings fails, nothing is removed: payments included."""
    owner, vid, bid, pid = _booked_and_paid(store, make_user, make_vehicle)

    def boom(ids):
        raise BackendError("bookings table unavailable")

    monkeypatch.setattr(store, "delete_bookings", boom)
    ok, msg = VehicleService.delete_vehicle(vid, owner_id=owner, store=store)
    assert not ok
    assert "Could not delete vehicle" in msg
    assert vid in store.vehicles
    assert bid in store.bookings
    assert pid in store.payments


def test_store_refuses_to_orphan_bookings(store, make_user, make_vehicle):
    _owner, vid, bid, _pid = _booked_and_paid(store, make_user, make_vehicle)
    with pytest.raises(BackendError):
        store.delete_vehicle(vid)
    with pytest.raises(BackendError):
        store.delete_bookings([bid])
