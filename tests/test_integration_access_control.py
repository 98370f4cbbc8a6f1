"""
Pages behind sign-in redirect anonymous visitors, unconfirmed accounts are
sent to the verify page, and bookings are only visible to their parties.
"""

import pytest


@pytest.mark.parametrize("path", ["/dashboard", "/profile", "/my-vehicles", "/vehicles/new"])
def test_private_pages_require_login(client, path):
    r = client.get(path)
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]


def test_unconfirmed_user_cannot_list_or_book(client, make_user, make_vehicle, login):
    owner = make_user("owner@example.com")
    vid = make_vehicle(owner)
    make_user("fresh@example.com", confirmed=False)

    r = login("fresh@example.com")
    assert "/verify-email" in r.headers["Location"]

    for path in ("/vehicles/new", f"/vehicles/{vid}/book"):
        r = client.get(path)
        assert r.status_code == 302
        assert "/verify-email" in r.headers["Location"]


def test_stranger_cannot_see_booking(client, store, make_user, make_vehicle, login):
    owner = make_user("owner@example.com")
    renter = make_user("renter@example.com")
    make_user("stranger@example.com")
    vid = make_vehicle(owner)
    bid = store.create_booking({
        "vehicle_id": vid, "user_id": renter, "start_date": "2030-01-10", "end_date": "2030-01-12",
        "total_price": 100.0, "status": "pending", "owner_decision": "pending",
    })

    login("stranger@example.com")
    assert client.get(f"/bookings/{bid}").status_code == 404
    assert client.get(f"/bookings/{bid}/countdown").status_code == 404


def test_only_owner_can_edit_vehicle(client, make_user, make_vehicle, login):
    owner = make_user("owner@example.com")
    make_user("renter@example.com")
    vid = make_vehicle(owner)
    login("renter@example.com")
    assert client.get(f"/vehicles/{vid}/edit").status_code == 403


def test_deleted_account_session_is_dropped(client, store, make_user, login):
    uid = make_user()
    login()
    store.users.pop(uid)
    r = client.get("/dashboard")
    assert r.status_code == 302
    with client.session_transaction() as sess:
        assert "uid" not in sess
