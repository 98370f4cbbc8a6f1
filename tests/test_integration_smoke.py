"""
Public pages render and unknown ids come back as a friendly 404.
"""


def test_home_and_listing_render(client, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    make_vehicle(owner, make="Honda", model="City")
    assert client.get("/").status_code == 200
    r = client.get("/vehicles")
    assert r.status_code == 200
    assert b"Honda City" in r.data


def test_listing_filters_from_query(client, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    make_vehicle(owner, make="Honda", daily_rate=40)
    make_vehicle(owner, make="Toyota", daily_rate=80)
    r = client.get("/vehicles?price_max=50")
    assert b"Honda" in r.data
    assert b"Toyota Corolla</a>" not in r.data


def test_empty_query_redirects_to_clean_url(client):
    r = client.get("/vehicles?q=&location=")
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/vehicles")


def test_unknown_vehicle_is_404(client):
    r = client.get("/vehicles/does-not-exist")
    assert r.status_code == 404


def test_quote_endpoint(client, make_user, make_vehicle):
    owner = make_user("owner@example.com")
    vid = make_vehicle(owner, daily_rate=50)
    r = client.get(f"/bookings/quote?vehicle_id={vid}&start_date=2030-01-01&end_date=2030-01-04")
    assert r.status_code == 200
    assert r.get_json() == {"days": 3, "total_price": 150.0, "is_valid": True, "error": None}

    bad = client.get(f"/bookings/quote?vehicle_id={vid}&start_date=2030-01-04&end_date=2030-01-01").get_json()
    assert bad["is_valid"] is False
    assert bad["total_price"] is None
