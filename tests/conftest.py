import os
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest

from rental_app import create_app
from rental_app.models.store import Store
from rental_app.utils.security import generate_hash

PASSWORD = "Secret123"


@pytest.fixture
def store():
    """A fresh in-memory store per test; nothing is written to disk."""
    return Store(None)


@pytest.fixture
def app(store):
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "RENTAL_DATA_PATH": None, "BOOKING_OVERLAP_POLICY": "allow"},
        store=store,
    )
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_user(store):
    """Create an account directly in the store. Confirmed unless told otherwise."""

    def _make(email="renter@example.com", password=PASSWORD, confirmed=True, first_name="Asha", last_name="Rao"):
        uid = store.create_user(email, generate_hash(password), first_name=first_name, last_name=last_name)
        if confirmed:
            store.update_user(uid, {"email_confirmed": True})
        return uid

    return _make


@pytest.fixture
def make_vehicle(store):
    """Insert a vehicle row for `owner_id`; keyword overrides any column."""

    def _make(owner_id, **overrides):
        row = {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2021,
            "category": "sedan",
            "type": "car",
            "daily_rate": 50.0,
            "location": "Hyderabad",
            "available": True,
            "owner_id": owner_id,
            "image_url": "/static/images/placeholder.png",
        }
        row.update(overrides)
        return store.create_vehicle(row)

    return _make


@pytest.fixture
def login(client):
    def _login(email="renter@example.com", password=PASSWORD):
        return client.post("/login", data={"email": email, "password": password})

    return _login


@pytest.fixture(autouse=True)
def _no_data_file_env(monkeypatch):
    """Keep a developer's RENTAL_DATA_PATH from leaking into tests."""
    monkeypatch.setitem(os.environ, "RENTAL_DATA_PATH", "")
    yield
