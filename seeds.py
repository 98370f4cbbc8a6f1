from rental_app import create_app
from rental_app.services.common import _store
from rental_app.services.vehicle_service import VehicleService
from rental_app.utils.security import generate_hash


def ensure_user(store, email: str, password: str, first_name: str, last_name: str) -> str:
    """
    Ensure a confirmed account with `email` exists in the store.
    - If exists: reset password (idempotent).
    - If not:   create it.
    """
    u = store.find_user(email)
    if u:
        store.update_user(u["id"], {"password_hash": generate_hash(password), "email_confirmed": True})
        return u["id"]
    uid = store.create_user(email, generate_hash(password), first_name=first_name, last_name=last_name)
    store.update_user(uid, {"email_confirmed": True})
    return uid


DEMO_VEHICLES = [
    {"make": "Honda", "model": "City", "year": 2022, "category": "sedan", "type": "car",
     "daily_rate": 1800, "location": "Banjara Hills", "transmission": "manual", "seats": 5, "doors": 4,
     "fuel_type": "petrol", "description": "Comfortable city sedan."},
    {"make": "Mahindra", "model": "XUV700", "year": 2023, "category": "suv", "type": "car",
     "daily_rate": 3500, "location": "Jubilee Hills", "transmission": "automatic", "seats": 7, "doors": 5,
     "fuel_type": "diesel", "description": "Seven seats for family trips."},
    {"make": "Tata", "model": "Nexon EV", "year": 2023, "category": "electric", "type": "car",
     "daily_rate": 2600, "location": "Gachibowli", "transmission": "automatic", "seats": 5, "doors": 5,
     "fuel_type": "electric", "description": "Quiet electric compact SUV."},
    {"make": "Royal Enfield", "model": "Classic 350", "year": 2021, "category": "compact", "type": "bike",
     "daily_rate": 900, "location": "Ameerpet", "fuel_type": "petrol", "description": "Classic cruiser."},
]


def main():
    app = create_app()
    with app.app_context():
        store = _store()

        # ---- Owner / renter demo accounts ----
        owner_id = ensure_user(store, "owner@example.com", "Owner123", "Olivia", "Owner")
        ensure_user(store, "renter@example.com", "Renter123", "Ravi", "Renter")

        # ---- Demo vehicles (create only if none exist) ----
        if not store.vehicles:
            for payload in DEMO_VEHICLES:
                ok, msg, _vid = VehicleService.create_vehicle(owner_id, payload)
                if not ok:
                    print(f"Skipped {payload['make']} {payload['model']}: {msg}")

        store.save()

        print("Seed complete.")
        print("Owner login:   owner@example.com / Owner123")
        print("Renter login:  renter@example.com / Renter123")


if __name__ == "__main__":
    main()
