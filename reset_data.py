"""
reset_data.py
-------------
Clear all stored data (accounts, profiles, vehicles, bookings, payments)
from the data file configured by RENTAL_DATA_PATH (default: data.pkl).

Usage:
    $ python reset_data.py

Afterwards, repopulate demo data with:
    $ python seeds.py
"""

from rental_app.config import load_config
from rental_app.models.store import Store


def main():
    path = load_config()["RENTAL_DATA_PATH"]
    if not path:
        print("RENTAL_DATA_PATH is empty; nothing is persisted, nothing to clear.")
        return

    store = Store(path)
    store.clear()

    print(f"{path} has been cleared.")
    print("Tip: run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
