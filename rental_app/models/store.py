import copy
import logging
import os
import pickle
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from ..exceptions import BackendError, InvalidTransitionError

logger = logging.getLogger(__name__)

TABLES = ("users", "profiles", "vehicles", "bookings", "payments")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Store:
    """
    In-process stand-in for the hosted database: five tables of snake_case
    rows keyed by id, persisted to a pickle file after every write.

    Referential integrity is enforced like the database would: a vehicle
    cannot be deleted while bookings reference it, and a booking cannot be
    deleted while payments reference it.
    """

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path) if path else None
        self.users: dict[str, dict] = {}
        self.profiles: dict[str, dict] = {}
        self.vehicles: dict[str, dict] = {}
        self.bookings: dict[str, dict] = {}
        self.payments: dict[str, dict] = {}
        self._rw = threading.RLock()
        self._depth = 0

        if self.path:
            logger.info("Store using file %s", self.path)
            self._load()
        else:
            logger.info("Store running in memory only")

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            logger.warning("Store load failed (%s); starting empty", e)
            return

        if isinstance(data, dict):
            for table in TABLES:
                setattr(self, table, data.get(table, {}) or {})
            logger.info(
                "Store loaded: users=%d, vehicles=%d, bookings=%d, payments=%d",
                len(self.users), len(self.vehicles), len(self.bookings), len(self.payments),
            )
        else:
            # Incompatible data format: back up the old file and start empty
            bak = self.path + ".bak"
            os.replace(self.path, bak)
            logger.warning("Incompatible store (%s); backed up to %s", type(data).__name__, bak)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        if not self.path:
            return
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        tmp = self.path + ".tmp"
        payload = {table: getattr(self, table) for table in TABLES}
        try:
            with open(tmp, "wb") as f:
                pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("Store save to %s failed: %s", self.path, e)
            raise BackendError() from e

    def save(self):
        """Thread-safe save method."""
        with self._rw:
            self._dump()

    def clear(self):
        with self._rw:
            for table in TABLES:
                getattr(self, table).clear()
            self._dump()

    @contextmanager
    def _transaction(self):
        """
        Run a group of writes under the lock. If anything inside raises, every
        table is put back as it was and the file is rewritten to match, so a
        failed write never leaves a change behind in memory or on disk.
        """
        with self._rw:
            snapshot = {table: copy.deepcopy(getattr(self, table)) for table in TABLES}
            outermost = self._depth == 0
            self._depth += 1
            try:
                yield
            except Exception:
                for table, rows in snapshot.items():
                    live = getattr(self, table)
                    live.clear()
                    live.update(rows)
                if outermost:
                    self._resync()
                raise
            finally:
                self._depth -= 1

    def _resync(self):
        """Rewrite the file after a rollback; the original error is what callers see."""
        try:
            self._dump()
        except BackendError:
            logger.error("Store rollback could not be written to %s; file keeps its last good state", self.path)

    # ---------- generic row helpers ----------
    def _insert(self, table: str, row: dict) -> str:
        with self._transaction():
            rid = row.get("id") or str(uuid.uuid4())
            now = _now_iso()
            row = dict(row, id=rid)
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
            getattr(self, table)[rid] = row
            self._dump()
            return rid

    def _update(self, table: str, rid: str, updates: dict) -> bool:
        with self._transaction():
            rows = getattr(self, table)
            if rid not in rows:
                return False
            rows[rid].update({k: v for k, v in updates.items() if k != "id"})
            rows[rid]["updated_at"] = _now_iso()
            self._dump()
            return True

    # ---------- Users / auth ----------
    def find_user(self, email: str) -> dict | None:
        """Find credentials by email (case-insensitive)."""
        email = (email or "").strip().lower()
        for u in self.users.values():
            if u["email"] == email:
                return u
        return None

    def get_user(self, user_id: str) -> dict | None:
        return self.users.get(user_id)

    def find_user_by_token(self, token: str) -> dict | None:
        if not token:
            return None
        for u in self.users.values():
            if u.get("verification_token") == token:
                return u
        return None

    def create_user(self, email: str, password_hash: str, first_name=None, last_name=None) -> str:
        """Create credentials plus the matching profile row; return the user id."""
        with self._transaction():
            email = email.strip().lower()
            if self.find_user(email):
                raise BackendError("User already registered")
            uid = str(uuid.uuid4())
            now = _now_iso()
            self.users[uid] = {
                "id": uid,
                "email": email,
                "password_hash": password_hash,
                "email_confirmed": False,
                "verification_token": None,
                "created_at": now,
            }
            self.profiles[uid] = {
                "id": uid,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "phone": None,
                "avatar_url": None,
                "created_at": now,
                "updated_at": now,
            }
            self._dump()
            return uid

    def update_user(self, user_id: str, updates: dict) -> bool:
        with self._transaction():
            if user_id not in self.users:
                return False
            self.users[user_id].update(updates)
            self._dump()
            return True

    def delete_user(self, user_id: str) -> bool:
        """Remove credentials and profile. Callers remove owned rows first."""
        with self._transaction():
            if user_id not in self.users:
                return False
            if any(b["user_id"] == user_id for b in self.bookings.values()):
                raise BackendError("User still has bookings")
            if any(v["owner_id"] == user_id for v in self.vehicles.values()):
                raise BackendError("User still owns vehicles")
            del self.users[user_id]
            self.profiles.pop(user_id, None)
            self._dump()
            return True

    # ---------- Profiles ----------
    def get_profile(self, user_id: str) -> dict | None:
        return self.profiles.get(user_id)

    def update_profile(self, user_id: str, updates: dict) -> bool:
        return self._update("profiles", user_id, updates)

    # ---------- Vehicles ----------
    def list_vehicles(self, owner_id: str | None = None) -> list[dict]:
        rows = list(self.vehicles.values())
        if owner_id is not None:
            rows = [v for v in rows if v.get("owner_id") == owner_id]
        return rows

    def get_vehicle(self, vehicle_id: str) -> dict | None:
        return self.vehicles.get(str(vehicle_id))

    def create_vehicle(self, data: dict) -> str:
        if not data.get("owner_id") or data["owner_id"] not in self.users:
            raise BackendError("Vehicle owner does not exist")
        return self._insert("vehicles", data)

    def update_vehicle(self, vehicle_id: str, updates: dict) -> bool:
        return self._update("vehicles", str(vehicle_id), updates)

    def delete_vehicle(self, vehicle_id: str) -> bool:
        with self._transaction():
            if vehicle_id not in self.vehicles:
                return False
            if any(b["vehicle_id"] == vehicle_id for b in self.bookings.values()):
                raise BackendError("Vehicle is still referenced by bookings")
            del self.vehicles[vehicle_id]
            self._dump()
            return True

    def delete_vehicle_cascade(self, vehicle_id: str) -> int:
        """
        Delete a vehicle with its bookings and their payments, in that
        dependency order, as one unit. Returns the number of bookings removed.
        """
        with self._transaction():
            booking_ids = [b["id"] for b in self.list_bookings(vehicle_ids=[vehicle_id])]
            if booking_ids:
                payment_ids = [p["id"] for p in self.list_payments(booking_ids=booking_ids)]
                if payment_ids:
                    self.delete_payments(payment_ids)
                self.delete_bookings(booking_ids)
            self.delete_vehicle(vehicle_id)
            return len(booking_ids)

    # ---------- Bookings ----------
    def list_bookings(self, user_id: str | None = None, vehicle_ids=None) -> list[dict]:
        rows = list(self.bookings.values())
        if user_id is not None:
            rows = [b for b in rows if b.get("user_id") == user_id]
        if vehicle_ids is not None:
            wanted = set(vehicle_ids)
            rows = [b for b in rows if b.get("vehicle_id") in wanted]
        return rows

    def get_booking(self, booking_id: str) -> dict | None:
        return self.bookings.get(booking_id)

    def create_booking(self, data: dict) -> str:
        if data.get("vehicle_id") not in self.vehicles:
            raise BackendError("Vehicle does not exist")
        if data.get("user_id") not in self.users:
            raise BackendError("Renter does not exist")
        return self._insert("bookings", data)

    def update_booking(self, booking_id: str, updates: dict) -> bool:
        return self._update("bookings", booking_id, updates)

    def _check_booking(self, booking_id: str, expected: dict, target: str | None = None):
        """Raise InvalidTransitionError unless each column holds one of its expected values."""
        row = self.bookings.get(booking_id)
        if row is None:
            raise BackendError("Booking does not exist")
        for column, allowed in expected.items():
            if row.get(column) not in allowed:
                raise InvalidTransitionError(current=row.get("status"), target=target or row.get("status"))

    def update_booking_if(self, booking_id: str, expected: dict, updates: dict) -> bool:
        """
        Compare-and-set: apply `updates` only while the stored row still
        matches `expected` (column -> allowed values). The check and the
        write happen under one lock, so a concurrent change cannot slip between them.
        """
        with self._transaction():
            self._check_booking(booking_id, expected, updates.get("status"))
            return self.update_booking(booking_id, updates)

    def delete_bookings(self, booking_ids) -> int:
        with self._transaction():
            ids = [b for b in booking_ids if b in self.bookings]
            if any(p["booking_id"] in ids for p in self.payments.values()):
                raise BackendError("Bookings are still referenced by payments")
            for bid in ids:
                del self.bookings[bid]
            self._dump()
            return len(ids)

    # ---------- Payments ----------
    def list_payments(self, booking_ids=None) -> list[dict]:
        rows = list(self.payments.values())
        if booking_ids is not None:
            wanted = set(booking_ids)
            rows = [p for p in rows if p.get("booking_id") in wanted]
        return rows

    def get_payment(self, payment_id: str) -> dict | None:
        return self.payments.get(payment_id)

    def create_payment(self, data: dict) -> str:
        if data.get("booking_id") not in self.bookings:
            raise BackendError("Booking does not exist")
        return self._insert("payments", data)

    def delete_payments(self, payment_ids) -> int:
        with self._transaction():
            ids = [p for p in payment_ids if p in self.payments]
            for pid in ids:
                del self.payments[pid]
            self._dump()
            return len(ids)

    # ---------- Transactions ----------
    def confirm_payment(self, booking_id: str, payment: dict, booking_updates: dict,
                        expected_status: str = "pending") -> str:
        """
        Record a payment and update its booking as one unit: either both rows
        are written or neither is. The booking must still be in
        `expected_status` when the lock is taken; otherwise
        InvalidTransitionError is raised and nothing is written.
        Returns the new payment id.
        """
        with self._transaction():
            self._check_booking(booking_id, {"status": (expected_status,)}, booking_updates.get("status"))
            pid = self.create_payment(dict(payment, booking_id=booking_id))
            if not self.update_booking(booking_id, dict(booking_updates, payment_id=pid)):
                raise BackendError("Booking disappeared during payment")
            return pid

    def delete_user_cascade(self, user_id: str) -> bool:
        """
        Remove an account with everything it owns: listed vehicles (and the
        bookings and payments on them), the user's own bookings and payments,
        the profile and the credentials. All or nothing.
        """
        with self._transaction():
            if user_id not in self.users:
                return False
            for v in self.list_vehicles(owner_id=user_id):
                self.delete_vehicle_cascade(v["id"])
            booking_ids = [b["id"] for b in self.list_bookings(user_id=user_id)]
            if booking_ids:
                self.delete_payments([p["id"] for p in self.list_payments(booking_ids=booking_ids)])
                self.delete_bookings(booking_ids)
            return self.delete_user(user_id)
