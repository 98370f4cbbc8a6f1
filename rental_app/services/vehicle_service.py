from __future__ import annotations

import logging
from typing import Iterable, List, Optional, TYPE_CHECKING

from pydantic import ValidationError

from rental_app.exceptions import BackendError, VehicleNotFoundError
from rental_app.models.vehicle import Vehicle, VehicleFilter, VehicleIn, VehiclePatch
from rental_app.services.common import _lc, _store, vehicle_from_row
from rental_app.utils.constants import FEATURED_LIMIT

if TYPE_CHECKING:
    from rental_app.models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)


def validation_message(err: ValidationError) -> str:
    """First pydantic error as a short form message."""
    first = err.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "__root__")
    msg = first.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field.replace('_', ' ')}: {msg}" if field else msg


def filter_vehicles(vehicles: Iterable[Vehicle], criteria: Optional[VehicleFilter] = None) -> List[Vehicle]:
    """
    Keep the vehicles that match every constraint set in `criteria`.
    Text matches are case-insensitive substrings, price bounds are inclusive.
    Source order is preserved.
    """
    criteria = criteria if criteria is not None else VehicleFilter()
    res = list(vehicles)

    if criteria.available is not None:
        res = [v for v in res if v.available == criteria.available]

    if criteria.type:
        res = [v for v in res if v.type == criteria.type]

    if criteria.category:
        res = [v for v in res if v.category == criteria.category]

    loc = _lc(criteria.location).strip()
    if loc:
        res = [v for v in res if loc in _lc(v.location)]

    if criteria.price_min is not None:
        res = [v for v in res if v.daily_rate >= criteria.price_min]
    if criteria.price_max is not None:
        res = [v for v in res if v.daily_rate <= criteria.price_max]

    kw = _lc(criteria.search_query).strip()
    if kw:
        res = [v for v in res if kw in _lc(v.make) or kw in _lc(v.model)]

    return res


class VehicleService:
    """Vehicle catalogue: browse, detail, owner listings and CRUD."""

    @staticmethod
    def _all(st) -> List[Vehicle]:
        return [vehicle_from_row(r) for r in st.list_vehicles()]

    @staticmethod
    def list_vehicles(criteria: Optional[VehicleFilter] = None, viewer_id: Optional[str] = None,
                      *, store: Optional["Store"] = None) -> List[Vehicle]:
        """Browse listing. A signed-in viewer does not see their own vehicles."""
        st = store or _store()
        res = filter_vehicles(VehicleService._all(st), criteria)
        if viewer_id:
            res = [v for v in res if v.owner_id != viewer_id]
        return res

    @staticmethod
    def featured_vehicles(limit: int = FEATURED_LIMIT, *, store: Optional["Store"] = None) -> List[Vehicle]:
        """Top available vehicles by daily rate, for the home page."""
        st = store or _store()
        available = [v for v in VehicleService._all(st) if v.available]
        available.sort(key=lambda v: v.daily_rate, reverse=True)
        return available[:limit]

    @staticmethod
    def vehicles_for_owner(owner_id: str, *, store: Optional["Store"] = None) -> List[Vehicle]:
        st = store or _store()
        rows = st.list_vehicles(owner_id=owner_id)
        return sorted((vehicle_from_row(r) for r in rows), key=lambda v: v.created_at or "", reverse=True)

    @staticmethod
    def get_vehicle(vid: str, *, store: Optional["Store"] = None) -> Vehicle:
        """Return a vehicle by ID or raise VehicleNotFoundError."""
        st = store or _store()
        v = vehicle_from_row(st.get_vehicle(vid))
        if v is None:
            raise VehicleNotFoundError(f"Error: vehicle with ID '{vid}' not found")
        return v

    @staticmethod
    def create_vehicle(owner_id: str, payload: dict, *, store: Optional["Store"] = None):
        """
        Create a listing owned by `owner_id`.

        Returns:
            (ok: bool, message: str, vehicle_id: Optional[str])
        """
        st = store or _store()
        if not owner_id:
            return False, "Please sign in to list a vehicle", None
        try:
            data = VehicleIn.model_validate(payload)
        except ValidationError as e:
            return False, validation_message(e), None

        try:
            vid = st.create_vehicle(dict(data.model_dump(), owner_id=owner_id))
        except BackendError as e:
            logger.warning("create_vehicle failed for owner %s: %s", owner_id, e)
            return False, e.message, None
        logger.info("Vehicle %s listed by %s", vid, owner_id)
        return True, "Vehicle created", vid

    @staticmethod
    def update_vehicle(vehicle_id: str, owner_id: str, patch: dict, *, store: Optional["Store"] = None):
        """Apply the fields present in `patch`. Only the owner may edit."""
        st = store or _store()
        row = st.get_vehicle(vehicle_id)
        if not row:
            return False, "Vehicle not found"
        if row.get("owner_id") != owner_id:
            return False, "You can only edit your own vehicles"
        try:
            data = VehiclePatch.model_validate(patch)
        except ValidationError as e:
            return False, validation_message(e)

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return True, "Nothing to update"
        try:
            st.update_vehicle(vehicle_id, updates)
        except BackendError as e:
            logger.warning("update_vehicle %s failed: %s", vehicle_id, e)
            return False, e.message
        return True, "Vehicle updated"

    @staticmethod
    def delete_vehicle(vehicle_id: str, owner_id: Optional[str] = None, *, store: Optional["Store"] = None):
        """
        Delete a vehicle together with everything that references it:
        payments of its bookings first, then the bookings, then the vehicle.
        The whole cascade is one store transaction: a failure at any step
        leaves every row in place and the vehicle stays listed.
        Pass `owner_id=None` only for administrative cleanups.
        """
        st = store or _store()
        row = st.get_vehicle(vehicle_id)
        if not row:
            return False, "Vehicle not found"
        if owner_id is not None and row.get("owner_id") != owner_id:
            return False, "You can only delete your own vehicles"

        try:
            removed = st.delete_vehicle_cascade(vehicle_id)
        except BackendError as e:
            logger.error("delete_vehicle %s aborted: %s", vehicle_id, e)
            return False, f"Could not delete vehicle: {e.message}"

        logger.info("Vehicle %s deleted with %d booking(s)", vehicle_id, removed)
        return True, "Vehicle deleted"
