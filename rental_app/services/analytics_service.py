from __future__ import annotations

from collections import Counter
from typing import Optional, TYPE_CHECKING

from rental_app.services.common import _store, round2
from rental_app.utils.constants import BookingStatus

if TYPE_CHECKING:
    from rental_app.models.store import Store  # noqa: F401

# bookings whose price counts as money spent
SPENT_STATUSES = {BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value}


class AnalyticsService:
    """Aggregations for the renter/owner dashboard."""

    @staticmethod
    def dashboard_summary(user_id: str, *, store: Optional["Store"] = None):
        st = store or _store()
        mine = st.list_bookings(user_id=user_id)
        by_status = Counter((b.get("status") or "") for b in mine)

        spent = round2(sum(float(b.get("total_price") or 0) for b in mine if b.get("status") in SPENT_STATUSES))

        owned = [v["id"] for v in st.list_vehicles(owner_id=user_id)]
        incoming = [b for b in st.list_bookings(vehicle_ids=owned) if b.get("user_id") != user_id]
        earned = round2(sum(float(b.get("total_price") or 0) for b in incoming if b.get("status") in SPENT_STATUSES))

        return {
            "totals": {
                "bookings": len(mine),
                "pending": by_status.get(BookingStatus.PENDING.value, 0),
                "confirmed": by_status.get(BookingStatus.CONFIRMED.value, 0),
                "completed": by_status.get(BookingStatus.COMPLETED.value, 0),
                "cancelled": by_status.get(BookingStatus.CANCELLED.value, 0),
                "spent": spent,
            },
            "owner": {
                "vehicles": len(owned),
                "bookings": len(incoming),
                "awaiting_decision": sum(1 for b in incoming if b.get("owner_decision") == "pending"
                                         and b.get("status") == BookingStatus.PENDING.value),
                "earned": earned,
            },
        }
