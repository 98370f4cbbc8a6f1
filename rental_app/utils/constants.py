# rental_app/utils/constants.py

"""
Global constants for vehicle categories, booking/payment statuses and
payment methods. These constants are imported by both models and services.
"""
from enum import Enum


class VehicleType(str, Enum):
    CAR = "car"
    BIKE = "bike"


class VehicleCategory(str, Enum):
    SEDAN = "sedan"
    SUV = "suv"
    LUXURY = "luxury"
    COMPACT = "compact"
    PICKUP = "pickup"
    MINIVAN = "minivan"
    CONVERTIBLE = "convertible"
    ELECTRIC = "electric"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OwnerDecision(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    CASH = "cash"


# Statuses a renter may still cancel from
CANCELLABLE_STATUSES = {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value}

# Methods offered by the mock payment form (cash is settled offline)
ONLINE_PAYMENT_METHODS = (
    PaymentMethod.CREDIT_CARD.value,
    PaymentMethod.DEBIT_CARD.value,
    PaymentMethod.UPI.value,
)

# --- Misc ---
CATEGORIES = tuple(c.value for c in VehicleCategory)
VEHICLE_TYPES = tuple(t.value for t in VehicleType)
PLACEHOLDER = "/static/images/placeholder.png"
FEATURED_LIMIT = 6
