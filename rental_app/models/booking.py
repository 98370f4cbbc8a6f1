import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils.constants import BookingStatus, OwnerDecision, PaymentMethod, PaymentStatus

# digits only; spaces between groups are removed before matching
CARD_NUMBER_PATTERN = re.compile(r"^[0-9]{13,19}$")
EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/([0-9]{2})$")
CVV_PATTERN = re.compile(r"^[0-9]{3,4}$")
UPI_PATTERN = re.compile(r"^[\w.-]+@[\w.-]+$")


class VehicleSummary(BaseModel):
    """The few vehicle fields shown next to a booking in lists."""
    id: Optional[str] = None
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    image_url: Optional[str] = None
    daily_rate: Optional[float] = None
    owner_id: Optional[str] = None


class Booking(BaseModel):
    """
    A renter's booking. `total_price` is fixed when the booking is created
    and is not recomputed if the vehicle's rate changes later.
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str
    vehicle_id: str
    user_id: str
    start_date: str
    end_date: str
    total_price: float = Field(ge=0)
    status: BookingStatus = BookingStatus.PENDING
    owner_decision: Optional[OwnerDecision] = None
    pickup_address: str = ""
    dropoff_address: str = ""
    payment_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    vehicle: Optional[VehicleSummary] = None


class Payment(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    booking_id: str
    amount: float = Field(ge=0)
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BookingFormData(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    start_date: str
    end_date: str
    pickup_address: str = Field(min_length=1)
    dropoff_address: str = Field(min_length=1)


class PaymentFormData(BaseModel):
    """Mock payment form. Nothing is charged; the fields are only checked for shape."""
    model_config = ConfigDict(str_strip_whitespace=True)

    payment_method: Literal["credit_card", "debit_card", "upi"] = "credit_card"
    card_number: Optional[str] = None
    card_holder: Optional[str] = None
    expiry_date: Optional[str] = None
    cvv: Optional[str] = None
    upi_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_method_fields(self):
        if self.payment_method == PaymentMethod.UPI.value:
            if not self.upi_id:
                raise ValueError("UPI ID is required")
            if not UPI_PATTERN.match(self.upi_id):
                raise ValueError("Invalid UPI ID")
            return self

        if not self.card_number:
            raise ValueError("Card number is required")
        if not CARD_NUMBER_PATTERN.match(self.card_number.replace(" ", "")):
            raise ValueError("Invalid card number")
        if not self.card_holder:
            raise ValueError("Cardholder name is required")
        if not self.expiry_date or not EXPIRY_PATTERN.match(self.expiry_date):
            raise ValueError("Expiry date must be MM/YY")
        if not self.cvv or not CVV_PATTERN.match(self.cvv):
            raise ValueError("CVV must be 3 or 4 digits")
        return self
