from datetime import date
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.constants import PLACEHOLDER, VehicleCategory, VehicleType


def valid_image_path(s: Optional[str]) -> bool:
    """Accept /static/... or absolute http(s) URL."""
    if not s:
        return False
    s = s.strip()
    if s.startswith("/static/"):
        return True
    u = urlparse(s)
    return u.scheme in ("http", "https") and bool(u.netloc)


class Vehicle(BaseModel):
    """
    A listed vehicle. The daily rate is the price charged per rental day;
    `available` is a plain flag with no reservation calendar behind it.
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str
    make: str
    model: str
    year: int
    category: VehicleCategory
    type: VehicleType = VehicleType.CAR
    daily_rate: float = Field(gt=0)
    location: str = ""
    available: bool = True
    owner_id: str
    image_url: str = PLACEHOLDER
    description: str = ""
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1)
    doors: Optional[int] = Field(default=None, ge=0)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def title(self) -> str:
        return f"{self.year} {self.make} {self.model}"


class VehicleIn(BaseModel):
    """Owner-submitted listing data (create form)."""
    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)

    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900)
    category: VehicleCategory
    type: VehicleType = VehicleType.CAR
    daily_rate: float = Field(gt=0)
    location: str = Field(min_length=1)
    available: bool = True
    image_url: str = PLACEHOLDER
    description: str = ""
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = Field(default=None, ge=1)
    doors: Optional[int] = Field(default=None, ge=0)

    @field_validator("year")
    @classmethod
    def _not_future_model(cls, v: int) -> int:
        if v > date.today().year + 1:
            raise ValueError("year is too far in the future")
        return v

    @field_validator("image_url", mode="before")
    @classmethod
    def _image_or_placeholder(cls, v):
        if not v or not str(v).strip():
            return PLACEHOLDER
        if not valid_image_path(str(v)):
            raise ValueError("image must be /static/... or an http(s) URL")
        return str(v).strip()


class VehiclePatch(VehicleIn):
    """Partial update; only the fields that were sent are applied."""

    make: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    year: Optional[int] = Field(default=None, ge=1900)
    category: Optional[VehicleCategory] = None
    type: Optional[VehicleType] = None
    daily_rate: Optional[float] = Field(default=None, gt=0)
    location: Optional[str] = Field(default=None, min_length=1)
    available: Optional[bool] = None
    image_url: Optional[str] = None
    description: Optional[str] = None

    @field_validator("year")
    @classmethod
    def _not_future_model(cls, v):
        if v is not None and v > date.today().year + 1:
            raise ValueError("year is too far in the future")
        return v


class VehicleFilter(BaseModel):
    """
    Browse filter. A field left as None puts no constraint on the result;
    the default filter only shows available vehicles.
    """
    model_config = ConfigDict(use_enum_values=True)

    search_query: Optional[str] = None
    location: Optional[str] = None
    category: Optional[VehicleCategory] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    available: Optional[bool] = True
    type: Optional[VehicleType] = None
