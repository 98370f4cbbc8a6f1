from .analytics_service import AnalyticsService
from .auth_service import AuthService
from .booking_service import BookingService
from .user_service import UserService
from .vehicle_service import VehicleService

__all__ = [
    "AuthService",
    "BookingService",
    "VehicleService",
    "UserService",
    "AnalyticsService",
]
