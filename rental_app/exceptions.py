"""
Custom exception classes for the vehicle rental web app.

These exceptions provide precise error types that services and controllers
can catch to render friendly messages instead of generic 500 errors.
"""


class RentalAppError(Exception):
    """Base class; every subclass carries a user-facing message."""

    default_message = "Error: something went wrong"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class VehicleNotFoundError(RentalAppError):
    """Raised when a vehicle ID cannot be found in the system."""

    default_message = "Error: vehicle not found"


class BookingNotFoundError(RentalAppError):
    """Raised when a booking cannot be found or is not visible to the viewer."""

    default_message = "Error: booking not found"


class ProfileNotFoundError(RentalAppError):
    """Raised when a user profile cannot be found in the system."""

    default_message = "Error: profile not found"


class BackendError(RentalAppError):
    """Raised by the store on a failed write or a constraint violation."""

    default_message = "Error: the request could not be completed, please try again"


class BookingConflictError(RentalAppError):
    """Raised when the overlap policy rejects a booking for already booked dates."""

    default_message = "This vehicle is already booked for some of the selected dates."


class InvalidTransitionError(RentalAppError):
    """Raised when a booking status change is not allowed by the lifecycle."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot change booking from {current} to {target}")

