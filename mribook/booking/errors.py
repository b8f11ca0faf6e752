"""Errors raised by the booking client"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for booking flow failures; `detail` carries the backend's error body"""

    def __init__(self, message: str, step: Optional[str] = None, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.detail = detail


class ValidationError(BookingError):
    """Input is incomplete or invalid; fixed locally and never sent to the backend"""

    def __init__(self, message: str, fields: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.fields = list(fields or [])


class ConflictError(BookingError):
    """The chosen slot was taken after the calendar was rendered"""

    pass


class AuthError(BookingError):
    """Missing or expired credentials; the user has to log in again"""

    def __init__(self, message: str, expired: bool = False, **kwargs):
        super().__init__(message, **kwargs)
        self.expired = expired


class NetworkError(BookingError):
    """The backend could not be reached; the attempt is abandoned"""

    pass


class PaymentError(BookingError):
    """Checkout session creation or payment verification failed"""

    pass


class IntegrityError(BookingError):
    """A provider cannot be deleted while active appointments reference it"""

    def __init__(self, message: str, count: int, **kwargs):
        super().__init__(message, **kwargs)
        self.count = count


class InvalidTransition(BookingError):
    """An operation was attempted from a state that does not allow it"""

    pass
