"""Booking client - slot calendar, provider selection, intake form and the booking flow"""

from .admin_panel import AdminPanel, DashboardStats
from .errors import (
    AuthError,
    BookingError,
    ConflictError,
    IntegrityError,
    InvalidTransition,
    NetworkError,
    PaymentError,
    ValidationError,
)
from .intake import IntakeFormState
from .orchestrator import BookingOrchestrator, BookingResult, BookingState
from .selection import ProviderInfo, ProviderSelection
from .session import BookingSession
from .slots import DaySlots, Slot, generate_slot_calendar

__all__ = [
    "AdminPanel",
    "AuthError",
    "BookingError",
    "BookingOrchestrator",
    "BookingResult",
    "BookingSession",
    "BookingState",
    "ConflictError",
    "DashboardStats",
    "DaySlots",
    "IntakeFormState",
    "IntegrityError",
    "InvalidTransition",
    "NetworkError",
    "PaymentError",
    "ProviderInfo",
    "ProviderSelection",
    "Slot",
    "ValidationError",
    "generate_slot_calendar",
]
