"""
Booking orchestrator

Drives one booking attempt from provider selection to a verified payment:

SelectingProviders -> SelectingSlot -> FillingIntakeForm -> Confirming ->
CreatingAppointments -> CreatingPaymentSession -> AwaitingPaymentRedirect ->
VerifyingPayment -> Booked

Validation and conflict errors are raised to the caller but leave the state
where it was, so the user can correct the input and retry. Auth and payment
errors, and a creation step where no appointment could be booked, move the
attempt to Failed and record the failing step.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..shared.validators import validate_dmy_date, validate_slot_time
from .errors import (
    AuthError,
    BookingError,
    ConflictError,
    InvalidTransition,
    NetworkError,
    PaymentError,
    ValidationError,
)
from .intake import IntakeFormState
from .selection import ProviderSelection
from .session import BookingSession
from .slots import DaySlots, booked_times, generate_slot_calendar

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    SELECTING_PROVIDERS = "SelectingProviders"
    SELECTING_SLOT = "SelectingSlot"
    FILLING_INTAKE_FORM = "FillingIntakeForm"
    CONFIRMING = "Confirming"
    CREATING_APPOINTMENTS = "CreatingAppointments"
    CREATING_PAYMENT_SESSION = "CreatingPaymentSession"
    AWAITING_PAYMENT_REDIRECT = "AwaitingPaymentRedirect"
    VERIFYING_PAYMENT = "VerifyingPayment"
    BOOKED = "Booked"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


TERMINAL_STATES = {BookingState.BOOKED, BookingState.FAILED, BookingState.CANCELLED}
CANCELLABLE_STATES = {BookingState.FILLING_INTAKE_FORM, BookingState.CONFIRMING}


@dataclass
class BookingResult:
    """Per-provider outcome of the creation step"""

    succeeded: list[dict[str, Any]] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def appointment_ids(self) -> list[int]:
        return [item["appointmentId"] for item in self.succeeded]

    @property
    def amount(self) -> float:
        return sum(item["amount"] for item in self.succeeded)

    @property
    def summary(self) -> str:
        return f"{len(self.succeeded)} of {self.total} appointments booked"


class BookingOrchestrator:
    def __init__(
        self,
        session: BookingSession,
        selection: ProviderSelection,
        intake: Optional[IntakeFormState] = None,
        months: int = 12,
        message: Optional[str] = None,
    ):
        self.session = session
        self.selection = selection
        self.intake = intake or IntakeFormState()
        self.months = months
        self.message = message

        self.state = BookingState.SELECTING_PROVIDERS
        self.failed_step: Optional[BookingState] = None
        self.error: Optional[BookingError] = None
        self.slot_date: Optional[str] = None
        self.slot_time: Optional[str] = None
        self.result: Optional[BookingResult] = None
        self.payment_session: Optional[dict] = None
        self.verification: Optional[dict] = None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _require(self, *states: BookingState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(
                f"Cannot do this from {self.state.value} (allowed: {allowed})", step=self.state.value
            )

    def _move(self, target: BookingState) -> None:
        logger.debug(f"🔄 Booking {self.state.value} -> {target.value}")
        self.state = target

    def _fail(self, error: BookingError) -> BookingError:
        self.failed_step = self.state
        error.step = error.step or self.state.value
        self.error = error
        logger.error(f"❌ Booking failed at {self.state.value}: {error.message}")
        self.state = BookingState.FAILED
        return error

    @property
    def checkout_url(self) -> Optional[str]:
        return (self.payment_session or {}).get("url")

    @property
    def session_id(self) -> Optional[str]:
        return (self.payment_session or {}).get("sessionId")

    # ------------------------------------------------------------------
    # SelectingProviders
    # ------------------------------------------------------------------

    def confirm_providers(self) -> None:
        self._require(BookingState.SELECTING_PROVIDERS)
        if len(self.selection) == 0:
            raise ValidationError("Select at least one service", fields=["providers"])
        unavailable = self.selection.unavailable()
        if unavailable:
            names = ", ".join(p.name for p in unavailable)
            raise ValidationError(f"Not available: {names}", fields=["providers"])
        self._move(BookingState.SELECTING_SLOT)

    # ------------------------------------------------------------------
    # SelectingSlot
    # ------------------------------------------------------------------

    def calendar(self, **kwargs) -> list[DaySlots]:
        """Slot grid for the current selection; multi-provider bookings start at 9 AM"""
        kwargs.setdefault("months", self.months)
        kwargs.setdefault("start_hour", 9 if len(self.selection) > 1 else 0)
        return generate_slot_calendar(self.selection.members, **kwargs)

    def choose_slot(self, slot_date: str, slot_time: str) -> None:
        """Pick a date and time, re-checked against the latest provider list"""
        self._require(BookingState.SELECTING_SLOT)
        try:
            slot_date = validate_dmy_date(slot_date)
            slot_time = validate_slot_time(slot_time)
        except ValueError as e:
            raise ValidationError(str(e), fields=["slot"]) from e

        try:
            self.selection.refresh(self.session.list_providers())
        except AuthError as e:
            raise self._fail(e)

        taken_by = [p.name for p in self.selection.members if slot_time in booked_times([p], slot_date)]
        if taken_by:
            raise ConflictError(
                f"{slot_time} on {slot_date} is no longer available for {', '.join(taken_by)}",
                step=self.state.value,
            )
        unavailable = self.selection.unavailable()
        if unavailable:
            raise ConflictError(
                f"Not available: {', '.join(p.name for p in unavailable)}", step=self.state.value
            )

        self.slot_date = slot_date
        self.slot_time = slot_time
        self._move(BookingState.FILLING_INTAKE_FORM)

    # ------------------------------------------------------------------
    # FillingIntakeForm / Confirming
    # ------------------------------------------------------------------

    def update_intake(self, path: str, value: Any) -> None:
        self._require(BookingState.FILLING_INTAKE_FORM)
        self.intake.update(path, value)

    def submit_intake(self) -> None:
        self._require(BookingState.FILLING_INTAKE_FORM)
        self.intake.validate_for_submission()
        self._move(BookingState.CONFIRMING)

    def edit_intake(self) -> None:
        """Go back from the confirmation screen to the form"""
        self._require(BookingState.CONFIRMING)
        self._move(BookingState.FILLING_INTAKE_FORM)

    def cancel(self) -> None:
        if self.state not in CANCELLABLE_STATES:
            raise InvalidTransition(
                f"Booking cannot be cancelled from {self.state.value}", step=self.state.value
            )
        self._move(BookingState.CANCELLED)
        logger.info("🚫 Booking cancelled before payment")

    def confirm(self) -> BookingResult:
        """Create the appointments and the payment session; returns the per-provider result"""
        self._require(BookingState.CONFIRMING)
        result = self.create_appointments()
        self.create_payment_session()
        return result

    # ------------------------------------------------------------------
    # CreatingAppointments / CreatingPaymentSession
    # ------------------------------------------------------------------

    def create_appointments(self) -> BookingResult:
        self._require(BookingState.CONFIRMING)
        self._move(BookingState.CREATING_APPOINTMENTS)

        payload = self.intake.payload()
        result = BookingResult()
        for provider in self.selection.members:
            try:
                data = self.session.book_appointment(
                    provider.id,
                    self.slot_date,
                    self.slot_time,
                    payload,
                    message=self.message,
                    step=self.state.value,
                )
            except (AuthError, NetworkError) as e:
                raise self._fail(e)
            except BookingError as e:
                logger.warning(f"⚠️ Could not book {provider.name}: {e.message}")
                result.failed.append(
                    {"providerId": provider.id, "name": provider.name, "error": e.message}
                )
                continue
            result.succeeded.append(
                {
                    "providerId": provider.id,
                    "name": provider.name,
                    "appointmentId": data["appointmentId"],
                    "amount": float(data["amount"]),
                }
            )

        self.result = result
        logger.info(f"📋 {result.summary}")
        if not result.succeeded:
            reasons = "; ".join(item["error"] for item in result.failed)
            raise self._fail(BookingError(f"No appointments could be booked: {reasons}"))

        self._move(BookingState.CREATING_PAYMENT_SESSION)
        return result

    def create_payment_session(self) -> dict:
        self._require(BookingState.CREATING_PAYMENT_SESSION)
        try:
            data = self.session.create_payment_session(self.result.appointment_ids, step=self.state.value)
        except (AuthError, PaymentError) as e:
            raise self._fail(e)
        except BookingError as e:
            raise self._fail(PaymentError(e.message, detail=e.detail))

        self.payment_session = data
        self._move(BookingState.AWAITING_PAYMENT_REDIRECT)
        logger.info(f"💳 Payment session {data.get('sessionId')} created for {data.get('amount')}")
        return data

    # ------------------------------------------------------------------
    # AwaitingPaymentRedirect / VerifyingPayment
    # ------------------------------------------------------------------

    def verify_payment(self, session_id: Optional[str] = None) -> dict:
        """Called when the patient returns from checkout; defaults to the stored session id"""
        self._require(BookingState.AWAITING_PAYMENT_REDIRECT)
        session_id = session_id or self.session_id
        self._move(BookingState.VERIFYING_PAYMENT)

        try:
            data = self.session.verify_payment(session_id, step=self.state.value)
        except (AuthError, PaymentError) as e:
            raise self._fail(e)
        except BookingError as e:
            raise self._fail(PaymentError(e.message, detail=e.detail))

        self.verification = data
        if not data.get("paid"):
            raise self._fail(PaymentError("Payment has not been completed"))

        self._move(BookingState.BOOKED)
        logger.info(f"✅ Booking confirmed: appointments {data.get('appointmentIds')}")
        return data
