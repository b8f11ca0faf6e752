"""Appointment service - Booking, cancellation and slot release"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import CURRENCY
from ...models import Appointment, Patient
from ..payments.gateway import PaymentGateway, PaymentGatewayError
from ..providers.repository import ProviderRepository
from .repository import AppointmentRepository
from .schemas import AppointmentResponse, BookAppointmentRequest, PaymentStatusResponse

logger = logging.getLogger(__name__)


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        slotDate=appointment.slot_date,
        slotTime=appointment.slot_time,
        amount=appointment.amount,
        providerIds=appointment.provider_ids,
        providers=appointment.provider_snapshot or [],
        patient=appointment.patient_snapshot or {},
        intakeForm=appointment.intake or {},
        message=appointment.message,
        cancelled=appointment.cancelled,
        completed=appointment.completed,
        paid=appointment.paid,
        paymentId=appointment.payment_id,
        paidAmount=appointment.paid_amount,
        currency=appointment.currency,
        refundStatus=appointment.refund_status,
        createdAt=appointment.created_at,
        cancelledAt=appointment.cancelled_at,
    )


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, gateway: Optional[PaymentGateway] = None):
        self.db = db
        self.gateway = gateway
        self.repo = AppointmentRepository()
        self.provider_repo = ProviderRepository()

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book_appointment(self, patient: Patient, data: BookAppointmentRequest) -> Appointment:
        """
        Book one appointment for the primary provider and any additional providers.

        The slot is reserved for every provider in the same transaction: either all
        reservations succeed or the request fails with 409 and nothing is stored.
        """
        logger.info(
            f"📥 Booking request from patient {patient.id}: providers={data.provider_ids()} "
            f"{data.slotDate} {data.slotTime}"
        )

        provider_ids = data.provider_ids()
        providers = self.provider_repo.get_providers_by_ids(self.db, provider_ids)
        if len(providers) != len(provider_ids):
            raise HTTPException(status_code=404, detail="Provider not found")

        unavailable = [p.name for p in providers if not p.available]
        if unavailable:
            raise HTTPException(status_code=400, detail=f"Not available: {', '.join(unavailable)}")

        missing = data.intakeForm.missing_required_fields()
        if missing:
            raise HTTPException(
                status_code=400,
                detail={
                    "message": "Please complete all required fields in the MRI referral form",
                    "missing_fields": missing,
                },
            )

        appointment = Appointment(
            patient_id=patient.id,
            slot_date=data.slotDate,
            slot_time=data.slotTime,
            amount=sum(p.fee for p in providers),
            patient_snapshot=patient.snapshot(),
            provider_snapshot=[p.snapshot() for p in providers],
            intake=data.intakeForm.model_dump(),
            message=data.message,
            currency=CURRENCY,
        )

        try:
            appointment = self.repo.create_with_slots(self.db, appointment, providers)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"⚠️ Slot conflict for providers {provider_ids} at {data.slotDate} {data.slotTime}"
            )
            raise HTTPException(status_code=409, detail="Slot not available") from e

        logger.info(f"✅ Appointment {appointment.id} booked (amount={appointment.amount})")
        return appointment

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_patient_appointments(self, patient: Patient) -> list[Appointment]:
        return self.repo.get_patient_appointments(self.db, patient.id)

    def list_all_appointments(self) -> list[Appointment]:
        return self.repo.get_all_appointments(self.db)

    def get_patient_appointment(self, appointment_id: int, patient: Patient) -> Appointment:
        appointment = self.repo.get_patient_appointment(self.db, appointment_id, patient.id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def payment_status(self, appointment_id: int, patient: Patient) -> PaymentStatusResponse:
        appointment = self.get_patient_appointment(appointment_id, patient)
        return PaymentStatusResponse(
            appointmentId=appointment.id,
            paid=appointment.paid,
            cancelled=appointment.cancelled,
            amount=appointment.amount,
            paidAmount=appointment.paid_amount,
            currency=appointment.currency,
            paymentId=appointment.payment_id,
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def release_and_cancel(self, appointment: Appointment) -> int:
        """Mark cancelled and release the slot of every provider; returns released slot count"""
        released = self.repo.release_slots(self.db, appointment)
        appointment.cancelled = True
        appointment.cancelled_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment.id} cancelled, {released} slot(s) released")
        return released

    async def cancel_appointment(self, appointment: Appointment) -> Appointment:
        """
        Cancel an appointment. A paid appointment is refunded first; a failed refund
        is recorded on the appointment and does not stop the cancellation.
        """
        if appointment.cancelled:
            raise HTTPException(status_code=400, detail="Appointment already cancelled")

        if appointment.paid and appointment.payment_id:
            try:
                if not self.gateway:
                    raise PaymentGatewayError("Payment gateway not configured")
                await self.gateway.refund(
                    appointment.payment_id, amount=appointment.paid_amount or appointment.amount
                )
                appointment.refund_status = "refunded"
            except PaymentGatewayError as e:
                logger.error(f"❌ Refund failed for appointment {appointment.id}, cancelling anyway: {e}")
                appointment.refund_status = "failed"

        self.release_and_cancel(appointment)
        return appointment

    def complete_appointment(self, appointment: Appointment) -> Appointment:
        if appointment.cancelled:
            raise HTTPException(status_code=400, detail="Cancelled appointments cannot be completed")
        appointment.completed = True
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment.id} marked completed")
        return appointment
