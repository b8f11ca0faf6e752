"""Payment service - Checkout sessions, verification and webhook settlement"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import CURRENCY, FRONTEND_URL, PAYMENT_SESSION_TTL_MINUTES
from ...models import Appointment, Patient
from ..appointments.repository import AppointmentRepository
from .gateway import PaymentGateway, PaymentGatewayError
from .schemas import PaymentSessionResponse, VerifyPaymentResponse

logger = logging.getLogger(__name__)

SETTLEMENT_EVENTS = ("payment.succeeded", "checkout.session.completed")


def appointment_line_item(appointment: Appointment) -> dict:
    names = ", ".join(p.get("name", "") for p in appointment.provider_snapshot or [])
    return {"name": f"Appointment For {names}", "amount": appointment.amount}


def parse_appointment_ids(value) -> list[int]:
    """Appointment ids from checkout metadata ("1,2" or a list)"""
    if not value:
        return []
    items = value if isinstance(value, list) else str(value).split(",")
    ids = []
    for item in items:
        try:
            ids.append(int(str(item).strip()))
        except ValueError:
            logger.warning(f"⚠️ Ignoring malformed appointment id in metadata: {item!r}")
    return ids


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.repo = AppointmentRepository()

    async def create_session(self, patient: Patient, appointment_ids: list[int]) -> PaymentSessionResponse:
        """Create one checkout session for the given unpaid appointments"""
        unique_ids = list(dict.fromkeys(appointment_ids))
        appointments = self.repo.get_appointments_by_ids(self.db, unique_ids, patient.id)
        if len(appointments) != len(unique_ids):
            raise HTTPException(status_code=404, detail="Appointment not found")

        for appointment in appointments:
            if appointment.cancelled:
                raise HTTPException(
                    status_code=400, detail=f"Appointment {appointment.id} is cancelled"
                )
            if appointment.paid:
                raise HTTPException(
                    status_code=400, detail=f"Appointment {appointment.id} is already paid"
                )

        total = sum(a.amount for a in appointments)
        ids_param = ",".join(str(a.id) for a in appointments)
        logger.info(f"💳 Creating checkout for patient {patient.id}: appointments={ids_param} total={total}")

        try:
            session = await self.gateway.create_session(
                line_items=[appointment_line_item(a) for a in appointments],
                success_url=f"{FRONTEND_URL}/payment-success?success=true&appointment_ids={ids_param}",
                cancel_url=f"{FRONTEND_URL}/my-appointments?cancelled=true",
                metadata={"appointmentIds": ids_param, "userId": str(patient.id)},
                customer={"email": patient.email, "name": patient.name},
            )
        except PaymentGatewayError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        opened_at = datetime.utcnow()
        for appointment in appointments:
            appointment.payment_session_id = session["session_id"]
            appointment.payment_session_created_at = opened_at
        self.db.commit()

        return PaymentSessionResponse(
            sessionId=session["session_id"],
            url=session["url"],
            amount=total,
            currency=CURRENCY,
            expiresAt=opened_at + timedelta(minutes=PAYMENT_SESSION_TTL_MINUTES),
        )

    async def verify_payment(self, patient: Patient, session_id: str) -> VerifyPaymentResponse:
        """
        Confirm a checkout session and mark its appointments paid.
        Calling it again after success returns already_verified without side effects.
        """
        appointments = self.repo.get_appointments_by_session(self.db, session_id)
        if not appointments:
            raise HTTPException(status_code=404, detail="Payment session not found")
        if any(a.patient_id != patient.id for a in appointments):
            logger.warning(f"🚫 Patient {patient.id} tried to verify session {session_id} of another patient")
            raise HTTPException(status_code=403, detail="Unauthorized")

        ids = [a.id for a in appointments]
        if all(a.paid for a in appointments if not a.cancelled) and any(a.paid for a in appointments):
            logger.info(f"🔄 Session {session_id} already verified, skipping")
            return VerifyPaymentResponse(paid=True, already_verified=True, appointmentIds=ids)

        try:
            result = await self.gateway.verify(session_id)
        except PaymentGatewayError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        if not result["paid"]:
            logger.info(f"⏳ Session {session_id} not paid yet")
            return VerifyPaymentResponse(paid=False, appointmentIds=ids)

        await self.settle(appointments, result["payment_id"], result["amount"], result["currency"])
        return VerifyPaymentResponse(paid=True, appointmentIds=ids)

    async def handle_webhook_event(self, event: dict) -> dict:
        """Apply a verified payment webhook"""
        event_type = event.get("type")
        data = event.get("data") or {}

        if event_type not in SETTLEMENT_EVENTS:
            logger.info(f"ℹ️ Ignoring webhook event type {event_type}")
            return {"status": "ignored", "type": event_type}

        metadata = data.get("metadata") or {}
        ids = parse_appointment_ids(metadata.get("appointmentIds"))
        if not ids:
            logger.warning(f"⚠️ {event_type} webhook without appointmentIds metadata")
            return {"status": "ignored", "type": event_type}

        appointments = self.repo.get_appointments_by_ids(self.db, ids)
        total = data.get("total_amount")
        updated = await self.settle(
            appointments,
            data.get("payment_id"),
            total / 100 if total is not None else None,
            data.get("currency"),
        )
        return {"status": "processed", "type": event_type, "updated": updated}

    async def settle(
        self,
        appointments: list[Appointment],
        payment_id: Optional[str],
        amount: Optional[float],
        currency: Optional[str],
    ) -> int:
        """
        Record a completed payment. Already paid appointments are skipped. Cancelled
        appointments stay cancelled and only their share of the payment is refunded,
        so the other appointments of the same checkout stay paid.
        """
        updated = 0
        now = datetime.utcnow()

        for appointment in appointments:
            if appointment.paid:
                continue

            if appointment.cancelled:
                if appointment.refund_status or not payment_id:
                    continue
                logger.warning(
                    f"⚠️ Payment {payment_id} covers cancelled appointment {appointment.id}, "
                    f"refunding its {appointment.amount}"
                )
                appointment.payment_id = payment_id
                try:
                    await self.gateway.refund(payment_id, amount=appointment.amount)
                    appointment.refund_status = "refunded"
                except PaymentGatewayError as e:
                    logger.error(f"❌ Refund failed for cancelled appointment {appointment.id}: {e}")
                    appointment.refund_status = "failed"
                continue

            appointment.paid = True
            appointment.payment_id = payment_id
            appointment.paid_amount = amount if len(appointments) == 1 and amount is not None else appointment.amount
            appointment.currency = (currency or appointment.currency or CURRENCY).upper()
            appointment.paid_at = now
            updated += 1
            logger.info(f"✅ Appointment {appointment.id} marked paid (payment {payment_id})")

        self.db.commit()
        return updated
