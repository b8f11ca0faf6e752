"""Appointment router - patient booking endpoints"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_patient
from ...database import get_db
from ...models import Patient
from ..payments.gateway import PaymentGateway, get_payment_gateway
from .schemas import (
    AppointmentIdRequest,
    AppointmentResponse,
    BookAppointmentRequest,
    BookAppointmentResponse,
    PaymentStatusResponse,
)
from .service import AppointmentService, to_appointment_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, gateway)


@router.post("/book-appointment", response_model=BookAppointmentResponse)
async def book_appointment(
    data: BookAppointmentRequest,
    current_patient: Patient = Depends(get_current_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.book_appointment(current_patient, data)
    return BookAppointmentResponse(appointmentId=appointment.id, amount=appointment.amount)


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_my_appointments(
    current_patient: Patient = Depends(get_current_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    """The caller's appointments, newest first"""
    return [to_appointment_response(a) for a in service.list_patient_appointments(current_patient)]


@router.post("/cancel-appointment", response_model=AppointmentResponse)
async def cancel_appointment(
    data: AppointmentIdRequest,
    current_patient: Patient = Depends(get_current_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_patient_appointment(data.appointmentId, current_patient)
    appointment = await service.cancel_appointment(appointment)
    return to_appointment_response(appointment)


@router.get("/payment-status/{appointment_id}", response_model=PaymentStatusResponse)
async def payment_status(
    appointment_id: int,
    current_patient: Patient = Depends(get_current_patient),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.payment_status(appointment_id, current_patient)
