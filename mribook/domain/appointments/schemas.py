"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_dmy_date, validate_slot_time
from ..intake.schemas import IntakeForm


class BookAppointmentRequest(BaseModel):
    """Schema for booking one appointment with a primary and optional extra providers"""

    providerId: int
    additionalProviderIds: list[int] = []
    slotDate: str
    slotTime: str
    intakeForm: IntakeForm
    message: Optional[str] = None

    @field_validator("slotDate")
    @classmethod
    def validate_date(cls, v):
        return validate_dmy_date(v)

    @field_validator("slotTime")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)

    def provider_ids(self) -> list[int]:
        """Primary first, duplicates removed"""
        ids = [self.providerId]
        for provider_id in self.additionalProviderIds:
            if provider_id not in ids:
                ids.append(provider_id)
        return ids


class AppointmentIdRequest(BaseModel):
    appointmentId: int


class BookAppointmentResponse(BaseModel):
    success: bool = True
    appointmentId: int
    amount: float
    message: str = "Appointment booked"


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    slotDate: str
    slotTime: str
    amount: float
    providerIds: list[int]
    providers: list[dict]
    patient: dict
    intakeForm: dict
    message: Optional[str] = None
    cancelled: bool
    completed: bool
    paid: bool
    paymentId: Optional[str] = None
    paidAmount: Optional[float] = None
    currency: Optional[str] = None
    refundStatus: Optional[str] = None
    createdAt: datetime
    cancelledAt: Optional[datetime] = None


class PaymentStatusResponse(BaseModel):
    appointmentId: int
    paid: bool
    cancelled: bool
    amount: float
    paidAmount: Optional[float] = None
    currency: Optional[str] = None
    paymentId: Optional[str] = None
