"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime

from pydantic import BaseModel, Field


class PaymentSessionRequest(BaseModel):
    """One checkout covering one or more of the caller's unpaid appointments"""

    appointmentIds: list[int] = Field(..., min_length=1)


class PaymentSessionResponse(BaseModel):
    success: bool = True
    sessionId: str
    url: str
    amount: float
    currency: str
    expiresAt: datetime


class VerifyPaymentRequest(BaseModel):
    sessionId: str


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    paid: bool
    already_verified: bool = False
    appointmentIds: list[int]
