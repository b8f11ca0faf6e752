"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ProviderCreate(BaseModel):
    """Schema for creating a new provider"""

    name: str
    speciality: Optional[str] = None
    fee: float
    about: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("fee")
    @classmethod
    def validate_fee(cls, v):
        if v <= 0:
            raise ValueError("Fee must be greater than 0")
        return v


class AvailabilityRequest(BaseModel):
    providerId: int


class ProviderResponse(BaseModel):
    """Provider as shown to patients and admins; bookedSlots feeds the slot calendar"""

    id: int
    name: str
    speciality: Optional[str] = None
    about: Optional[str] = None
    fee: float
    available: bool
    image: Optional[str] = None
    bookedSlots: dict[str, list[str]] = {}
    created_at: Optional[datetime] = None
