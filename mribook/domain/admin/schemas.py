"""Admin domain schemas - Pydantic models for validation"""

from pydantic import BaseModel

from ..appointments.schemas import AppointmentResponse


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class DashboardResponse(BaseModel):
    doctors: int
    appointments: int
    patients: int
    latestAppointments: list[AppointmentResponse]
