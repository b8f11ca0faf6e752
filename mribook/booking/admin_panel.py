"""Admin management panel over the admin API"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ConflictError, IntegrityError
from .selection import ProviderInfo
from .session import BookingSession

logger = logging.getLogger(__name__)


def percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part * 100 / whole, 1)


@dataclass
class DashboardStats:
    doctors: int
    appointments: int
    patients: int
    completion_rate: float
    cancellation_rate: float
    payment_rate: float
    latest_appointments: list[dict[str, Any]] = field(default_factory=list)


class AdminPanel:
    """
    CRUD surface over providers and appointments.

    Backend error messages are surfaced unchanged; a blocked provider delete
    raises IntegrityError carrying the number of active appointments.
    """

    def __init__(self, session: BookingSession):
        self.session = session

    def login(self, email: str, password: str) -> str:
        data = self.session.request("POST", "/api/admin/login", json={"email": email, "password": password})
        self.session.token = data["token"]
        return self.session.token

    # Providers

    def list_providers(self) -> list[ProviderInfo]:
        return [ProviderInfo.from_api(item) for item in self.session.request("GET", "/api/admin/all-doctors")]

    def add_provider(
        self,
        name: str,
        fee: float,
        speciality: Optional[str] = None,
        about: Optional[str] = None,
        image: Optional[tuple[str, bytes, str]] = None,
    ) -> ProviderInfo:
        """`image` is a (filename, content, content_type) tuple"""
        form = {"name": name, "fee": str(fee)}
        if speciality:
            form["speciality"] = speciality
        if about:
            form["about"] = about
        files = {"image": image} if image else None
        data = self.session.request("POST", "/api/admin/add-doctor", data=form, files=files)
        logger.info(f"✅ Added provider {data['name']}")
        return ProviderInfo.from_api(data)

    def toggle_availability(self, provider_id: int) -> ProviderInfo:
        data = self.session.request(
            "POST", "/api/admin/change-availability", json={"providerId": provider_id}
        )
        return ProviderInfo.from_api(data)

    def delete_provider(self, provider_id: int) -> None:
        try:
            self.session.request("DELETE", f"/api/admin/doctor/{provider_id}")
        except ConflictError as e:
            count = e.detail.get("active_appointments", 0) if isinstance(e.detail, dict) else 0
            raise IntegrityError(e.message, count=count, detail=e.detail) from e
        logger.info(f"🗑️ Deleted provider {provider_id}")

    # Appointments

    def list_appointments(self) -> list[dict[str, Any]]:
        return self.session.request("GET", "/api/admin/appointments")

    def cancel_appointment(self, appointment_id: int) -> dict[str, Any]:
        return self.session.request(
            "POST", "/api/admin/cancel-appointment", json={"appointmentId": appointment_id}
        )

    def complete_appointment(self, appointment_id: int) -> dict[str, Any]:
        return self.session.request(
            "POST", "/api/admin/complete-appointment", json={"appointmentId": appointment_id}
        )

    def cleanup_unpaid(self) -> dict[str, int]:
        return self.session.request("POST", "/api/admin/cleanup-unpaid")

    # Dashboard

    def dashboard(self) -> DashboardStats:
        """Counts from the backend plus rates computed over the full appointment list"""
        counts = self.session.request("GET", "/api/admin/dashboard")
        appointments = self.list_appointments()
        total = len(appointments)
        return DashboardStats(
            doctors=counts["doctors"],
            appointments=counts["appointments"],
            patients=counts["patients"],
            completion_rate=percentage(sum(1 for a in appointments if a["completed"]), total),
            cancellation_rate=percentage(sum(1 for a in appointments if a["cancelled"]), total),
            payment_rate=percentage(sum(1 for a in appointments if a["paid"]), total),
            latest_appointments=counts["latestAppointments"],
        )
