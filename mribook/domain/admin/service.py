"""Admin service - Admin login and dashboard aggregation"""

import logging
from datetime import timedelta

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_TOKEN_EXPIRE_HOURS
from ...models import Provider
from ...security_utils import constant_time_compare, create_jwt_token
from ..appointments.repository import AppointmentRepository
from ..appointments.service import to_appointment_response
from ..patients.repository import PatientRepository
from .schemas import AdminLoginRequest, DashboardResponse

logger = logging.getLogger(__name__)

LATEST_APPOINTMENTS = 5


class AdminService:
    def __init__(self, db: Session):
        self.db = db
        self.appointment_repo = AppointmentRepository()
        self.patient_repo = PatientRepository()

    @staticmethod
    def login(data: AdminLoginRequest) -> str:
        """Check the configured admin credentials and issue an admin token"""
        if not ADMIN_EMAIL or not ADMIN_PASSWORD:
            logger.error("❌ ADMIN_EMAIL / ADMIN_PASSWORD not configured")
            raise HTTPException(status_code=503, detail="Admin login not configured")

        email_ok = constant_time_compare(data.email.strip().lower(), ADMIN_EMAIL.strip().lower())
        password_ok = constant_time_compare(data.password, ADMIN_PASSWORD)
        if not (email_ok and password_ok):
            logger.warning("🚫 Failed admin login attempt")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        logger.info("✅ Admin logged in")
        return create_jwt_token(
            {"sub": ADMIN_EMAIL, "email": ADMIN_EMAIL, "role": "admin"},
            expires_delta=timedelta(hours=ADMIN_TOKEN_EXPIRE_HOURS),
        )

    def dashboard(self) -> DashboardResponse:
        latest = self.appointment_repo.get_all_appointments(self.db, limit=LATEST_APPOINTMENTS)
        return DashboardResponse(
            doctors=self.db.query(Provider).count(),
            appointments=self.appointment_repo.count_appointments(self.db),
            patients=self.patient_repo.count_patients(self.db),
            latestAppointments=[to_appointment_response(a) for a in latest],
        )
