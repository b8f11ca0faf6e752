"""Patient service - Accounts, tokens and profile"""

import logging
from datetime import timedelta

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import ACCESS_TOKEN_EXPIRE_HOURS
from ...models import Patient
from ...security_utils import create_jwt_token, hash_password_bcrypt, verify_password_bcrypt
from .repository import PatientRepository
from .schemas import Address, LoginRequest, ProfileResponse, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


def create_patient_token(patient: Patient) -> str:
    return create_jwt_token(
        {"sub": str(patient.id), "role": "patient"},
        expires_delta=timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
    )


def to_profile_response(patient: Patient) -> ProfileResponse:
    return ProfileResponse(
        id=patient.id,
        name=patient.name,
        email=patient.email,
        phone=patient.phone,
        dob=patient.dob,
        gender=patient.gender,
        address=Address(**(patient.address or {})),
    )


class PatientService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def register(self, data: RegisterRequest) -> str:
        """Create a patient account and return a token"""
        if self.repo.get_patient_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="An account with this email already exists")

        try:
            patient = self.repo.create_patient(
                self.db,
                name=data.name,
                email=data.email,
                phone=data.phone,
                password_hash=hash_password_bcrypt(data.password),
                address={"line1": "", "line2": ""},
            )
        except IntegrityError as e:
            # Email taken between the check and the insert
            self.db.rollback()
            raise HTTPException(status_code=409, detail="An account with this email already exists") from e

        logger.info(f"🆕 Patient registered: {patient.id}")
        return create_patient_token(patient)

    def login(self, data: LoginRequest) -> str:
        patient = self.repo.get_patient_by_email(self.db, data.email)
        if not patient or not verify_password_bcrypt(data.password, patient.password_hash):
            logger.warning("🚫 Failed patient login attempt")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        logger.info(f"✅ Patient {patient.id} logged in")
        return create_patient_token(patient)

    def update_profile(self, patient: Patient, data: ProfileUpdate) -> Patient:
        updates = {
            "name": data.name.strip() if data.name else None,
            "phone": data.phone,
            "dob": data.dob,
            "gender": data.gender,
            "address": data.address.model_dump() if data.address else None,
        }
        patient = self.repo.update_patient(self.db, patient, **updates)
        logger.info(f"✅ Profile updated for patient {patient.id}")
        return patient
