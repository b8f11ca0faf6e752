"""Patient router - registration, login and profile endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_patient
from ...database import get_db
from ...models import Patient
from ...rate_limiter import create_rate_limiter
from .schemas import LoginRequest, ProfileResponse, ProfileUpdate, RegisterRequest, TokenResponse
from .service import PatientService, to_profile_response

router = APIRouter(prefix="/api/user", tags=["Patients"])

rate_limit_patient_auth = create_rate_limiter(limit=10, window_seconds=60, key_prefix="patient_auth")


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.post("/register", response_model=TokenResponse)
async def register(
    data: RegisterRequest,
    service: PatientService = Depends(get_patient_service),
    _: None = Depends(rate_limit_patient_auth),
):
    return TokenResponse(token=service.register(data))


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    service: PatientService = Depends(get_patient_service),
    _: None = Depends(rate_limit_patient_auth),
):
    return TokenResponse(token=service.login(data))


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_patient: Patient = Depends(get_current_patient)):
    return to_profile_response(current_patient)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    current_patient: Patient = Depends(get_current_patient),
    service: PatientService = Depends(get_patient_service),
):
    return to_profile_response(service.update_profile(current_patient, data))
