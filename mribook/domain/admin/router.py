"""Admin router - provider and appointment management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...services.unpaid_cleanup import cancel_stale_unpaid_appointments
from ...storage import ImageStore, get_image_store
from ..appointments.router import get_appointment_service
from ..appointments.schemas import AppointmentIdRequest, AppointmentResponse
from ..appointments.service import AppointmentService, to_appointment_response
from ..patients.schemas import TokenResponse
from ..providers.router import get_provider_service
from ..providers.schemas import AvailabilityRequest, ProviderCreate, ProviderResponse
from ..providers.service import ProviderService, to_provider_response
from .schemas import AdminLoginRequest, DashboardResponse
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

rate_limit_admin_login = create_rate_limiter(limit=5, window_seconds=60, key_prefix="admin_login")


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


@router.post("/login", response_model=TokenResponse)
async def admin_login(data: AdminLoginRequest, _: None = Depends(rate_limit_admin_login)):
    return TokenResponse(token=AdminService.login(data))


# ============================================================================
# PROVIDERS
# ============================================================================


@router.post("/add-doctor", response_model=ProviderResponse)
async def add_provider(
    name: str = Form(...),
    fee: float = Form(...),
    speciality: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    _admin: dict = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
    image_store: ImageStore = Depends(get_image_store),
):
    """Create a provider; the optional image is uploaded and its key stored"""
    try:
        data = ProviderCreate(name=name, fee=fee, speciality=speciality, about=about)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(err["msg"] for err in e.errors())) from e

    image_key = None
    if image is not None and image.filename:
        image_key = await image_store.save_provider_image(image)

    return to_provider_response(service.create_provider(data, image_key))


@router.get("/all-doctors", response_model=list[ProviderResponse])
async def list_providers(
    _admin: dict = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    return [to_provider_response(p) for p in service.list_providers()]


@router.post("/change-availability", response_model=ProviderResponse)
async def change_availability(
    data: AvailabilityRequest,
    _admin: dict = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    return to_provider_response(service.toggle_availability(data.providerId))


@router.delete("/doctor/{provider_id}")
async def delete_provider(
    provider_id: int,
    _admin: dict = Depends(get_current_admin),
    service: ProviderService = Depends(get_provider_service),
):
    service.delete_provider(provider_id)
    return {"success": True, "message": "Provider deleted"}


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    _admin: dict = Depends(get_current_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    return [to_appointment_response(a) for a in service.list_all_appointments()]


@router.post("/cancel-appointment", response_model=AppointmentResponse)
async def cancel_appointment(
    data: AppointmentIdRequest,
    _admin: dict = Depends(get_current_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(data.appointmentId)
    return to_appointment_response(await service.cancel_appointment(appointment))


@router.post("/complete-appointment", response_model=AppointmentResponse)
async def complete_appointment(
    data: AppointmentIdRequest,
    _admin: dict = Depends(get_current_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(data.appointmentId)
    return to_appointment_response(service.complete_appointment(appointment))


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    _admin: dict = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service),
):
    return service.dashboard()


@router.post("/cleanup-unpaid")
async def cleanup_unpaid(
    _admin: dict = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Cancel unpaid appointments whose payment window has passed"""
    return cancel_stale_unpaid_appointments(db)
