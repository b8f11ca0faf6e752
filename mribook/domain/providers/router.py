"""Provider router - public provider listing"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ProviderResponse
from .service import ProviderService, to_provider_response

router = APIRouter(prefix="/api/doctor", tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


@router.get("/list")
async def list_providers(service: ProviderService = Depends(get_provider_service)):
    """All providers with their reserved slots"""
    providers = service.list_providers()
    return {"success": True, "doctors": [to_provider_response(p) for p in providers]}


@router.get("/{provider_id}", response_model=ProviderResponse)
async def get_provider(provider_id: int, service: ProviderService = Depends(get_provider_service)):
    return to_provider_response(service.get_provider(provider_id))
