"""Provider service - Business logic for provider operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Provider
from .repository import ProviderRepository
from .schemas import ProviderCreate, ProviderResponse

logger = logging.getLogger(__name__)


def to_provider_response(provider: Provider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        name=provider.name,
        speciality=provider.speciality,
        about=provider.about,
        fee=provider.fee,
        available=provider.available,
        image=provider.image,
        bookedSlots=provider.booked_slots,
        created_at=provider.created_at,
    )


class ProviderService:
    """Service layer for provider business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def list_providers(self) -> list[Provider]:
        return self.repo.get_providers(self.db)

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider_by_id(self.db, provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        return provider

    def create_provider(self, data: ProviderCreate, image: Optional[str] = None) -> Provider:
        """Create a provider; names are unique"""
        if self.repo.get_provider_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail=f"A provider named '{data.name}' already exists")

        provider = self.repo.create_provider(
            self.db,
            name=data.name,
            speciality=data.speciality,
            about=data.about,
            fee=data.fee,
            available=True,
            image=image,
        )
        logger.info(f"✅ Provider created: {provider.id} ({provider.name})")
        return provider

    def toggle_availability(self, provider_id: int) -> Provider:
        provider = self.get_provider(provider_id)
        provider = self.repo.set_availability(self.db, provider, not provider.available)
        logger.info(f"🔄 Provider {provider.id} availability set to {provider.available}")
        return provider

    def delete_provider(self, provider_id: int) -> None:
        """Delete a provider unless an active appointment still references it"""
        provider = self.get_provider(provider_id)

        active = self.repo.count_active_appointments(self.db, provider.id)
        if active:
            logger.warning(f"⚠️ Refusing to delete provider {provider.id}: {active} active appointment(s)")
            raise HTTPException(
                status_code=409,
                detail={
                    "message": f"Cannot delete service. There are {active} active appointment(s) scheduled.",
                    "active_appointments": active,
                },
            )

        self.repo.delete_provider(self.db, provider)
        logger.info(f"🗑️ Provider {provider_id} deleted")
