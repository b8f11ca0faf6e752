"""Provider repository - Database operations for providers"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Appointment, AppointmentProvider, Provider


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def get_providers(db: Session) -> list[Provider]:
        """Get all providers with their reserved slots"""
        return db.query(Provider).options(selectinload(Provider.slots)).order_by(Provider.id).all()

    @staticmethod
    def get_provider_by_id(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_providers_by_ids(db: Session, provider_ids: list[int]) -> list[Provider]:
        """Get providers in the order the ids were given"""
        found = {p.id: p for p in db.query(Provider).filter(Provider.id.in_(provider_ids)).all()}
        return [found[pid] for pid in provider_ids if pid in found]

    @staticmethod
    def get_provider_by_name(db: Session, name: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.name == name).first()

    @staticmethod
    def create_provider(db: Session, **provider_data) -> Provider:
        provider = Provider(**provider_data)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def set_availability(db: Session, provider: Provider, available: bool) -> Provider:
        provider.available = available
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def count_active_appointments(db: Session, provider_id: int) -> int:
        """Non-cancelled appointments that reference the provider at any position"""
        return (
            db.query(Appointment)
            .join(AppointmentProvider, AppointmentProvider.appointment_id == Appointment.id)
            .filter(
                AppointmentProvider.provider_id == provider_id,
                Appointment.cancelled.is_(False),
            )
            .count()
        )

    @staticmethod
    def delete_provider(db: Session, provider: Provider) -> None:
        db.delete(provider)
        db.commit()
