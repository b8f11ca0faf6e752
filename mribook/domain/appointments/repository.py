"""Appointment repository - Database operations for appointments and slot reservations"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import Appointment, AppointmentProvider, BookedSlot, Provider


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _query(db: Session):
        return db.query(Appointment).options(selectinload(Appointment.provider_links))

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return AppointmentRepository._query(db).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_patient_appointment(db: Session, appointment_id: int, patient_id: int) -> Optional[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.id == appointment_id, Appointment.patient_id == patient_id)
            .first()
        )

    @staticmethod
    def get_patient_appointments(db: Session, patient_id: int) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.patient_id == patient_id)
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .all()
        )

    @staticmethod
    def get_appointments_by_ids(
        db: Session, appointment_ids: list[int], patient_id: Optional[int] = None
    ) -> list[Appointment]:
        query = AppointmentRepository._query(db).filter(Appointment.id.in_(appointment_ids))
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        return query.order_by(Appointment.id).all()

    @staticmethod
    def get_appointments_by_session(db: Session, session_id: str) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.payment_session_id == session_id)
            .order_by(Appointment.id)
            .all()
        )

    @staticmethod
    def get_all_appointments(db: Session, limit: Optional[int] = None) -> list[Appointment]:
        query = AppointmentRepository._query(db).order_by(
            Appointment.created_at.desc(), Appointment.id.desc()
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_stale_unpaid(db: Session, cutoff: datetime) -> list[Appointment]:
        """Unpaid, active appointments whose booking and latest checkout both predate the cutoff"""
        return (
            AppointmentRepository._query(db)
            .filter(
                Appointment.paid.is_(False),
                Appointment.cancelled.is_(False),
                Appointment.created_at < cutoff,
                or_(
                    Appointment.payment_session_created_at.is_(None),
                    Appointment.payment_session_created_at < cutoff,
                ),
            )
            .all()
        )

    @staticmethod
    def count_appointments(db: Session) -> int:
        return db.query(Appointment).count()

    @staticmethod
    def create_with_slots(db: Session, appointment: Appointment, providers: list[Provider]) -> Appointment:
        """
        Insert the appointment and reserve its slot for every provider in one transaction.

        Raises:
            sqlalchemy.exc.IntegrityError: if any provider already holds the slot
        """
        db.add(appointment)
        db.flush()

        for position, provider in enumerate(providers):
            db.add(
                AppointmentProvider(
                    appointment_id=appointment.id, provider_id=provider.id, position=position
                )
            )
            db.add(
                BookedSlot(
                    provider_id=provider.id,
                    slot_date=appointment.slot_date,
                    slot_time=appointment.slot_time,
                    appointment_id=appointment.id,
                )
            )

        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def release_slots(db: Session, appointment: Appointment) -> int:
        """Delete every slot reservation held by the appointment (caller commits)"""
        return (
            db.query(BookedSlot)
            .filter(BookedSlot.appointment_id == appointment.id)
            .delete(synchronize_session="fetch")
        )
