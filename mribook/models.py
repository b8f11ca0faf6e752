from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=False)
    dob = Column(String(20), nullable=True)  # D/M/Y as entered on the profile page
    gender = Column(String(20), nullable=True)
    address = Column(JSON, nullable=True)  # {"line1": ..., "line2": ...}
    image = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    appointments = relationship("Appointment", back_populates="patient")

    def snapshot(self) -> dict:
        """Patient details copied onto an appointment at booking time"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "dob": self.dob,
            "gender": self.gender,
            "address": self.address or {"line1": "", "line2": ""},
        }


class Provider(Base):
    """A bookable service (called "doctor" by the public API)"""

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    speciality = Column(String(255), nullable=True)
    about = Column(Text, nullable=True)
    fee = Column(Float, nullable=False)
    available = Column(Boolean, default=True, nullable=False)
    image = Column(String(500), nullable=True)  # R2 object key
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    slots = relationship("BookedSlot", back_populates="provider", cascade="all, delete-orphan")

    @property
    def booked_slots(self) -> dict[str, list[str]]:
        """Reserved times keyed by "D/M/Y" date"""
        booked: dict[str, list[str]] = {}
        for slot in self.slots:
            booked.setdefault(slot.slot_date, []).append(slot.slot_time)
        return booked

    def snapshot(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "speciality": self.speciality,
            "fee": self.fee,
            "image": self.image,
        }


class BookedSlot(Base):
    """One reserved (provider, date, time). The unique constraint is the reservation lock."""

    __tablename__ = "booked_slots"
    __table_args__ = (
        UniqueConstraint("provider_id", "slot_date", "slot_time", name="uq_provider_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    slot_date = Column(String(20), nullable=False)
    slot_time = Column(String(20), nullable=False)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    provider = relationship("Provider", back_populates="slots")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    slot_date = Column(String(20), nullable=False)
    slot_time = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    patient_snapshot = Column(JSON, nullable=False)
    provider_snapshot = Column(JSON, nullable=False)  # list, primary first
    intake = Column(JSON, nullable=False)
    message = Column(Text, nullable=True)

    cancelled = Column(Boolean, default=False, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    paid = Column(Boolean, default=False, nullable=False)

    # Payment correlation
    payment_session_id = Column(String(255), nullable=True, index=True)
    payment_session_created_at = Column(DateTime, nullable=True)
    payment_id = Column(String(255), nullable=True)
    paid_amount = Column(Float, nullable=True)
    currency = Column(String(10), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    refund_status = Column(String(50), nullable=True)  # refunded, failed

    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    patient = relationship("Patient", back_populates="appointments")
    provider_links = relationship(
        "AppointmentProvider",
        back_populates="appointment",
        order_by="AppointmentProvider.position",
        cascade="all, delete-orphan",
    )

    @property
    def provider_ids(self) -> list[int]:
        return [link.provider_id for link in self.provider_links if link.provider_id is not None]


class AppointmentProvider(Base):
    """Provider referenced by an appointment; position 0 is the primary"""

    __tablename__ = "appointment_providers"
    __table_args__ = (UniqueConstraint("appointment_id", "provider_id", name="uq_appointment_provider"),)

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Cleared when a provider with only cancelled bookings is deleted
    provider_id = Column(
        Integer, ForeignKey("providers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    position = Column(Integer, default=0, nullable=False)

    appointment = relationship("Appointment", back_populates="provider_links")
