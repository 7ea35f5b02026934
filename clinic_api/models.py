from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamp column that only accepts aware datetimes and always returns UTC.

    SQLite drops tzinfo on the way back, so values are stored as naive UTC and
    re-tagged on load. PostgreSQL gets a timestamptz column.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Naive datetime cannot be stored; normalize to UTC first")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    specialty = Column(String(255), nullable=True)
    work_start = Column(String(5), nullable=False, default="09:00")  # HH:MM
    work_end = Column(String(5), nullable=False, default="17:00")  # HH:MM
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    appointments = relationship("Appointment", back_populates="doctor")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False, default="")
    national_id = Column(String(50), unique=True, index=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)  # Bot enabled for this client
    needs_secretary = Column(Boolean, nullable=True)  # Flagged for secretary follow-up
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    appointments = relationship("Appointment", back_populates="client")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)

    # Interval is [starts_at, ends_at); ends_at is derived from duration_minutes
    starts_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    ends_at = Column(UTCDateTime, nullable=False)

    # scheduled, confirmed, cancelled, completed, no_show
    status = Column(
        String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False, index=True
    )
    description = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    doctor = relationship("Doctor", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")

    __table_args__ = (Index("ix_appointments_doctor_window", "doctor_id", "starts_at", "ends_at"),)
