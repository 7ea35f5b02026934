"""Appointment repository - Database operations for appointments"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, AppointmentStatus, Doctor

# Name of the PostgreSQL exclusion constraint installed by
# migrations/add_appointment_overlap_constraint.py
OVERLAP_CONSTRAINT_NAME = "appointments_no_overlap"


class AppointmentRepository:
    """Repository for appointment database operations.

    Writes only flush; the booking service owns the transaction and commits.
    """

    @staticmethod
    def find_overlapping(
        db: Session,
        doctor_id: int,
        starts_at: datetime,
        ends_at: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> list[Appointment]:
        """Non-cancelled appointments of a doctor intersecting [starts_at, ends_at)"""
        query = db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.starts_at < ends_at,
            Appointment.ends_at > starts_at,
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.order_by(Appointment.starts_at, Appointment.id).all()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with doctor and client loaded for display"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.client))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        doctor_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        """List appointments, optionally limited to a doctor, a window and a status"""
        query = db.query(Appointment).options(
            joinedload(Appointment.doctor), joinedload(Appointment.client)
        )

        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        if start is not None:
            query = query.filter(Appointment.ends_at > start)

        if end is not None:
            query = query.filter(Appointment.starts_at < end)

        if status:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.starts_at, Appointment.id).all()

    @staticmethod
    def lock_doctor(db: Session, doctor_id: int) -> Optional[Doctor]:
        """
        Load a doctor with a row lock held until the transaction ends.

        Serializes bookings per doctor on PostgreSQL; SQLite ignores FOR UPDATE.
        """
        return db.query(Doctor).filter(Doctor.id == doctor_id).with_for_update().first()

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Stage a new appointment; ends_at is derived from the duration"""
        appointment = Appointment(**appointment_data)
        appointment.ends_at = appointment.starts_at + timedelta(
            minutes=appointment.duration_minutes
        )
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Apply supplied fields and keep ends_at in step with start/duration"""
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)

        appointment.ends_at = appointment.starts_at + timedelta(
            minutes=appointment.duration_minutes
        )
        db.flush()
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.flush()
