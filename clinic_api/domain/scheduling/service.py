"""Booking service - Business logic for creating and rescheduling appointments"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...models import Appointment, AppointmentStatus, Client
from ...shared.errors import (
    ClientAlreadyExists,
    ClientRequired,
    DomainError,
    InvalidInput,
    NotFound,
    ScheduleConflict,
    StoreUnavailable,
)
from .conflicts import ConflictResult, check_conflict
from .intervals import TimeInterval, to_utc, zone
from .repository import OVERLAP_CONSTRAINT_NAME, AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

# Changing any of these can move an appointment onto someone else's slot
SCHEDULING_FIELDS = frozenset({"starts_at", "duration_minutes", "doctor_id", "status"})


class BookingService:
    """Service layer for appointment booking.

    Each write runs as one transaction: client resolution, doctor lock,
    conflict check and the appointment write either all commit or all roll back.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.repo = AppointmentRepository()
        self.clinic_tz = zone(settings.clinic_timezone)

    def normalize(self, value: datetime) -> datetime:
        """Convert an incoming datetime to UTC; naive values use the clinic zone"""
        try:
            return to_utc(value, self.clinic_tz)
        except ValueError as e:
            raise InvalidInput(str(e), {"value": value.isoformat()}) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def check_conflict(
        self,
        doctor_id: int,
        starts_at: datetime,
        duration_minutes: Optional[int] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> ConflictResult:
        """Dry-run conflict check for a candidate slot"""
        return check_conflict(
            self.db,
            doctor_id,
            self.normalize(starts_at),
            duration_minutes or self.settings.default_duration_minutes,
            exclude_appointment_id,
        )

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self._read(lambda: self.repo.get_appointment(self.db, appointment_id))
        if not appointment:
            raise NotFound("Appointment", appointment_id)
        return appointment

    def list_appointments(
        self,
        doctor_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> list[Appointment]:
        start = self.normalize(start) if start else None
        end = self.normalize(end) if end else None
        if start and end and end <= start:
            raise InvalidInput(
                "end must be after start", {"start": start.isoformat(), "end": end.isoformat()}
            )

        return self._read(
            lambda: self.repo.list_appointments(
                self.db, doctor_id, start, end, status.value if status else None
            )
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def book(self, data: AppointmentCreate) -> Appointment:
        """Create an appointment after resolving the client and checking the doctor's agenda"""
        starts_at = self.normalize(data.starts_at)
        duration = data.duration_minutes or self.settings.default_duration_minutes
        self._interval(starts_at, duration)

        try:
            client_id = self._resolve_client(data)
            self._lock_doctor(data.doctor_id)

            if data.status != AppointmentStatus.CANCELLED:
                self._ensure_free(data.doctor_id, starts_at, duration)

            appointment = self._persist(
                lambda: self.repo.create_appointment(
                    self.db,
                    doctor_id=data.doctor_id,
                    client_id=client_id,
                    starts_at=starts_at,
                    duration_minutes=duration,
                    status=data.status.value,
                    description=data.description,
                ),
                data.doctor_id,
                starts_at,
                duration,
            )
            appointment_id = appointment.id
        except DomainError:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Booked appointment {appointment_id} for doctor {data.doctor_id} "
            f"at {starts_at.isoformat()} ({duration} min)"
        )
        return self.get_appointment(appointment_id)

    def reschedule(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Apply a partial update, re-checking conflicts when the slot can change"""
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise InvalidInput("No fields provided to update")

        if "starts_at" in changes:
            changes["starts_at"] = self.normalize(changes["starts_at"])
        if "status" in changes:
            changes["status"] = AppointmentStatus(changes["status"]).value

        try:
            appointment = self._read(lambda: self.repo.get_appointment(self.db, appointment_id))
            if not appointment:
                raise NotFound("Appointment", appointment_id)

            doctor_id = changes.get("doctor_id", appointment.doctor_id)
            starts_at = changes.get("starts_at", appointment.starts_at)
            duration = changes.get("duration_minutes", appointment.duration_minutes)
            status = changes.get("status", appointment.status)
            self._interval(starts_at, duration)

            if SCHEDULING_FIELDS & changes.keys():
                self._lock_doctor(doctor_id)

            if status != AppointmentStatus.CANCELLED.value and SCHEDULING_FIELDS & changes.keys():
                self._ensure_free(doctor_id, starts_at, duration, exclude=appointment.id)

            self._persist(
                lambda: self.repo.update_appointment(self.db, appointment, **changes),
                doctor_id,
                starts_at,
                duration,
                exclude=appointment.id,
            )
        except DomainError:
            self.db.rollback()
            raise

        logger.info(f"✅ Updated appointment {appointment_id}: {sorted(changes)}")
        self.db.expire_all()
        return self.get_appointment(appointment_id)

    def delete_appointment(self, appointment_id: int) -> None:
        """Hard delete an appointment"""
        try:
            appointment = self._read(lambda: self.repo.get_appointment(self.db, appointment_id))
            if not appointment:
                raise NotFound("Appointment", appointment_id)

            self.repo.delete_appointment(self.db, appointment)
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete appointment {appointment_id}: {e}")
            raise StoreUnavailable("Could not delete the appointment") from e

        logger.info(f"🗑️ Deleted appointment {appointment_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_client(self, data: AppointmentCreate) -> int:
        if data.client_id:
            client = self._read(
                lambda: self.db.query(Client).filter(Client.id == data.client_id).first()
            )
            if not client:
                raise NotFound("Client", data.client_id)
            return client.id

        if data.has_new_client:
            client = Client(
                name=data.new_client_name,
                national_id=data.new_client_national_id,
                phone=data.new_client_phone or "",
                active=True,  # Bot enabled by default
            )
            self.db.add(client)
            try:
                self.db.flush()
            except IntegrityError as e:
                logger.warning(
                    f"⚠️ Client with national id {data.new_client_national_id} already exists"
                )
                raise ClientAlreadyExists(data.new_client_national_id) from e
            except SQLAlchemyError as e:
                raise StoreUnavailable("Could not create the client") from e

            logger.info(f"🆕 Created client {client.id} during booking")
            return client.id

        raise ClientRequired()

    def _interval(self, starts_at: datetime, duration: int) -> TimeInterval:
        try:
            return TimeInterval.from_duration(starts_at, duration)
        except ValueError as e:
            raise InvalidInput(str(e), {"starts_at": starts_at.isoformat()}) from e

    def _lock_doctor(self, doctor_id: int) -> None:
        doctor = self._read(lambda: self.repo.lock_doctor(self.db, doctor_id))
        if not doctor:
            raise NotFound("Doctor", doctor_id)

    def _ensure_free(
        self,
        doctor_id: int,
        starts_at: datetime,
        duration: int,
        exclude: Optional[int] = None,
    ) -> None:
        result = check_conflict(self.db, doctor_id, starts_at, duration, exclude)
        if result.has_conflict:
            logger.warning(
                f"🚫 Schedule conflict for doctor {doctor_id} at {starts_at.isoformat()}: "
                f"{sorted(result.conflicting_ids)}"
            )
            raise ScheduleConflict(result.conflicting_ids)

    def _persist(
        self,
        write,
        doctor_id: int,
        starts_at: datetime,
        duration: int,
        exclude: Optional[int] = None,
    ):
        """Run a staged write and commit it.

        The overlap exclusion constraint fires on flush or commit; either way it
        is reported as ScheduleConflict.
        """
        try:
            result = write()
            self.db.commit()
            return result
        except IntegrityError as e:
            self.db.rollback()
            if OVERLAP_CONSTRAINT_NAME in str(e.orig):
                # Another booking committed between our check and write
                result = check_conflict(self.db, doctor_id, starts_at, duration, exclude)
                raise ScheduleConflict(result.conflicting_ids) from e
            raise InvalidInput("Appointment violates a database constraint", str(e.orig)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save appointment: {e}")
            raise StoreUnavailable("Could not save the appointment") from e

    def _read(self, query):
        try:
            return query()
        except SQLAlchemyError as e:
            logger.error(f"❌ Appointment store query failed: {e}")
            raise StoreUnavailable("Appointment store is unavailable") from e
