"""
Scheduling conflict detection

A doctor cannot hold two non-cancelled appointments whose intervals
overlap. Intervals are half-open, so back-to-back appointments are fine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...shared.errors import InvalidInput, StoreUnavailable
from .intervals import TimeInterval
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    conflicting_ids: frozenset = frozenset()

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_ids)


NO_CONFLICT = ConflictResult()


def check_conflict(
    db: Session,
    doctor_id: int,
    starts_at: datetime,
    duration_minutes: int,
    exclude_appointment_id: Optional[int] = None,
) -> ConflictResult:
    """
    Find appointments that would overlap a candidate booking.

    Args:
        db: open session; the query runs inside the caller's transaction
        doctor_id: doctor the candidate is booked with
        starts_at: timezone-aware start instant
        duration_minutes: positive length of the candidate
        exclude_appointment_id: appointment being rescheduled, ignored so it
            cannot collide with its own stored interval

    Returns:
        ConflictResult with the ids of every overlapping appointment

    Raises:
        InvalidInput: naive start or non-positive duration
        StoreUnavailable: the appointment query failed
    """
    if doctor_id is None or doctor_id <= 0:
        raise InvalidInput("doctor_id must be a positive integer")

    try:
        candidate = TimeInterval.from_duration(starts_at, duration_minutes)
    except ValueError as e:
        raise InvalidInput(str(e)) from e

    try:
        overlapping = AppointmentRepository.find_overlapping(
            db, doctor_id, candidate.start, candidate.end, exclude_appointment_id
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Conflict query failed for doctor {doctor_id}: {e}")
        raise StoreUnavailable("Could not read the doctor's agenda") from e

    if not overlapping:
        return NO_CONFLICT

    ids = frozenset(appt.id for appt in overlapping)
    logger.debug(
        f"Doctor {doctor_id} busy during {candidate.start.isoformat()} - "
        f"{candidate.end.isoformat()}: {sorted(ids)}"
    )
    return ConflictResult(ids)
