"""Tests for scheduling conflict detection (conflicts.py + repository overlap query)"""

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from clinic_api.domain.scheduling.conflicts import check_conflict
from clinic_api.domain.scheduling.intervals import TimeInterval
from clinic_api.domain.scheduling.repository import AppointmentRepository
from clinic_api.models import Appointment, AppointmentStatus
from clinic_api.shared.errors import InvalidInput, StoreUnavailable


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def add_appointment(db, doctor, starts_at, minutes=30, status=AppointmentStatus.SCHEDULED):
    appointment = AppointmentRepository.create_appointment(
        db,
        doctor_id=doctor.id,
        starts_at=starts_at,
        duration_minutes=minutes,
        status=status.value,
    )
    db.commit()
    return appointment


# ============================================================================
# CORE SCENARIOS
# ============================================================================


def test_empty_agenda_has_no_conflict(db, doctor):
    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 0), 30)
    assert not result.has_conflict
    assert result.conflicting_ids == frozenset()


def test_partial_overlap_is_reported(db, doctor):
    existing = add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 15), 30)

    assert result.has_conflict
    assert result.conflicting_ids == {existing.id}


def test_back_to_back_is_allowed(db, doctor):
    add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30)

    after = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 30), 30)
    before = check_conflict(db, doctor.id, utc(2025, 11, 3, 13, 30), 30)

    assert not after.has_conflict
    assert not before.has_conflict


def test_cancelled_appointments_do_not_block(db, doctor):
    add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30, AppointmentStatus.CANCELLED)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 0), 30)

    assert not result.has_conflict


@pytest.mark.parametrize(
    "status",
    [AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW],
)
def test_other_statuses_still_block(db, doctor, status):
    existing = add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30, status)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 10), 10)

    assert result.conflicting_ids == {existing.id}


def test_other_doctors_are_ignored(db, doctor, other_doctor):
    add_appointment(db, other_doctor, utc(2025, 11, 3, 14, 0), 60)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 0), 30)

    assert not result.has_conflict


def test_long_appointment_starting_earlier_is_found(db, doctor):
    # 13:30-15:00 covers the whole 14:00-14:30 candidate
    long_one = add_appointment(db, doctor, utc(2025, 11, 3, 13, 30), 90)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 0), 30)

    assert result.conflicting_ids == {long_one.id}


def test_candidate_containing_several_appointments(db, doctor):
    first = add_appointment(db, doctor, utc(2025, 11, 3, 9, 0), 15)
    second = add_appointment(db, doctor, utc(2025, 11, 3, 9, 30), 15)
    add_appointment(db, doctor, utc(2025, 11, 3, 10, 0), 15)

    result = check_conflict(db, doctor.id, utc(2025, 11, 3, 9, 0), 60)

    assert result.conflicting_ids == {first.id, second.id}


def test_excluded_appointment_does_not_conflict_with_itself(db, doctor):
    existing = add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30)

    result = check_conflict(
        db, doctor.id, utc(2025, 11, 3, 14, 0), 30, exclude_appointment_id=existing.id
    )

    assert not result.has_conflict


def test_exclusion_only_removes_that_appointment(db, doctor):
    moving = add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30)
    blocker = add_appointment(db, doctor, utc(2025, 11, 3, 14, 30), 30)

    result = check_conflict(
        db, doctor.id, utc(2025, 11, 3, 14, 15), 30, exclude_appointment_id=moving.id
    )

    assert result.conflicting_ids == {blocker.id}


def test_offset_datetimes_compare_as_instants(db, doctor):
    existing = add_appointment(db, doctor, utc(2025, 11, 3, 14, 0), 30)
    minus_three = timezone(timedelta(hours=-3))

    # 11:15-03:00 is 14:15 UTC
    result = check_conflict(db, doctor.id, datetime(2025, 11, 3, 11, 15, tzinfo=minus_three), 30)

    assert result.conflicting_ids == {existing.id}


# ============================================================================
# INVALID INPUT / STORE FAILURES
# ============================================================================


def test_naive_start_is_rejected(db, doctor):
    with pytest.raises(InvalidInput):
        check_conflict(db, doctor.id, datetime(2025, 11, 3, 14, 0), 30)


@pytest.mark.parametrize("duration", [0, -30])
def test_non_positive_duration_is_rejected(db, doctor, duration):
    with pytest.raises(InvalidInput):
        check_conflict(db, doctor.id, utc(2025, 11, 3, 14, 0), duration)


@pytest.mark.parametrize("doctor_id", [0, -1, None])
def test_invalid_doctor_id_is_rejected(db, doctor_id):
    with pytest.raises(InvalidInput):
        check_conflict(db, doctor_id, utc(2025, 11, 3, 14, 0), 30)


def test_store_failure_is_reported_as_unavailable():
    broken = MagicMock()
    broken.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(StoreUnavailable):
        check_conflict(broken, 1, utc(2025, 11, 3, 14, 0), 30)


# ============================================================================
# PROPERTIES
# ============================================================================


def test_conflict_matches_pairwise_overlap(db, doctor):
    """The query agrees with the in-memory half-open overlap rule"""
    rng = random.Random(1234)
    day = utc(2025, 11, 3, 8, 0)
    stored = []
    for _ in range(12):
        start = day + timedelta(minutes=5 * rng.randrange(0, 96))
        minutes = rng.choice([10, 15, 30, 45, 60, 90])
        stored.append(add_appointment(db, doctor, start, minutes))

    for _ in range(40):
        start = day + timedelta(minutes=5 * rng.randrange(0, 96))
        minutes = rng.choice([5, 15, 30, 60])
        candidate = TimeInterval.from_duration(start, minutes)

        expected = {
            appt.id
            for appt in stored
            if TimeInterval(appt.starts_at, appt.ends_at).overlaps(candidate)
        }
        result = check_conflict(db, doctor.id, start, minutes)

        assert result.conflicting_ids == expected


def test_result_does_not_depend_on_insertion_order(db, doctor, other_doctor):
    slots = [
        (utc(2025, 11, 3, 9, 0), 30),
        (utc(2025, 11, 3, 9, 20), 20),
        (utc(2025, 11, 3, 10, 0), 60),
    ]
    for start, minutes in slots:
        add_appointment(db, doctor, start, minutes)
    for start, minutes in reversed(slots):
        add_appointment(db, other_doctor, start, minutes)

    def conflicting_starts(doctor_id):
        result = check_conflict(db, doctor_id, utc(2025, 11, 3, 9, 15), 60)
        rows = db.query(Appointment).filter(Appointment.id.in_(result.conflicting_ids)).all()
        return sorted(row.starts_at for row in rows)

    assert conflicting_starts(doctor.id) == conflicting_starts(other_doctor.id)
    assert len(conflicting_starts(doctor.id)) == 3
