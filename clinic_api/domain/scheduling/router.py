"""Appointment router - FastAPI endpoints for booking and rescheduling"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...config import Settings, get_settings
from ...database import get_db
from ...models import Appointment, AppointmentStatus
from ...rate_limiter import rate_limit_bookings
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    ConflictResponse,
    MAX_DURATION_MINUTES,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_booking_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, settings)


def to_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse.model_validate(appointment)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    doctor_id: Optional[int] = Query(None, gt=0),
    start: Optional[datetime] = Query(None, description="Only appointments ending after this"),
    end: Optional[datetime] = Query(None, description="Only appointments starting before this"),
    status: Optional[AppointmentStatus] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """List appointments with doctor and client display fields"""
    appointments = service.list_appointments(doctor_id, start, end, status)
    return [to_response(a) for a in appointments]


@router.get("/conflicts", response_model=ConflictResponse)
async def check_conflicts(
    doctor_id: int = Query(..., gt=0),
    starts_at: datetime = Query(...),
    duration_minutes: Optional[int] = Query(None, gt=0, le=MAX_DURATION_MINUTES),
    exclude_appointment_id: Optional[int] = Query(None, gt=0),
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Check whether a slot is free without booking it"""
    result = service.check_conflict(doctor_id, starts_at, duration_minutes, exclude_appointment_id)
    return ConflictResponse(
        has_conflict=result.has_conflict,
        conflicting_appointment_ids=sorted(result.conflicting_ids),
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return to_response(service.get_appointment(appointment_id))


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=201,
    dependencies=[Depends(rate_limit_bookings)],
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Book an appointment, creating the client inline when requested"""
    logger.info(f"📥 Booking request from user {current_user.id} for doctor {data.doctor_id}")
    return to_response(service.book(data))


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    dependencies=[Depends(rate_limit_bookings)],
)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Reschedule or update an appointment; only supplied fields change"""
    return to_response(service.reschedule(appointment_id, data))


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    service.delete_appointment(appointment_id)
    return Response(status_code=204)
