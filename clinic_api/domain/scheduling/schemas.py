"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, PositiveInt, field_validator

from ...models import AppointmentStatus
from ...shared.validators import validate_national_id, validate_phone

# A single appointment never spans more than a day
MAX_DURATION_MINUTES = 24 * 60


def validate_duration(value: Optional[int]) -> Optional[int]:
    if value is not None and value > MAX_DURATION_MINUTES:
        raise ValueError(f"Duration cannot exceed {MAX_DURATION_MINUTES} minutes")
    return value


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment.

    The client is either an existing ``client_id`` or the ``new_client_*``
    fields, which create the client inline.
    """

    starts_at: datetime
    description: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    duration_minutes: Optional[PositiveInt] = None
    doctor_id: PositiveInt

    client_id: Optional[PositiveInt] = None
    new_client_name: Optional[str] = None
    new_client_national_id: Optional[str] = None
    new_client_phone: Optional[str] = None

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration_minutes(cls, v):
        return validate_duration(v)

    @field_validator("new_client_name")
    @classmethod
    def validate_new_client_name(cls, v):
        if v is not None:
            v = v.strip()
            if len(v) < 3:
                raise ValueError("Client name must have at least 3 characters")
        return v

    @field_validator("new_client_national_id")
    @classmethod
    def validate_new_client_national_id(cls, v):
        return validate_national_id(v)

    @field_validator("new_client_phone")
    @classmethod
    def validate_new_client_phone(cls, v):
        return validate_phone(v)

    @property
    def has_new_client(self) -> bool:
        return bool(self.new_client_name and self.new_client_national_id)


class AppointmentUpdate(BaseModel):
    """Schema for partial appointment updates; only supplied fields change"""

    starts_at: Optional[datetime] = None
    description: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    duration_minutes: Optional[PositiveInt] = None
    doctor_id: Optional[PositiveInt] = None

    @field_validator("starts_at", "status", "duration_minutes", "doctor_id")
    @classmethod
    def reject_explicit_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration_minutes(cls, v):
        return validate_duration(v)


class DoctorSummary(BaseModel):
    id: int
    name: str
    specialty: Optional[str] = None

    class Config:
        from_attributes = True


class ClientSummary(BaseModel):
    id: int
    name: str
    national_id: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    """Schema for appointment response, with doctor/client display fields"""

    id: int
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    description: Optional[str] = None
    doctor_id: int
    client_id: Optional[int] = None
    doctor: Optional[DoctorSummary] = None
    client: Optional[ClientSummary] = None

    class Config:
        from_attributes = True


class ConflictResponse(BaseModel):
    has_conflict: bool
    conflicting_appointment_ids: list[int]
