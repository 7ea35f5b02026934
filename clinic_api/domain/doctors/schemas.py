"""Doctor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_hhmm


class DoctorCreate(BaseModel):
    name: str
    specialty: Optional[str] = None
    work_start: str
    work_end: str
    active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v

    @field_validator("work_start", "work_end")
    @classmethod
    def validate_hours(cls, v):
        return validate_hhmm(v)


class DoctorUpdate(BaseModel):
    """Partial update; null values are ignored"""

    specialty: Optional[str] = None
    work_start: Optional[str] = None
    work_end: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("specialty")
    @classmethod
    def validate_specialty(cls, v):
        if v is not None and len(v.strip()) < 2:
            raise ValueError("Specialty must have at least 2 characters")
        return v

    @field_validator("work_start", "work_end")
    @classmethod
    def validate_hours(cls, v):
        return validate_hhmm(v)


class DoctorResponse(BaseModel):
    id: int
    name: str
    specialty: Optional[str] = None
    work_start: str
    work_end: str
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
