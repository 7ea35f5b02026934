"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_national_id, validate_phone


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    name: str
    phone: str = ""
    national_id: str
    active: bool = True
    needs_secretary: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Name must have at least 3 characters")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("national_id")
    @classmethod
    def validate_national_id(cls, v):
        return validate_national_id(v)


class ClientUpdate(BaseModel):
    """Schema for toggling the bot / secretary flags of a client"""

    active: Optional[bool] = None
    needs_secretary: Optional[bool] = None


class ClientResponse(BaseModel):
    id: int
    name: str
    phone: str
    national_id: str
    active: bool
    needs_secretary: Optional[bool] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
