"""Shared validation utilities"""

import re
from typing import Optional

HHMM_PATTERN = re.compile(r"^(0[0-9]|1[0-9]|2[0-3]):[0-5][0-9]$")


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    """
    Validate a wall-clock time of day in HH:MM (24h) format.

    Raises:
        ValueError: If the value is not between 00:00 and 23:59
    """
    if value is None:
        return value

    value = value.strip()
    if not HHMM_PATTERN.match(value):
        raise ValueError("Time must use HH:MM format (00:00-23:59)")
    return value


def validate_national_id(national_id: Optional[str]) -> Optional[str]:
    """
    Normalize a national id (DNI) for storage.

    Dots, dashes and spaces are removed so "12.345.678" and "12345678" are
    the same client.

    Raises:
        ValueError: If fewer than 7 characters remain
    """
    if national_id is None:
        return national_id

    normalized = re.sub(r"[\s.\-]", "", national_id).upper()
    if len(normalized) < 7:
        raise ValueError("National id must have at least 7 characters")
    return normalized


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number loosely: at least 8 digits after stripping formatting.

    Empty strings are allowed (phone is optional for clients).
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8:
        raise ValueError("Phone number must have at least 8 digits")

    prefix = "+" if phone.strip().startswith("+") else ""
    return f"{prefix}{digits}"
