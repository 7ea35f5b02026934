"""
Scheduling Domain

Appointment booking for the clinic agenda.

Structure:
- intervals.py   half-open time intervals and UTC normalization
- conflicts.py   per-doctor overlap detection (check_conflict)
- repository.py  appointment queries and staged writes
- service.py     BookingService: book / reschedule / delete in one transaction
- schemas.py     request and response models
- router.py      /appointments endpoints

Invariant: a doctor never holds two non-cancelled appointments whose
[starts_at, ends_at) intervals overlap.
"""

from .conflicts import ConflictResult, check_conflict
from .router import router
from .service import BookingService

__all__ = ["router", "BookingService", "ConflictResult", "check_conflict"]
