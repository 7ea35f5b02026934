"""Domain errors shared by the scheduling, clients and doctors domains.

Raised from services and translated to HTTP responses in main.py.
"""

from typing import Any, Iterable, Optional


class DomainError(Exception):
    """Base class: every failure carries a kind, a message and optional detail"""

    kind = "domain_error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.detail is not None:
            body["details"] = self.detail
        return body


class InvalidInput(DomainError):
    kind = "validation_error"
    status_code = 400


class ClientRequired(InvalidInput):
    kind = "client_required"

    def __init__(self):
        super().__init__("Select an existing client or provide new client details")


class ScheduleConflict(DomainError):
    kind = "schedule_conflict"
    status_code = 409

    def __init__(self, conflicting_ids: Iterable[int]):
        ids = sorted(conflicting_ids)
        if ids:
            super().__init__(
                "The doctor already has an appointment in that time slot",
                {"conflicting_appointment_ids": ids},
            )
        else:
            # The competing booking is no longer visible after rollback
            super().__init__("The time slot was taken by a concurrent booking")
        self.conflicting_ids = frozenset(ids)


class ClientAlreadyExists(DomainError):
    kind = "client_already_exists"
    status_code = 409

    def __init__(self, national_id: str):
        super().__init__(
            "A client with that national id already exists", {"national_id": national_id}
        )
        self.national_id = national_id


class NotFound(DomainError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", {"id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class StoreUnavailable(DomainError):
    kind = "store_unavailable"
    status_code = 503
