"""Domain error taxonomy.

Services raise these; the API layer maps them onto HTTP responses through a
single exception handler (see ``adslot.main``). Every error means "nothing was
written": services roll back before the error leaves them.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Optional


class AdSlotError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class NotFoundError(AdSlotError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity.replace('_', ' ').capitalize()} {entity_id} not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(AdSlotError):
    """Operation attempted against an advert in the wrong status."""

    error_code = "invalid_state"


class ValidationError(AdSlotError):
    """Malformed input, rejected before any write happens."""

    error_code = "validation_error"


class PermissionDeniedError(AdSlotError):
    status_code = 403
    error_code = "forbidden"


class ConflictError(AdSlotError):
    """Capacity or category conflict on a covered date.

    Carries enough detail for the caller to pick another slot or date.
    """

    error_code = "conflict"

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        conflict_date: Optional[date] = None,
        slot_id: Optional[int] = None,
        conflicting_client: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={
                "date": conflict_date.isoformat() if conflict_date else None,
                "kind": kind,
                "slot_id": slot_id,
                "conflicting_client": conflicting_client,
            },
        )
        self.kind = kind
        self.date = conflict_date
        self.slot_id = slot_id
        self.conflicting_client = conflicting_client


__all__ = [
    "AdSlotError",
    "NotFoundError",
    "InvalidStateError",
    "ValidationError",
    "PermissionDeniedError",
    "ConflictError",
]
