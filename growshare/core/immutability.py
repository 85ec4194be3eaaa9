"""Append-only and no-delete enforcement using SQLAlchemy events."""

import logging
from datetime import UTC, datetime

from sqlalchemy import event

from growshare.core.exceptions import InvalidOperationError

logger = logging.getLogger(__name__)

_registered = False


class ImmutabilityViolationError(InvalidOperationError):
    """Raised when attempting to modify or delete a protected record."""

    def __init__(self, model_name: str, operation: str, record_id: str):
        self.model_name = model_name
        self.operation = operation
        self.record_id = record_id
        super().__init__(
            f"Immutability violation: Cannot {operation} {model_name} record {record_id}."
        )


def _log_immutability_violation(model_name: str, operation: str, record_id: str) -> None:
    """Log immutability violation for audit purposes."""
    logger.error(
        f"IMMUTABILITY_VIOLATION: Attempted to {operation} {model_name} "
        f"record_id={record_id} at {datetime.now(UTC).isoformat()}"
    )


def _refuse(model, operation: str) -> None:
    name = model.__name__
    event_name = "before_update" if operation == "UPDATE" else "before_delete"

    @event.listens_for(model, event_name)
    def refuse(mapper, connection, target):
        _log_immutability_violation(name, operation, str(target.id))
        raise ImmutabilityViolationError(name, operation, str(target.id))


def register_immutability_enforcement() -> None:
    """Register listeners protecting the audit trail.

    - DisputeMessage, UserActivity: append-only (no UPDATE, no DELETE)
    - Booking, Dispute: never deleted (cancellation and resolution are states)

    Safe to call more than once.
    """
    global _registered
    if _registered:
        return

    from growshare.models.booking import Booking
    from growshare.models.dispute import Dispute, DisputeMessage
    from growshare.models.user import UserActivity

    for model in (DisputeMessage, UserActivity):
        _refuse(model, "UPDATE")
        _refuse(model, "DELETE")

    for model in (Booking, Dispute):
        _refuse(model, "DELETE")

    _registered = True
    logger.info("Immutability enforcement registered for booking records")
