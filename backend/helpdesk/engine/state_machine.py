"""Ticket State Machine - Field changes, resolution timestamps and history values"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..domain.models import Ticket
from ..domain.enums import TicketStatus, RESOLVED_STATUSES
from ..domain.errors import NothingToUpdateError, ValidationError
from ..utils.time import ensure_utc, format_iso

# Fields a caller may change; anything else in an update request is ignored
MUTABLE_FIELDS = (
    "status",
    "priority",
    "assigned_to",
    "department_id",
    "title",
    "description",
    "tags",
    "due_date",
)

REQUIRED_TEXT_FIELDS = ("title", "description")


def can_transition(from_status: TicketStatus, to_status: TicketStatus) -> bool:
    """Any status may follow any other"""
    return True


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, Enum):
        return value.value
    return value


def compute_changes(ticket: Ticket, requested: Dict[str, Any]) -> Dict[str, Any]:
    """
    Compute the subset of requested mutable fields that differ from the ticket.

    Raises:
        ValidationError: a required text field is blanked
        NothingToUpdateError: nothing would change
    """
    changes: Dict[str, Any] = {}

    for field in MUTABLE_FIELDS:
        if field not in requested:
            continue
        value = requested[field]

        if field in REQUIRED_TEXT_FIELDS:
            if value is None or not str(value).strip():
                raise ValidationError(f"{field} cannot be empty", details={"field": field})
            value = str(value).strip()

        if field == "status" and value is None:
            raise ValidationError("status cannot be empty", details={"field": field})
        if field == "priority" and value is None:
            raise ValidationError("priority cannot be empty", details={"field": field})
        if field == "department_id" and not value:
            raise ValidationError("department_id cannot be empty", details={"field": field})
        if field == "tags" and value is None:
            value = []

        if _comparable(getattr(ticket, field)) != _comparable(value):
            changes[field] = value

    if not changes:
        raise NothingToUpdateError("Nothing to update")

    return changes


def resolved_at_for(
    ticket: Ticket,
    changes: Dict[str, Any],
    now: datetime
) -> Optional[Dict[str, Any]]:
    """
    Derived resolved_at update for a status change, or None when unaffected.

    Entering resolved/closed stamps the time once; leaving them clears it.
    """
    if "status" not in changes:
        return None

    new_status = TicketStatus(changes["status"])
    if new_status in RESOLVED_STATUSES:
        if ticket.resolved_at is None:
            return {"resolved_at": now}
        return None

    if ticket.resolved_at is not None:
        return {"resolved_at": None}
    return None


def stringify(value: Any) -> Optional[str]:
    """Render a field value for a history entry"""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_iso(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def changed_field_values(ticket: Ticket, changes: Dict[str, Any]) -> List[Dict[str, Optional[str]]]:
    """Old/new string pairs for each changed field, in field order"""
    return [
        {
            "field_name": field,
            "old_value": stringify(getattr(ticket, field)),
            "new_value": stringify(changes[field]),
        }
        for field in MUTABLE_FIELDS
        if field in changes
    ]
