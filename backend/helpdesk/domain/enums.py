"""Domain Enumerations - Roles, ticket status and priority"""
from enum import Enum
from typing import Dict, Optional


class UserRole(str, Enum):
    """Profile roles"""
    ADMIN = "admin"
    DEPARTMENT_MANAGER = "department_manager"
    USER = "user"


class TicketStatus(str, Enum):
    """Ticket status - any status may follow any other"""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    """Ticket priority"""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class SlaStatus(str, Enum):
    """SLA health of a ticket relative to its deadline"""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"


# Statuses after which a ticket counts as done
RESOLVED_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})

# Statuses counted as "open" on the dashboard
OPEN_STATUSES = frozenset({TicketStatus.NEW, TicketStatus.IN_PROGRESS, TicketStatus.PENDING})


# Legacy (Turkish) labels still produced by older prompts and stored data
_STATUS_ALIASES: Dict[str, TicketStatus] = {
    "yeni": TicketStatus.NEW,
    "devam_ediyor": TicketStatus.IN_PROGRESS,
    "beklemede": TicketStatus.PENDING,
    "cozuldu": TicketStatus.RESOLVED,
    "kapatildi": TicketStatus.CLOSED,
}

_PRIORITY_ALIASES: Dict[str, TicketPriority] = {
    "dusuk": TicketPriority.LOW,
    "normal": TicketPriority.NORMAL,
    "yuksek": TicketPriority.HIGH,
    "acil": TicketPriority.URGENT,
    "medium": TicketPriority.NORMAL,
}


def parse_status(value: object) -> Optional[TicketStatus]:
    """Case-insensitive status lookup, accepting legacy aliases. None if unknown."""
    if isinstance(value, TicketStatus):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    try:
        return TicketStatus(key)
    except ValueError:
        return _STATUS_ALIASES.get(key)


def parse_priority(value: object) -> Optional[TicketPriority]:
    """Case-insensitive priority lookup, accepting legacy aliases. None if unknown."""
    if isinstance(value, TicketPriority):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    try:
        return TicketPriority(key)
    except ValueError:
        return _PRIORITY_ALIASES.get(key)
