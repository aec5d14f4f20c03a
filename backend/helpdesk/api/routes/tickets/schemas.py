"""
Ticket Schemas

Request and response models for ticket API endpoints.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ....domain.models import TicketDetail
from ....domain.enums import TicketPriority, TicketStatus, parse_priority, parse_status
from ....domain.errors import ValidationError
from ....utils.time import parse_iso


# =============================================================================
# Ticket CRUD Schemas
# =============================================================================

class CreateTicketRequest(BaseModel):
    """Request to create a new ticket"""
    title: str = Field(..., max_length=500)
    description: str = Field(..., max_length=10000)
    department_id: Optional[str] = Field(None, description="Omit to let AI routing choose")
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None


class UpdateTicketRequest(BaseModel):
    """
    Partial ticket update

    Only fields present in the body are considered. Unknown fields are ignored.
    """
    status: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    department_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = Field(None, max_length=10000)
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    expected_version: Optional[int] = Field(None, description="Fail with 409 if the ticket changed since this version")

    def requested_changes(self) -> Dict[str, Any]:
        """Fields present in the request, with status/priority parsed"""
        requested = self.model_dump(exclude_unset=True)
        requested.pop("expected_version", None)
        if "status" in requested:
            requested["status"] = to_status(requested["status"])
        if "priority" in requested:
            requested["priority"] = to_priority(requested["priority"])
        return requested


class TicketListResponse(BaseModel):
    """Response for ticket list"""
    items: List[TicketDetail]
    page: int
    page_size: int
    total: int


class ReplySuggestionRequest(BaseModel):
    context: str = Field("", max_length=5000)


class ReplySuggestionResponse(BaseModel):
    suggestion: str


# =============================================================================
# Comment / Attachment Schemas
# =============================================================================

class AddCommentRequest(BaseModel):
    """Request to add a comment"""
    comment: str = Field(..., max_length=10000)
    is_internal: bool = False


class RegisterAttachmentRequest(BaseModel):
    """Metadata of a file already uploaded to the blob store"""
    file_name: str = Field(..., max_length=255)
    file_url: str = Field(..., max_length=2000)
    file_size: int


class ActionResponse(BaseModel):
    """Generic success response"""
    success: bool = True
    message: str


# =============================================================================
# Helpers
# =============================================================================

def to_status(value: Optional[str]) -> Optional[TicketStatus]:
    if value is None:
        return None
    status = parse_status(value)
    if status is None:
        raise ValidationError(f"Unknown status: {value}", details={"field": "status"})
    return status


def to_priority(value: Optional[str]) -> Optional[TicketPriority]:
    if value is None:
        return None
    priority = parse_priority(value)
    if priority is None:
        raise ValidationError(f"Unknown priority: {value}", details={"field": "priority"})
    return priority


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def to_date_filter(value: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """ISO date or datetime from a query string; a bare date used as an upper bound covers the whole day"""
    if not value:
        return None
    try:
        parsed = parse_iso(value.strip())
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid date: {value}", details={"field": field})
    if end_of_day and len(value.strip()) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed
