"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from .enums import UserRole, TicketStatus, TicketPriority, SlaStatus


# ============================================================================
# Profiles & Departments
# ============================================================================

class Profile(BaseModel):
    """The core's view of an authenticated identity"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Stable user id issued by the identity provider")
    full_name: str = Field(default="", description="Display name")
    email: Optional[EmailStr] = Field(None, description="Login email, when known")
    role: UserRole = Field(default=UserRole.USER)
    department_id: Optional[str] = Field(None, description="Department the profile belongs to")
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class ProfileRef(BaseModel):
    """Joined projection of a profile (creator, assignee, author)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: str = ""
    avatar_url: Optional[str] = None
    role: Optional[UserRole] = None


class Department(BaseModel):
    """Named routing target"""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: Optional[str] = None
    color: str = "#6366f1"
    manager_id: Optional[str] = None
    created_at: Optional[datetime] = None


class DepartmentRef(BaseModel):
    """Joined projection of a department"""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    color: str = "#6366f1"


class DepartmentWithStats(Department):
    """Department as listed to admins"""
    manager: Optional[ProfileRef] = None
    member_count: int = 0
    ticket_count: int = 0


# ============================================================================
# Tickets & Children
# ============================================================================

class Ticket(BaseModel):
    """Ticket - the central entity"""
    model_config = ConfigDict(extra="ignore")

    id: str
    ticket_number: str = Field(..., description="Human-readable number, assigned once by the store")
    title: str
    description: str
    status: TicketStatus = TicketStatus.NEW
    priority: TicketPriority = TicketPriority.NORMAL
    tags: List[str] = Field(default_factory=list)
    created_by: str
    assigned_to: Optional[str] = None
    department_id: str
    ai_confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    due_date: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, description="Incremented on every update")


class Comment(BaseModel):
    """Ticket comment (never updated in place)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    ticket_id: str
    user_id: str
    comment: str
    is_internal: bool = False
    created_at: datetime


class CommentWithUser(Comment):
    user: Optional[ProfileRef] = None


class Attachment(BaseModel):
    """Attachment metadata; the bytes live in the blob store"""
    model_config = ConfigDict(extra="ignore")

    id: str
    ticket_id: str
    file_name: str
    file_url: str
    file_size: int = Field(..., gt=0)
    uploaded_by: str
    created_at: datetime


class AttachmentWithUploader(Attachment):
    uploader: Optional[ProfileRef] = None


class HistoryEntry(BaseModel):
    """Append-only record of one field-level change"""
    model_config = ConfigDict(extra="ignore")

    id: str
    ticket_id: str
    changed_by: str
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime


class SlaRule(BaseModel):
    """Response/resolution targets per department and priority"""
    model_config = ConfigDict(extra="ignore")

    id: str
    department_id: str
    priority: TicketPriority
    response_time_hours: float = Field(..., gt=0)
    resolution_time_hours: float = Field(..., gt=0)


# ============================================================================
# Derived / Read Models
# ============================================================================

class TimeTracking(BaseModel):
    """Durations computed on read from ticket timestamps"""
    elapsed_seconds: int
    elapsed_display: str
    duration_anomaly: bool = False
    created_ago: str
    is_resolved: bool
    deadline: Optional[datetime] = None
    sla_status: Optional[SlaStatus] = None


class TicketDetail(Ticket):
    """Ticket with its Department/Creator/Assignee projection"""
    department: Optional[DepartmentRef] = None
    creator: Optional[ProfileRef] = None
    assignee: Optional[ProfileRef] = None
    time_tracking: Optional[TimeTracking] = None


class RoutingSuggestion(BaseModel):
    """Trustworthy routing result handed to the ticket creation flow"""
    department_id: str
    department_name: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    reasoning: str = ""
    suggested_priority: TicketPriority = TicketPriority.NORMAL
    suggested_tags: List[str] = Field(default_factory=list)
    is_fallback: bool = False


class DepartmentStats(BaseModel):
    department_id: str
    department_name: str
    color: str
    open_tickets: int


class DashboardStats(BaseModel):
    total_tickets: int
    open_tickets: int
    by_status: Dict[str, int]
    my_tickets: int
    assigned_to_me: int
    average_resolution_seconds: Optional[int] = None
    average_resolution_display: Optional[str] = None
    department_breakdown: Optional[List[DepartmentStats]] = None
