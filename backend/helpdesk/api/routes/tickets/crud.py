"""
Ticket CRUD Routes

Create, list, get, update and delete tickets, plus history and reply suggestion.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from ...deps import get_current_profile_dep, get_correlation_id_dep, get_ticket_service
from ....domain.models import HistoryEntry, Profile, TicketDetail
from ....services.ticket_service import TicketService
from ....utils.logger import get_logger
from .schemas import (
    ActionResponse, CreateTicketRequest, ReplySuggestionRequest, ReplySuggestionResponse,
    TicketListResponse, UpdateTicketRequest, split_csv, to_date_filter, to_priority, to_status
)

logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=TicketDetail, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """
    Create a new ticket

    When no department is given, AI routing picks the department and, unless
    supplied, the priority and tags.
    """
    return service.create_ticket(
        actor=actor,
        title=request.title,
        description=request.description,
        department_id=request.department_id,
        priority=to_priority(request.priority),
        tags=request.tags,
        due_date=request.due_date
    )


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    statuses: Optional[str] = Query(None, description="Filter by statuses (comma-separated)"),
    priorities: Optional[str] = Query(None, description="Filter by priorities (comma-separated)"),
    department_id: Optional[str] = Query(None, description="Filter by department"),
    assigned_to: Optional[str] = Query(None, description="Filter by assignee id ('me' for the caller)"),
    mine: bool = Query(False, description="Show only tickets I created"),
    q: Optional[str] = Query(None, description="Search in title, number and description"),
    date_from: Optional[str] = Query(None, description="Created on or after (ISO date or datetime)"),
    date_to: Optional[str] = Query(None, description="Created on or before (ISO date or datetime)"),
    sort_by: str = Query("created_at", description="Sort field: created_at, updated_at, priority, status, ticket_number"),
    sort_order: str = Query("desc", description="Sort order: asc or desc"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """List tickets with search, filtering and pagination"""
    items, total = service.list_tickets(
        actor=actor,
        statuses=[to_status(s) for s in split_csv(statuses)] or None,
        priorities=[to_priority(p) for p in split_csv(priorities)] or None,
        department_id=department_id,
        assigned_to=actor.id if assigned_to == "me" else assigned_to,
        created_by=actor.id if mine else None,
        search=q,
        date_from=to_date_filter(date_from, "date_from"),
        date_to=to_date_filter(date_to, "date_to", end_of_day=True),
        sort_by=sort_by,
        sort_order=sort_order,
        skip=(page - 1) * page_size,
        limit=page_size
    )
    return TicketListResponse(items=items, page=page, page_size=page_size, total=total)


@router.get("/{ticket_id}", response_model=TicketDetail)
async def get_ticket(
    ticket_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """Get ticket with department, creator, assignee and time tracking"""
    return service.get_ticket(ticket_id, actor)


@router.patch("/{ticket_id}", response_model=TicketDetail)
async def update_ticket(
    ticket_id: str,
    request: UpdateTicketRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """
    Update ticket fields

    Allowed for admins, the creator, the assignee and members of the
    ticket's department.
    """
    return service.update_ticket(
        ticket_id,
        request.requested_changes(),
        actor,
        expected_version=request.expected_version
    )


@router.delete("/{ticket_id}", response_model=ActionResponse)
async def delete_ticket(
    ticket_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """Delete ticket with its comments, attachments and history (admin only)"""
    service.delete_ticket(ticket_id, actor)
    return ActionResponse(success=True, message="Ticket deleted successfully")


@router.get("/{ticket_id}/history", response_model=List[HistoryEntry])
async def get_ticket_history(
    ticket_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """Field change history, newest first"""
    return service.get_history(ticket_id, actor)


@router.post("/{ticket_id}/reply-suggestion", response_model=ReplySuggestionResponse)
async def suggest_reply(
    ticket_id: str,
    request: ReplySuggestionRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """AI-drafted reply for staff working the ticket"""
    suggestion = service.suggest_reply(ticket_id, request.context, actor)
    return ReplySuggestionResponse(suggestion=suggestion)
