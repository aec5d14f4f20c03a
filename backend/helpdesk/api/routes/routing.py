"""
AI Routing Routes

Ask the routing advisor where a ticket would go, without creating it.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_current_profile_dep, get_correlation_id_dep, get_ticket_service
from ...domain.models import Profile, RoutingSuggestion
from ...services.ticket_service import TicketService

router = APIRouter()


class RouteSuggestionRequest(BaseModel):
    title: str = Field("", max_length=500)
    description: str = Field("", max_length=10000)
    department_ids: Optional[List[str]] = Field(
        None, description="Candidate departments in preference order; all departments when omitted"
    )


@router.post("/ai-route", response_model=RoutingSuggestion)
async def suggest_route(
    request: RouteSuggestionRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: TicketService = Depends(get_ticket_service)
):
    """
    Suggest department, priority and tags for a ticket

    Never fails because of the AI service: on any AI problem the first
    candidate department is returned with a neutral confidence.
    """
    return service.suggest_routing(request.title, request.description, request.department_ids)
