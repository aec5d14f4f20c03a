"""
SLA Rule Routes
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..deps import get_current_profile_dep, get_correlation_id_dep, get_sla_service
from ...domain.models import Profile, SlaRule
from ...services.sla_service import SlaService
from .tickets.schemas import ActionResponse, to_priority

router = APIRouter()


class SaveSlaRuleRequest(BaseModel):
    department_id: str
    priority: str
    response_time_hours: float = Field(..., gt=0)
    resolution_time_hours: float = Field(..., gt=0)


@router.get("", response_model=List[SlaRule])
async def list_sla_rules(
    department_id: Optional[str] = Query(None),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SlaService = Depends(get_sla_service)
):
    return service.list_rules(actor, department_id=department_id)


@router.put("", response_model=SlaRule)
async def save_sla_rule(
    request: SaveSlaRuleRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SlaService = Depends(get_sla_service)
):
    """Create or replace the rule for a department and priority (admin only)"""
    return service.save_rule(
        actor,
        department_id=request.department_id,
        priority=to_priority(request.priority),
        response_time_hours=request.response_time_hours,
        resolution_time_hours=request.resolution_time_hours
    )


@router.delete("/{rule_id}", response_model=ActionResponse)
async def delete_sla_rule(
    rule_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SlaService = Depends(get_sla_service)
):
    """Delete an SLA rule (admin only)"""
    service.delete_rule(rule_id, actor)
    return ActionResponse(success=True, message="SLA rule deleted successfully")
