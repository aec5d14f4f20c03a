"""
Dashboard Statistics Routes
"""

from fastapi import APIRouter, Depends

from ..deps import get_current_profile_dep, get_correlation_id_dep, get_stats_service
from ...domain.models import DashboardStats, Profile
from ...services.stats_service import StatsService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: StatsService = Depends(get_stats_service)
):
    """Ticket counts; the per-department breakdown is included for admins only"""
    return service.get_dashboard(actor)
