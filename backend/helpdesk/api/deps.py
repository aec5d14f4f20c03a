"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Depends, Header

from ..domain.models import Profile
from ..utils.jwt import get_current_user_id
from ..utils.logger import get_correlation_id, set_correlation_id
from ..utils.idgen import generate_correlation_id
from ..services.ticket_service import TicketService
from ..services.department_service import DepartmentService
from ..services.comment_service import CommentService
from ..services.attachment_service import AttachmentService
from ..services.profile_service import ProfileService
from ..services.sla_service import SlaService
from ..services.stats_service import StatsService


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Correlation ID of the current request

    The middleware normally assigns it; the header (or a fresh id) is used
    when the route runs without the middleware.
    """
    correlation_id = get_correlation_id()
    if not correlation_id:
        correlation_id = x_correlation_id or generate_correlation_id()
        set_correlation_id(correlation_id)
    return correlation_id


# =============================================================================
# Services
# =============================================================================

def get_ticket_service() -> TicketService:
    return TicketService()


def get_department_service() -> DepartmentService:
    return DepartmentService()


def get_comment_service() -> CommentService:
    return CommentService()


def get_attachment_service() -> AttachmentService:
    return AttachmentService()


def get_profile_service() -> ProfileService:
    return ProfileService()


def get_sla_service() -> SlaService:
    return SlaService()


def get_stats_service() -> StatsService:
    return StatsService()


# =============================================================================
# Caller
# =============================================================================

async def get_current_profile_dep(
    authorization: Optional[str] = Header(None),
    profile_service: ProfileService = Depends(get_profile_service)
) -> Profile:
    """
    Dependency to get the caller's profile from the Authorization header

    Validates the bearer token and loads the profile keyed by its subject.
    The profile is read on every request, so role and department changes
    apply immediately.

    Raises:
        AuthenticationError: token missing/invalid, or no profile for the user
    """
    user_id = get_current_user_id(authorization)
    return profile_service.resolve_caller(user_id)
