"""
Profile Routes

Own profile for every user; user role/department management for admins.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..deps import get_current_profile_dep, get_correlation_id_dep, get_profile_service
from ...domain.models import Profile
from ...domain.enums import UserRole
from ...services.profile_service import ProfileService, UNSET

router = APIRouter()


class UpdateMyProfileRequest(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    avatar_url: Optional[str] = Field(None, max_length=2000)


class UpdateUserRequest(BaseModel):
    role: Optional[UserRole] = None
    department_id: Optional[str] = Field(None, description="null removes the user from their department")


@router.get("/profiles/me", response_model=Profile)
async def get_my_profile(
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    return actor


@router.patch("/profiles/me", response_model=Profile)
async def update_my_profile(
    request: UpdateMyProfileRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ProfileService = Depends(get_profile_service)
):
    """Change own display name or avatar"""
    fields = request.model_dump(exclude_unset=True)
    return service.update_own_profile(
        actor,
        full_name=fields.get("full_name"),
        avatar_url=fields.get("avatar_url", UNSET)
    )


@router.get("/admin/users", response_model=List[Profile])
async def list_users(
    department_id: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ProfileService = Depends(get_profile_service)
):
    """List users (admin only)"""
    return service.list_users(actor, department_id=department_id, role=role)


@router.patch("/admin/users/{user_id}", response_model=Profile)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ProfileService = Depends(get_profile_service)
):
    """Change a user's role and/or department (admin only)"""
    fields = request.model_dump(exclude_unset=True)
    return service.update_user(
        user_id,
        actor,
        role=fields.get("role"),
        department_id=fields.get("department_id", UNSET)
    )
