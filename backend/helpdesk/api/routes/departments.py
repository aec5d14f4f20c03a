"""
Department Routes

Listing is open to every authenticated user; changes are admin-only.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from ..deps import get_current_profile_dep, get_correlation_id_dep, get_department_service
from ...domain.models import Department, Profile
from ...services.department_service import DepartmentService
from .tickets.schemas import ActionResponse

router = APIRouter()


class CreateDepartmentRequest(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, max_length=20)
    manager_id: Optional[str] = None


class UpdateDepartmentRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, max_length=20)
    manager_id: Optional[str] = None


@router.get("")
async def list_departments(
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: DepartmentService = Depends(get_department_service)
):
    """List departments ordered by name; admins also get member and ticket counts"""
    return service.list_departments(actor)


@router.get("/{department_id}", response_model=Department)
async def get_department(
    department_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: DepartmentService = Depends(get_department_service)
):
    return service.get_department(department_id, actor)


@router.post("", response_model=Department, status_code=status.HTTP_201_CREATED)
async def create_department(
    request: CreateDepartmentRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: DepartmentService = Depends(get_department_service)
):
    """Create a department (admin only)"""
    return service.create_department(
        actor=actor,
        name=request.name,
        description=request.description,
        color=request.color,
        manager_id=request.manager_id
    )


@router.patch("/{department_id}", response_model=Department)
async def update_department(
    department_id: str,
    request: UpdateDepartmentRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: DepartmentService = Depends(get_department_service)
):
    """Update a department (admin only)"""
    return service.update_department(department_id, request.model_dump(exclude_unset=True), actor)


@router.delete("/{department_id}", response_model=ActionResponse)
async def delete_department(
    department_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: DepartmentService = Depends(get_department_service)
):
    """Delete a department that no ticket references (admin only)"""
    service.delete_department(department_id, actor)
    return ActionResponse(success=True, message="Department deleted successfully")
