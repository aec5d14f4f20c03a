"""Department Service - Department administration"""
from typing import Any, Dict, List, Optional, Union

from ..domain.models import Department, DepartmentWithStats, Profile, ProfileRef
from ..domain.errors import DepartmentInUseError, ValidationError
from ..repositories.department_repo import DepartmentRepository
from ..repositories.profile_repo import ProfileRepository
from ..repositories.ticket_repo import TicketRepository
from ..repositories.sla_repo import SlaRuleRepository
from ..repositories.mongo_client import run_in_transaction
from ..config.settings import settings
from ..engine.permission_guard import PermissionGuard
from ..utils.idgen import generate_department_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "description", "color", "manager_id")


class DepartmentService:
    """Service for department operations"""

    def __init__(
        self,
        department_repo: Optional[DepartmentRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
        ticket_repo: Optional[TicketRepository] = None,
        sla_repo: Optional[SlaRuleRepository] = None
    ):
        self.department_repo = department_repo or DepartmentRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.ticket_repo = ticket_repo or TicketRepository()
        self.sla_repo = sla_repo or SlaRuleRepository()
        self.guard = PermissionGuard()

    def list_departments(self, actor: Profile) -> List[Union[Department, DepartmentWithStats]]:
        """List departments; admins also get manager, member and ticket counts"""
        departments = self.department_repo.list_departments()
        if not actor.is_admin:
            return departments

        manager_ids = [d.manager_id for d in departments if d.manager_id]
        managers = self.profile_repo.get_profiles_by_ids(manager_ids)

        result = []
        for department in departments:
            manager = managers.get(department.manager_id) if department.manager_id else None
            result.append(DepartmentWithStats(
                **department.model_dump(),
                manager=ProfileRef.model_validate(manager.model_dump()) if manager else None,
                member_count=self.profile_repo.count_profiles(department_id=department.id),
                ticket_count=self.ticket_repo.count_for_department(department.id),
            ))
        return result

    def get_department(self, department_id: str, actor: Profile) -> Department:
        """Get department by ID"""
        return self.department_repo.get_department_or_raise(department_id)

    def _validate_manager(self, manager_id: Optional[str]) -> None:
        if manager_id and not self.profile_repo.get_profile(manager_id):
            raise ValidationError(
                f"User {manager_id} does not exist",
                details={"field": "manager_id"}
            )

    def create_department(
        self,
        actor: Profile,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
        manager_id: Optional[str] = None
    ) -> Department:
        """Create a department (admin only)"""
        self.guard.require_admin(actor, "create departments")

        name = (name or "").strip()
        if not name:
            raise ValidationError("Department name is required", details={"field": "name"})
        self._validate_manager(manager_id)

        department = Department(
            id=generate_department_id(),
            name=name,
            description=(description or "").strip() or None,
            color=color or settings.default_department_color,
            manager_id=manager_id or None,
            created_at=utc_now(),
        )
        self.department_repo.create_department(department)
        logger.info(
            f"Department {name} created",
            extra={"department_id": department.id, "actor_id": actor.id}
        )
        return department

    def update_department(
        self,
        department_id: str,
        requested: Dict[str, Any],
        actor: Profile
    ) -> Department:
        """Update name, description, color or manager (admin only)"""
        self.guard.require_admin(actor, "update departments")
        self.department_repo.get_department_or_raise(department_id)

        updates = {k: v for k, v in requested.items() if k in UPDATABLE_FIELDS}
        if "name" in updates:
            updates["name"] = (updates["name"] or "").strip()
            if not updates["name"]:
                raise ValidationError("Department name cannot be empty", details={"field": "name"})
        if "color" in updates and not updates["color"]:
            updates["color"] = settings.default_department_color
        if "manager_id" in updates:
            updates["manager_id"] = updates["manager_id"] or None
            self._validate_manager(updates["manager_id"])
        if not updates:
            raise ValidationError("Nothing to update")

        return self.department_repo.update_department(department_id, updates)

    def delete_department(self, department_id: str, actor: Profile) -> None:
        """
        Delete a department (admin only).

        Refused while any ticket references it. Member profiles are detached
        and the department's SLA rules removed in the same unit of work.
        """
        self.guard.require_admin(actor, "delete departments")
        department = self.department_repo.get_department_or_raise(department_id)

        ticket_count = self.ticket_repo.count_for_department(department_id)
        if ticket_count > 0:
            raise DepartmentInUseError(
                "Department has tickets and cannot be deleted. Reassign or delete them first.",
                details={"ticket_count": ticket_count}
            )

        def _delete(session):
            self.profile_repo.detach_department(department_id, session=session)
            self.sla_repo.delete_for_department(department_id, session=session)
            self.department_repo.delete_department(department_id, session=session)

        run_in_transaction(_delete)
        logger.info(
            f"Department {department.name} deleted",
            extra={"department_id": department_id, "actor_id": actor.id}
        )
