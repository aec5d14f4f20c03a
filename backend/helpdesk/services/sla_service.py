"""SLA Service - Per-department response and resolution targets"""
from typing import List, Optional

from ..domain.models import Profile, SlaRule
from ..domain.enums import TicketPriority
from ..domain.errors import ValidationError
from ..repositories.sla_repo import SlaRuleRepository
from ..repositories.department_repo import DepartmentRepository
from ..engine.permission_guard import PermissionGuard
from ..utils.idgen import generate_sla_rule_id
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SlaService:
    """Service for SLA rule operations"""

    def __init__(
        self,
        sla_repo: Optional[SlaRuleRepository] = None,
        department_repo: Optional[DepartmentRepository] = None
    ):
        self.sla_repo = sla_repo or SlaRuleRepository()
        self.department_repo = department_repo or DepartmentRepository()
        self.guard = PermissionGuard()

    def list_rules(self, actor: Profile, department_id: Optional[str] = None) -> List[SlaRule]:
        return self.sla_repo.list_rules(department_id=department_id)

    def save_rule(
        self,
        actor: Profile,
        department_id: str,
        priority: TicketPriority,
        response_time_hours: float,
        resolution_time_hours: float
    ) -> SlaRule:
        """Create or replace the rule for a department and priority (admin only)"""
        self.guard.require_admin(actor, "manage SLA rules")

        if response_time_hours <= 0 or resolution_time_hours <= 0:
            raise ValidationError("SLA hours must be greater than zero")
        if not self.department_repo.get_department(department_id):
            raise ValidationError(
                f"Department {department_id} does not exist",
                details={"field": "department_id"}
            )

        rule = SlaRule(
            id=generate_sla_rule_id(),
            department_id=department_id,
            priority=priority,
            response_time_hours=response_time_hours,
            resolution_time_hours=resolution_time_hours,
        )
        saved = self.sla_repo.upsert_rule(rule)
        logger.info(
            f"SLA rule saved for {department_id}/{priority.value}",
            extra={"department_id": department_id, "actor_id": actor.id}
        )
        return saved

    def delete_rule(self, rule_id: str, actor: Profile) -> None:
        """Delete a rule (admin only)"""
        self.guard.require_admin(actor, "manage SLA rules")
        self.sla_repo.delete_rule(rule_id)
