"""Stats Service - Dashboard statistics"""
from typing import Optional

from ..domain.models import DashboardStats, DepartmentStats, Profile
from ..domain.enums import OPEN_STATUSES, RESOLVED_STATUSES
from ..repositories.ticket_repo import TicketRepository
from ..repositories.department_repo import DepartmentRepository
from ..engine import metrics
from ..utils.time import format_duration
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Resolved tickets sampled for the average resolution time
RESOLUTION_SAMPLE_SIZE = 500


class StatsService:
    """Service for dashboard statistics"""

    def __init__(
        self,
        ticket_repo: Optional[TicketRepository] = None,
        department_repo: Optional[DepartmentRepository] = None
    ):
        self.ticket_repo = ticket_repo or TicketRepository()
        self.department_repo = department_repo or DepartmentRepository()

    def get_dashboard(self, actor: Profile) -> DashboardStats:
        """Ticket counts for the caller; admins also get open tickets per department"""
        by_status = self.ticket_repo.count_by_status()
        total = sum(by_status.values())
        open_count = sum(count for status, count in by_status.items() if status in OPEN_STATUSES)

        resolved = self.ticket_repo.list_tickets(
            statuses=sorted(RESOLVED_STATUSES, key=lambda s: s.value),
            sort_by="updated_at",
            limit=RESOLUTION_SAMPLE_SIZE
        )
        average = metrics.average_resolution_seconds(resolved)

        breakdown = None
        if actor.is_admin:
            open_by_department = self.ticket_repo.count_open_by_department()
            breakdown = [
                DepartmentStats(
                    department_id=department.id,
                    department_name=department.name,
                    color=department.color,
                    open_tickets=open_by_department.get(department.id, 0),
                )
                for department in self.department_repo.list_departments()
            ]

        return DashboardStats(
            total_tickets=total,
            open_tickets=open_count,
            by_status={status.value: count for status, count in by_status.items()},
            my_tickets=self.ticket_repo.count_tickets(created_by=actor.id),
            assigned_to_me=self.ticket_repo.count_tickets(assigned_to=actor.id),
            average_resolution_seconds=average,
            average_resolution_display=format_duration(average) if average is not None else None,
            department_breakdown=breakdown,
        )
