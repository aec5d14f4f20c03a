"""Permission Guard - Authorization rules for ticket and admin actions"""
from typing import Optional

from ..domain.models import Profile, Ticket
from ..domain.errors import PermissionDeniedError, AdminRequiredError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for ticket operations

    Rules:
    - Admins can do anything
    - The creator and the assignee can edit a ticket
    - Members of the ticket's department can edit it
    - Deleting tickets, comments and attachments is admin-only
    - Any authenticated profile can read tickets and their children
    """

    def can_view_ticket(self, actor: Optional[Profile], ticket: Ticket) -> bool:
        """Shared queue: every profile reads every ticket and its children"""
        return actor is not None and ticket is not None

    def can_mutate_ticket(self, actor: Profile, ticket: Ticket) -> bool:
        """Check if actor can edit a ticket or add comments/attachments to it"""
        if actor.is_admin:
            return True

        if actor.id == ticket.created_by:
            return True

        if ticket.assigned_to and actor.id == ticket.assigned_to:
            return True

        # A profile without a department never matches on department
        if actor.department_id and actor.department_id == ticket.department_id:
            return True

        return False

    def can_delete(self, actor: Profile) -> bool:
        """Check if actor can delete tickets, comments or attachments"""
        return actor.is_admin

    def require_can_mutate(self, actor: Profile, ticket: Ticket) -> None:
        """Raise if actor cannot edit the ticket"""
        if not self.can_mutate_ticket(actor, ticket):
            logger.warning(
                f"Permission denied on ticket {ticket.ticket_number}",
                extra={"ticket_id": ticket.id, "actor_id": actor.id}
            )
            raise PermissionDeniedError("You do not have permission to modify this ticket")

    def require_can_view(self, actor: Optional[Profile], ticket: Ticket) -> None:
        if not self.can_view_ticket(actor, ticket):
            raise PermissionDeniedError("You do not have permission to view this ticket")

    def require_admin(self, actor: Profile, action: str = "perform this action") -> None:
        """Raise unless actor is an admin"""
        if not actor.is_admin:
            logger.warning(
                f"Admin required to {action}",
                extra={"actor_id": actor.id}
            )
            raise AdminRequiredError(f"Only admins can {action}")
