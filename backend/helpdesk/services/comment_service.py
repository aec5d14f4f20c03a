"""Comment Service - Ticket comments"""
from typing import List, Optional

from ..domain.models import Comment, CommentWithUser, Profile, ProfileRef
from ..domain.errors import CommentNotFoundError, ValidationError
from ..repositories.comment_repo import CommentRepository
from ..repositories.ticket_repo import TicketRepository
from ..repositories.profile_repo import ProfileRepository
from ..engine.permission_guard import PermissionGuard
from ..utils.idgen import generate_comment_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommentService:
    """Service for comment operations"""

    def __init__(
        self,
        comment_repo: Optional[CommentRepository] = None,
        ticket_repo: Optional[TicketRepository] = None,
        profile_repo: Optional[ProfileRepository] = None
    ):
        self.comment_repo = comment_repo or CommentRepository()
        self.ticket_repo = ticket_repo or TicketRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.guard = PermissionGuard()

    def _with_users(self, comments: List[Comment]) -> List[CommentWithUser]:
        profiles = self.profile_repo.get_profiles_by_ids(c.user_id for c in comments)
        result = []
        for comment in comments:
            author = profiles.get(comment.user_id)
            result.append(CommentWithUser(
                **comment.model_dump(),
                user=ProfileRef.model_validate(author.model_dump()) if author else None,
            ))
        return result

    def list_comments(self, ticket_id: str, actor: Profile) -> List[CommentWithUser]:
        """Comments of a ticket, oldest first, with their authors"""
        self.guard.require_can_view(actor, self.ticket_repo.get_ticket_or_raise(ticket_id))
        return self._with_users(self.comment_repo.get_comments_for_ticket(ticket_id))

    def add_comment(
        self,
        ticket_id: str,
        text: str,
        actor: Profile,
        is_internal: bool = False
    ) -> CommentWithUser:
        """Add a comment; requires edit rights on the ticket"""
        if not text or not text.strip():
            raise ValidationError("Comment cannot be empty", details={"field": "comment"})

        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_mutate(actor, ticket)

        comment = Comment(
            id=generate_comment_id(),
            ticket_id=ticket_id,
            user_id=actor.id,
            comment=text.strip(),
            is_internal=is_internal,
            created_at=utc_now(),
        )
        self.comment_repo.create_comment(comment)
        return self._with_users([comment])[0]

    def delete_comment(self, ticket_id: str, comment_id: Optional[str], actor: Profile) -> None:
        """Delete a comment (admin only)"""
        if not comment_id:
            raise ValidationError("commentId is required", details={"field": "commentId"})
        self.guard.require_admin(actor, "delete comments")

        comment = self.comment_repo.get_comment_or_raise(comment_id)
        if comment.ticket_id != ticket_id:
            raise CommentNotFoundError(
                f"Comment {comment_id} not found on ticket {ticket_id}",
                details={"id": comment_id, "ticket_id": ticket_id},
            )

        self.comment_repo.delete_comment(comment_id)
        logger.info(
            f"Comment {comment_id} deleted",
            extra={"ticket_id": ticket_id, "comment_id": comment_id, "actor_id": actor.id}
        )
