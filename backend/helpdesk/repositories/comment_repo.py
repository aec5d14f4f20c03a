"""Comment Repository - Data access for ticket comments"""
from typing import List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, to_document
from ..domain.models import Comment
from ..domain.errors import CommentNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommentRepository:
    """Repository for ticket comments (insert and delete only)"""

    def __init__(self):
        self._comments: Collection = get_collection("ticket_comments")

    def create_comment(self, comment: Comment) -> Comment:
        """Create comment"""
        self._comments.insert_one(to_document(comment))
        logger.info(
            f"Created comment: {comment.id}",
            extra={"ticket_id": comment.ticket_id, "comment_id": comment.id}
        )
        return comment

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        """Get comment by ID"""
        doc = self._comments.find_one({"id": comment_id})
        if doc:
            doc.pop("_id", None)
            return Comment.model_validate(doc)
        return None

    def get_comment_or_raise(self, comment_id: str) -> Comment:
        """Get comment by ID or raise error"""
        comment = self.get_comment(comment_id)
        if not comment:
            raise CommentNotFoundError.for_id(comment_id)
        return comment

    def get_comments_for_ticket(self, ticket_id: str) -> List[Comment]:
        """Get all comments for a ticket, oldest first"""
        cursor = self._comments.find({"ticket_id": ticket_id}).sort("created_at", ASCENDING)

        comments = []
        for doc in cursor:
            doc.pop("_id", None)
            comments.append(Comment.model_validate(doc))
        return comments

    def delete_comment(self, comment_id: str) -> bool:
        """Delete a single comment"""
        result = self._comments.delete_one({"id": comment_id})
        if result.deleted_count > 0:
            logger.info(f"Deleted comment: {comment_id}", extra={"comment_id": comment_id})
            return True
        return False

    def delete_for_ticket(self, ticket_id: str, session: Optional[ClientSession] = None) -> int:
        """Delete every comment of a ticket"""
        result = self._comments.delete_many({"ticket_id": ticket_id}, session=session)
        return result.deleted_count
