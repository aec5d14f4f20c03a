"""
Ticket Comment Routes
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from ...deps import get_current_profile_dep, get_correlation_id_dep, get_comment_service
from ....domain.models import CommentWithUser, Profile
from ....services.comment_service import CommentService
from .schemas import ActionResponse, AddCommentRequest

router = APIRouter()


@router.get("/{ticket_id}/comments", response_model=List[CommentWithUser])
async def list_comments(
    ticket_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CommentService = Depends(get_comment_service)
):
    """Comments of a ticket, oldest first"""
    return service.list_comments(ticket_id, actor)


@router.post("/{ticket_id}/comments", response_model=CommentWithUser, status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: str,
    request: AddCommentRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CommentService = Depends(get_comment_service)
):
    """Add a comment to a ticket"""
    return service.add_comment(ticket_id, request.comment, actor, is_internal=request.is_internal)


@router.delete("/{ticket_id}/comments", response_model=ActionResponse)
async def delete_comment(
    ticket_id: str,
    comment_id: Optional[str] = Query(None, alias="commentId"),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: CommentService = Depends(get_comment_service)
):
    """Delete a comment (admin only)"""
    service.delete_comment(ticket_id, comment_id, actor)
    return ActionResponse(success=True, message="Comment deleted successfully")
