"""
Ticket Routes Module

This module contains all ticket-related API endpoints organized by functionality:

- crud.py: Create, list, get, update, delete tickets, history, reply suggestion
- comments.py: Ticket comments
- attachments.py: Ticket attachments

All routes are combined into a single router for inclusion in the API.
"""

from fastapi import APIRouter

from .schemas import (
    CreateTicketRequest, UpdateTicketRequest, TicketListResponse,
    AddCommentRequest, RegisterAttachmentRequest, ActionResponse
)
from .crud import router as crud_router
from .comments import router as comments_router
from .attachments import router as attachments_router

# Sub-routers use paths relative to /tickets; the collection routes have an empty path
router = APIRouter()
router.include_router(crud_router, prefix="/tickets")
router.include_router(comments_router, prefix="/tickets")
router.include_router(attachments_router, prefix="/tickets")

__all__ = [
    "router",
    # Schemas
    "CreateTicketRequest", "UpdateTicketRequest", "TicketListResponse",
    "AddCommentRequest", "RegisterAttachmentRequest", "ActionResponse",
]
