"""Service modules - Business logic layer"""
from .ticket_service import TicketService
from .department_service import DepartmentService
from .comment_service import CommentService
from .attachment_service import AttachmentService
from .profile_service import ProfileService
from .sla_service import SlaService
from .stats_service import StatsService
from .routing_advisor import RoutingAdvisor
from .blob_store import LocalBlobStore

__all__ = [
    "TicketService",
    "DepartmentService",
    "CommentService",
    "AttachmentService",
    "ProfileService",
    "SlaService",
    "StatsService",
    "RoutingAdvisor",
    "LocalBlobStore",
]
