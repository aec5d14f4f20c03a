"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, run_in_transaction
from .profile_repo import ProfileRepository
from .department_repo import DepartmentRepository
from .ticket_repo import TicketRepository
from .comment_repo import CommentRepository
from .attachment_repo import AttachmentRepository
from .history_repo import HistoryRepository
from .sla_repo import SlaRuleRepository

__all__ = [
    "get_database",
    "get_collection",
    "run_in_transaction",
    "ProfileRepository",
    "DepartmentRepository",
    "TicketRepository",
    "CommentRepository",
    "AttachmentRepository",
    "HistoryRepository",
    "SlaRuleRepository",
]
