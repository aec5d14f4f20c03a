"""Ticket Service - Ticket lifecycle business logic"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import (
    Department, DepartmentRef, HistoryEntry, Profile, ProfileRef,
    RoutingSuggestion, SlaRule, Ticket, TicketDetail
)
from ..domain.enums import TicketPriority, TicketStatus
from ..domain.errors import ValidationError
from ..repositories.ticket_repo import TicketRepository
from ..repositories.department_repo import DepartmentRepository
from ..repositories.profile_repo import ProfileRepository
from ..repositories.comment_repo import CommentRepository
from ..repositories.attachment_repo import AttachmentRepository
from ..repositories.history_repo import HistoryRepository
from ..repositories.sla_repo import SlaRuleRepository
from ..repositories.mongo_client import run_in_transaction
from ..config.settings import settings
from ..engine.permission_guard import PermissionGuard
from ..engine.history_writer import HistoryWriter
from ..engine import metrics, routing_policy, state_machine
from ..utils.idgen import generate_ticket_id
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .routing_advisor import get_routing_advisor
from .blob_store import LocalBlobStore, get_blob_store

logger = get_logger(__name__)


class TicketService:
    """Service for ticket operations"""

    def __init__(
        self,
        ticket_repo: Optional[TicketRepository] = None,
        department_repo: Optional[DepartmentRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
        comment_repo: Optional[CommentRepository] = None,
        attachment_repo: Optional[AttachmentRepository] = None,
        history_repo: Optional[HistoryRepository] = None,
        sla_repo: Optional[SlaRuleRepository] = None,
        advisor: Optional[routing_policy.Advisor] = None,
        blob_store: Optional[LocalBlobStore] = None
    ):
        self.ticket_repo = ticket_repo or TicketRepository()
        self.department_repo = department_repo or DepartmentRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.comment_repo = comment_repo or CommentRepository()
        self.attachment_repo = attachment_repo or AttachmentRepository()
        self.history = HistoryWriter(history_repo or HistoryRepository())
        self.sla_repo = sla_repo or SlaRuleRepository()
        self.advisor = advisor or get_routing_advisor()
        self.blob_store = blob_store or get_blob_store()
        self.guard = PermissionGuard()

    # =========================================================================
    # Projection
    # =========================================================================

    def _to_details(self, tickets: List[Ticket], now: Optional[datetime] = None) -> List[TicketDetail]:
        """Attach department, creator, assignee and time tracking to tickets"""
        if not tickets:
            return []

        now = now or utc_now()
        departments = {d.id: d for d in self.department_repo.list_departments()}
        profile_ids = {t.created_by for t in tickets} | {t.assigned_to for t in tickets if t.assigned_to}
        profiles = self.profile_repo.get_profiles_by_ids(list(profile_ids))
        rules = {(r.department_id, r.priority): r for r in self.sla_repo.list_rules()}

        details = []
        for ticket in tickets:
            department = departments.get(ticket.department_id)
            creator = profiles.get(ticket.created_by)
            assignee = profiles.get(ticket.assigned_to) if ticket.assigned_to else None
            rule: Optional[SlaRule] = rules.get((ticket.department_id, ticket.priority))

            details.append(TicketDetail(
                **ticket.model_dump(),
                department=DepartmentRef.model_validate(department.model_dump()) if department else None,
                creator=ProfileRef.model_validate(creator.model_dump()) if creator else None,
                assignee=ProfileRef.model_validate(assignee.model_dump()) if assignee else None,
                time_tracking=metrics.time_tracking(ticket, rule, now),
            ))
        return details

    def _to_detail(self, ticket: Ticket) -> TicketDetail:
        return self._to_details([ticket])[0]

    # =========================================================================
    # Reads
    # =========================================================================

    def get_ticket(self, ticket_id: str, actor: Profile) -> TicketDetail:
        """Get ticket with projection and time tracking"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_view(actor, ticket)
        return self._to_detail(ticket)

    def list_tickets(
        self,
        actor: Profile,
        statuses: Optional[List[TicketStatus]] = None,
        priorities: Optional[List[TicketPriority]] = None,
        department_id: Optional[str] = None,
        assigned_to: Optional[str] = None,
        created_by: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[TicketDetail], int]:
        """List tickets with filters and pagination"""
        filters: Dict[str, Any] = dict(
            statuses=statuses,
            priorities=priorities,
            department_ids=[department_id] if department_id else None,
            assigned_to=assigned_to,
            created_by=created_by,
            search=search,
            date_from=date_from,
            date_to=date_to,
        )
        tickets = self.ticket_repo.list_tickets(
            **filters,
            sort_by=sort_by,
            sort_order=sort_order,
            skip=skip,
            limit=limit
        )
        total = self.ticket_repo.count_tickets(**filters)
        return self._to_details(tickets), total

    def get_history(self, ticket_id: str, actor: Profile) -> List[HistoryEntry]:
        """Get field change history of a ticket, newest first"""
        self.guard.require_can_view(actor, self.ticket_repo.get_ticket_or_raise(ticket_id))
        return self.history.get_history(ticket_id)

    # =========================================================================
    # Routing
    # =========================================================================

    def suggest_routing(
        self,
        title: str,
        description: str,
        department_ids: Optional[List[str]] = None
    ) -> RoutingSuggestion:
        """
        Ask the advisor where a ticket belongs.

        Candidates are all departments (by name) or the given subset in the
        given order; the first candidate is the fallback.
        """
        if not title or not title.strip() or not description or not description.strip():
            raise ValidationError("Missing parameters: title and description are required")

        departments = self._candidate_departments(department_ids)
        return routing_policy.suggest_routing(title, description, departments, self.advisor)

    def _candidate_departments(self, department_ids: Optional[List[str]]) -> List[Department]:
        all_departments = self.department_repo.list_departments()
        if department_ids:
            by_id = {d.id: d for d in all_departments}
            unknown = [d for d in department_ids if d not in by_id]
            if unknown:
                raise ValidationError(
                    f"Unknown department ids: {', '.join(unknown)}",
                    details={"field": "department_ids", "unknown": unknown}
                )
            candidates = [by_id[d] for d in department_ids]
        else:
            candidates = all_departments
        if not candidates:
            raise ValidationError("No departments available for routing")
        return candidates

    def suggest_reply(self, ticket_id: str, context: str, actor: Profile) -> str:
        """Draft a reply for staff working the ticket"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_mutate(actor, ticket)
        return routing_policy.suggest_reply(ticket, context, self.advisor)

    # =========================================================================
    # Create
    # =========================================================================

    def create_ticket(
        self,
        actor: Profile,
        title: str,
        description: str,
        department_id: Optional[str] = None,
        priority: Optional[TicketPriority] = None,
        tags: Optional[List[str]] = None,
        due_date: Optional[datetime] = None
    ) -> TicketDetail:
        """
        Create a ticket.

        Without an explicit department the routing suggestion decides the
        department, confidence and (unless given) priority and tags. Status
        always starts at ``new``.
        """
        title = (title or "").strip()
        description = (description or "").strip()
        if not title:
            raise ValidationError("title is required", details={"field": "title"})
        if not description:
            raise ValidationError("description is required", details={"field": "description"})

        confidence: Optional[float] = None
        if department_id:
            department = self.department_repo.get_department(department_id)
            if not department:
                raise ValidationError(
                    f"Department {department_id} does not exist",
                    details={"field": "department_id"}
                )
        else:
            suggestion = routing_policy.suggest_routing(
                title, description, self._candidate_departments(None), self.advisor
            )
            department_id = suggestion.department_id
            confidence = suggestion.confidence_score
            if priority is None:
                priority = suggestion.suggested_priority
            if tags is None:
                tags = suggestion.suggested_tags

        now = utc_now()
        ticket = Ticket(
            id=generate_ticket_id(),
            ticket_number=self.ticket_repo.next_ticket_number(),
            title=title,
            description=description,
            status=TicketStatus.NEW,
            priority=priority or TicketPriority.NORMAL,
            tags=tags or [],
            created_by=actor.id,
            assigned_to=None,
            department_id=department_id,
            ai_confidence_score=confidence,
            due_date=due_date,
            resolved_at=None,
            created_at=now,
            updated_at=now,
        )
        self.ticket_repo.create_ticket(ticket)

        logger.info(
            f"Ticket {ticket.ticket_number} created",
            extra={"ticket_id": ticket.id, "department_id": department_id, "actor_id": actor.id}
        )
        return self._to_detail(ticket)

    # =========================================================================
    # Update
    # =========================================================================

    def _validate_references(self, changes: Dict[str, Any]) -> None:
        if "department_id" in changes:
            if not self.department_repo.get_department(changes["department_id"]):
                raise ValidationError(
                    f"Department {changes['department_id']} does not exist",
                    details={"field": "department_id"}
                )
        if changes.get("assigned_to"):
            if not self.profile_repo.get_profile(changes["assigned_to"]):
                raise ValidationError(
                    f"User {changes['assigned_to']} does not exist",
                    details={"field": "assigned_to"}
                )

    def update_ticket(
        self,
        ticket_id: str,
        requested: Dict[str, Any],
        actor: Profile,
        expected_version: Optional[int] = None
    ) -> TicketDetail:
        """
        Apply a partial update and record one history entry per changed field.

        Only mutable fields are considered; values equal to the stored ones
        are dropped.
        """
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_mutate(actor, ticket)

        changes = state_machine.compute_changes(ticket, requested)
        self._validate_references(changes)

        writes = dict(changes)
        derived = state_machine.resolved_at_for(ticket, changes, utc_now())
        if derived:
            writes.update(derived)

        if settings.mongo_transactions:
            def _apply(session):
                updated_ticket = self.ticket_repo.update_ticket(
                    ticket_id, writes, expected_version=expected_version, session=session
                )
                self.history.write_changes(ticket, changes, actor, session=session)
                return updated_ticket

            updated = run_in_transaction(_apply)
        else:
            updated = self.ticket_repo.update_ticket(
                ticket_id, writes, expected_version=expected_version
            )
            self.history.write_changes_best_effort(ticket, changes, actor)

        logger.info(
            f"Ticket {ticket.ticket_number} updated",
            extra={"ticket_id": ticket_id, "actor_id": actor.id, "fields": sorted(changes)}
        )
        return self._to_detail(updated)

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_ticket(self, ticket_id: str, actor: Profile) -> None:
        """Delete a ticket with its comments, attachments and history (admin only)"""
        self.guard.require_admin(actor, "delete tickets")
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        attachments = self.attachment_repo.get_attachments_for_ticket(ticket_id)

        def _delete(session):
            self.comment_repo.delete_for_ticket(ticket_id, session=session)
            self.attachment_repo.delete_for_ticket(ticket_id, session=session)
            self.history.repo.delete_for_ticket(ticket_id, session=session)
            self.ticket_repo.delete_ticket(ticket_id, session=session)

        run_in_transaction(_delete)

        for attachment in attachments:
            path = self.blob_store.owned_path(attachment.file_url, ticket_id)
            if not path:
                continue
            try:
                self.blob_store.remove(path)
            except Exception as e:
                logger.warning(
                    f"Failed to remove blob for deleted ticket: {e}",
                    extra={"ticket_id": ticket_id, "attachment_id": attachment.id}
                )

        logger.info(
            f"Ticket {ticket.ticket_number} deleted",
            extra={"ticket_id": ticket_id, "actor_id": actor.id}
        )
