"""History Writer - Append-only field change records"""
from typing import Any, Dict, List, Optional
from pymongo.client_session import ClientSession

from ..domain.models import HistoryEntry, Profile, Ticket
from ..repositories.history_repo import HistoryRepository
from ..utils.idgen import generate_history_id
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .state_machine import changed_field_values

logger = get_logger(__name__)


class HistoryWriter:
    """
    Write history entries (append-only)

    Every changed field of a ticket update produces exactly one entry.
    """

    def __init__(self, repo: Optional[HistoryRepository] = None):
        self.repo = repo or HistoryRepository()

    def build_entries(
        self,
        ticket: Ticket,
        changes: Dict[str, Any],
        actor: Profile
    ) -> List[HistoryEntry]:
        """Build one entry per changed field"""
        now = utc_now()
        return [
            HistoryEntry(
                id=generate_history_id(),
                ticket_id=ticket.id,
                changed_by=actor.id,
                field_name=values["field_name"],
                old_value=values["old_value"],
                new_value=values["new_value"],
                created_at=now,
            )
            for values in changed_field_values(ticket, changes)
        ]

    def write_changes(
        self,
        ticket: Ticket,
        changes: Dict[str, Any],
        actor: Profile,
        session: Optional[ClientSession] = None
    ) -> List[HistoryEntry]:
        """Persist entries for a ticket update (raises on store failure)"""
        entries = self.build_entries(ticket, changes, actor)
        return self.repo.create_entries(entries, session=session)

    def write_changes_best_effort(
        self,
        ticket: Ticket,
        changes: Dict[str, Any],
        actor: Profile
    ) -> List[HistoryEntry]:
        """Persist entries after a committed update; failures are logged, not raised"""
        try:
            return self.write_changes(ticket, changes, actor)
        except Exception as e:
            logger.error(
                f"Failed to record history for ticket {ticket.ticket_number}: {e}",
                extra={
                    "ticket_id": ticket.id,
                    "actor_id": actor.id,
                    "field_name": ",".join(changes.keys()),
                }
            )
            return []

    def get_history(self, ticket_id: str, skip: int = 0, limit: int = 200) -> List[HistoryEntry]:
        """Get history entries for a ticket, newest first"""
        return self.repo.get_history_for_ticket(ticket_id, skip=skip, limit=limit)
