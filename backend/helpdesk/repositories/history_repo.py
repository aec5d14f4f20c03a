"""History Repository - Data access for ticket history (append-only)"""
from typing import List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection, to_document
from ..domain.models import HistoryEntry
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HistoryRepository:
    """Repository for history entries. No update operation exists on purpose."""

    def __init__(self):
        self._history: Collection = get_collection("ticket_history")

    def create_entries(
        self,
        entries: List[HistoryEntry],
        session: Optional[ClientSession] = None
    ) -> List[HistoryEntry]:
        """Append history entries"""
        if not entries:
            return []

        self._history.insert_many([to_document(entry) for entry in entries], session=session)
        logger.info(
            f"Created {len(entries)} history entries",
            extra={"ticket_id": entries[0].ticket_id}
        )
        return entries

    def get_history_for_ticket(
        self,
        ticket_id: str,
        skip: int = 0,
        limit: int = 200
    ) -> List[HistoryEntry]:
        """Get history for a ticket, newest first"""
        cursor = self._history.find({"ticket_id": ticket_id}).sort("created_at", DESCENDING).skip(skip).limit(limit)

        entries = []
        for doc in cursor:
            doc.pop("_id", None)
            entries.append(HistoryEntry.model_validate(doc))
        return entries

    def delete_for_ticket(self, ticket_id: str, session: Optional[ClientSession] = None) -> int:
        """Delete history of a ticket (only as part of deleting the ticket)"""
        result = self._history.delete_many({"ticket_id": ticket_id}, session=session)
        return result.deleted_count

    def count_for_ticket(self, ticket_id: str) -> int:
        """Count history entries for a ticket"""
        return self._history.count_documents({"ticket_id": ticket_id})
