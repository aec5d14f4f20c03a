"""Tickets collection plus the ticket-number counter"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.collection import Collection

from ..domain.enums import OPEN_STATUSES, TicketStatus
from ..domain.errors import ConcurrencyError, TicketNotFoundError
from ..domain.models import Ticket
from ..utils.idgen import format_ticket_number
from ..utils.logger import get_logger
from ..utils.time import utc_now
from .mongo_client import get_collection, to_document

logger = get_logger(__name__)

SORTABLE_FIELDS = ("created_at", "updated_at", "priority", "status", "ticket_number")
SEARCH_FIELDS = ("title", "ticket_number", "description")
NO_MONGO_ID = {"_id": 0}


def _values(items) -> List[Any]:
    return [getattr(item, "value", item) for item in items]


def build_ticket_query(
    statuses=None,
    priorities=None,
    department_ids=None,
    assigned_to: Optional[str] = None,
    created_by: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Mongo filter for the ticket list. Every given filter must hold; empty or
    missing filters are ignored. ``search`` is a case-insensitive substring
    match on title, number or description.
    """
    clauses: List[Dict[str, Any]] = []

    for field, wanted in (("status", statuses), ("priority", priorities), ("department_id", department_ids)):
        if wanted:
            clauses.append({field: {"$in": _values(wanted)}})
    for field, wanted in (("assigned_to", assigned_to), ("created_by", created_by)):
        if wanted:
            clauses.append({field: wanted})

    if search and search.strip():
        regex = {"$regex": re.escape(search.strip()), "$options": "i"}
        clauses.append({"$or": [{field: regex} for field in SEARCH_FIELDS]})

    created_range = {op: bound for op, bound in (("$gte", date_from), ("$lte", date_to)) if bound}
    if created_range:
        clauses.append({"created_at": created_range})

    if not clauses:
        return {}
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


class TicketRepository:

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")
        self._counters: Collection = get_collection("counters")

    def next_ticket_number(self) -> str:
        """Atomically bump the shared counter; numbers are never reused"""
        counter = self._counters.find_one_and_update(
            {"_id": "ticket_number"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return format_ticket_number(counter["seq"])

    def create_ticket(self, ticket: Ticket) -> Ticket:
        self._tickets.insert_one(to_document(ticket))
        logger.info(
            f"Ticket {ticket.ticket_number} opened",
            extra={"ticket_id": ticket.id, "department_id": ticket.department_id}
        )
        return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        doc = self._tickets.find_one({"id": ticket_id}, NO_MONGO_ID)
        return Ticket.model_validate(doc) if doc else None

    def get_ticket_or_raise(self, ticket_id: str) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError.for_id(ticket_id)
        return ticket

    def update_ticket(
        self,
        ticket_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
        session: Optional[ClientSession] = None
    ) -> Ticket:
        """
        Apply ``updates`` in a single write, stamp updated_at and bump version.

        When ``expected_version`` is given the write only matches that version;
        a miss on an existing ticket raises ConcurrencyError.
        """
        changes = {key: getattr(value, "value", value) for key, value in updates.items()}
        changes["updated_at"] = utc_now()

        match: Dict[str, Any] = {"id": ticket_id}
        if expected_version is not None:
            match["version"] = expected_version

        doc = self._tickets.find_one_and_update(
            match,
            {"$set": changes, "$inc": {"version": 1}},
            projection=NO_MONGO_ID,
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if doc is not None:
            logger.info(
                f"Ticket {ticket_id} updated", extra={"ticket_id": ticket_id, "fields": sorted(updates)}
            )
            return Ticket.model_validate(doc)

        if expected_version is not None and self._tickets.count_documents({"id": ticket_id}, session=session):
            raise ConcurrencyError(
                f"Ticket {ticket_id} was modified. Please refresh and try again.",
                details={"expected_version": expected_version}
            )
        raise TicketNotFoundError.for_id(ticket_id)

    def delete_ticket(self, ticket_id: str, session: Optional[ClientSession] = None) -> bool:
        """Remove the ticket row only; comments, attachments and history are the caller's job"""
        deleted = self._tickets.delete_one({"id": ticket_id}, session=session).deleted_count > 0
        if deleted:
            logger.info(f"Ticket {ticket_id} deleted", extra={"ticket_id": ticket_id})
        return deleted

    def list_tickets(
        self,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 50,
        **filters
    ) -> List[Ticket]:
        """One page of tickets matching ``filters`` (see build_ticket_query)"""
        if sort_by not in SORTABLE_FIELDS:
            sort_by = "created_at"
        direction = ASCENDING if sort_order == "asc" else DESCENDING
        cursor = (
            self._tickets.find(build_ticket_query(**filters), NO_MONGO_ID)
            .sort([(sort_by, direction), ("id", direction)])
            .skip(skip)
            .limit(limit)
        )
        return [Ticket.model_validate(doc) for doc in cursor]

    def count_tickets(self, **filters) -> int:
        return self._tickets.count_documents(build_ticket_query(**filters))

    def count_for_department(self, department_id: str) -> int:
        return self._tickets.count_documents({"department_id": department_id})

    def count_by_status(self) -> Dict[TicketStatus, int]:
        """Every status present in the result, zero when no ticket has it"""
        counts = {status: 0 for status in TicketStatus}
        for row in self._tickets.aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}]):
            try:
                counts[TicketStatus(row["_id"])] = row["count"]
            except ValueError:
                logger.warning(f"Ignoring unknown stored status {row['_id']!r}")
        return counts

    def count_open_by_department(self) -> Dict[str, int]:
        pipeline = [
            {"$match": {"status": {"$in": _values(OPEN_STATUSES)}}},
            {"$group": {"_id": "$department_id", "count": {"$sum": 1}}},
        ]
        return {row["_id"]: row["count"] for row in self._tickets.aggregate(pipeline)}
