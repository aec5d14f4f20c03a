"""Attachment metadata (ticket_attachments). File bytes live in the blob store."""
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.client_session import ClientSession
from pymongo.collection import Collection

from ..domain.errors import AttachmentNotFoundError
from ..domain.models import Attachment
from ..utils.logger import get_logger
from .mongo_client import get_collection, to_document

logger = get_logger(__name__)

NO_MONGO_ID = {"_id": 0}


class AttachmentRepository:

    def __init__(self):
        self._col: Collection = get_collection("ticket_attachments")

    def create_attachment(self, attachment: Attachment) -> Attachment:
        self._col.insert_one(to_document(attachment))
        logger.info(
            f"Attachment {attachment.file_name} stored as {attachment.id}",
            extra={"attachment_id": attachment.id, "ticket_id": attachment.ticket_id}
        )
        return attachment

    def get_attachment(self, attachment_id: str) -> Optional[Attachment]:
        doc = self._col.find_one({"id": attachment_id}, NO_MONGO_ID)
        return Attachment.model_validate(doc) if doc else None

    def get_attachment_or_raise(self, attachment_id: str) -> Attachment:
        attachment = self.get_attachment(attachment_id)
        if attachment is None:
            raise AttachmentNotFoundError.for_id(attachment_id)
        return attachment

    def get_attachments_for_ticket(self, ticket_id: str) -> List[Attachment]:
        """Newest first"""
        cursor = self._col.find({"ticket_id": ticket_id}, NO_MONGO_ID).sort("created_at", DESCENDING)
        return [Attachment.model_validate(doc) for doc in cursor]

    def delete_attachment(self, attachment_id: str) -> bool:
        deleted = self._col.delete_one({"id": attachment_id}).deleted_count > 0
        if deleted:
            logger.info(f"Attachment {attachment_id} removed", extra={"attachment_id": attachment_id})
        return deleted

    def delete_for_ticket(self, ticket_id: str, session: Optional[ClientSession] = None) -> int:
        return self._col.delete_many({"ticket_id": ticket_id}, session=session).deleted_count
