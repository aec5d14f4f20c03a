"""Attachment Service - Attachment metadata and file storage"""
from typing import Iterator, List, Optional, Tuple

from ..domain.models import Attachment, AttachmentWithUploader, Profile, ProfileRef
from ..domain.errors import (
    AttachmentNotFoundError, AttachmentTooLargeError, BlobStoreError, ValidationError
)
from ..repositories.attachment_repo import AttachmentRepository
from ..repositories.ticket_repo import TicketRepository
from ..repositories.profile_repo import ProfileRepository
from ..config.settings import settings
from ..engine.permission_guard import PermissionGuard
from ..utils.idgen import generate_attachment_id
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .blob_store import LocalBlobStore, get_blob_store

logger = get_logger(__name__)


class AttachmentService:
    """Service for attachment operations"""

    def __init__(
        self,
        attachment_repo: Optional[AttachmentRepository] = None,
        ticket_repo: Optional[TicketRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
        blob_store: Optional[LocalBlobStore] = None
    ):
        self.attachment_repo = attachment_repo or AttachmentRepository()
        self.ticket_repo = ticket_repo or TicketRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.blob_store = blob_store or get_blob_store()
        self.guard = PermissionGuard()

    def _with_uploaders(self, attachments: List[Attachment]) -> List[AttachmentWithUploader]:
        profiles = self.profile_repo.get_profiles_by_ids(a.uploaded_by for a in attachments)
        result = []
        for attachment in attachments:
            uploader = profiles.get(attachment.uploaded_by)
            result.append(AttachmentWithUploader(
                **attachment.model_dump(),
                uploader=ProfileRef.model_validate(uploader.model_dump()) if uploader else None,
            ))
        return result

    def list_attachments(self, ticket_id: str, actor: Profile) -> List[AttachmentWithUploader]:
        """Attachments of a ticket, newest first, with their uploaders"""
        self.guard.require_can_view(actor, self.ticket_repo.get_ticket_or_raise(ticket_id))
        return self._with_uploaders(self.attachment_repo.get_attachments_for_ticket(ticket_id))

    def register_attachment(
        self,
        ticket_id: str,
        file_name: str,
        file_url: str,
        file_size: int,
        actor: Profile
    ) -> AttachmentWithUploader:
        """
        Record metadata for a file already uploaded to the blob store.

        Requires edit rights on the ticket.
        """
        if not file_name or not file_name.strip():
            raise ValidationError("file_name is required", details={"field": "file_name"})
        if not file_url or not file_url.strip():
            raise ValidationError("file_url is required", details={"field": "file_url"})
        if file_size is None or file_size <= 0:
            raise ValidationError("file_size must be greater than zero", details={"field": "file_size"})
        if file_size > settings.attachments_max_bytes:
            raise AttachmentTooLargeError(
                f"File exceeds maximum size of {settings.attachments_max_mb}MB",
                details={"size_bytes": file_size, "max_bytes": settings.attachments_max_bytes}
            )

        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_mutate(actor, ticket)

        attachment = Attachment(
            id=generate_attachment_id(),
            ticket_id=ticket_id,
            file_name=file_name.strip(),
            file_url=file_url.strip(),
            file_size=file_size,
            uploaded_by=actor.id,
            created_at=utc_now(),
        )
        self.attachment_repo.create_attachment(attachment)
        return self._with_uploaders([attachment])[0]

    def upload_attachment(
        self,
        ticket_id: str,
        file_name: Optional[str],
        content: bytes,
        actor: Profile
    ) -> AttachmentWithUploader:
        """Store file bytes in the blob store, then record the attachment"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        self.guard.require_can_mutate(actor, ticket)

        file_size = len(content)
        if file_size == 0:
            raise ValidationError("File is empty", details={"field": "file"})
        if file_size > settings.attachments_max_bytes:
            raise AttachmentTooLargeError(
                f"File exceeds maximum size of {settings.attachments_max_mb}MB",
                details={"size_bytes": file_size, "max_bytes": settings.attachments_max_bytes}
            )

        original_name = file_name or "unnamed"
        attachment_id = generate_attachment_id()
        path = f"{ticket_id}/{attachment_id}_{self.blob_store.sanitize_filename(original_name)}"
        file_url = self.blob_store.upload(path, content)

        try:
            return self.register_attachment(ticket_id, original_name, file_url, file_size, actor)
        except Exception:
            try:
                self.blob_store.remove(path)
            except BlobStoreError as e:
                logger.warning(f"Failed to clean up stored file {path}: {e}")
            raise

    def delete_attachment(self, ticket_id: str, attachment_id: Optional[str], actor: Profile) -> None:
        """
        Delete an attachment (admin only).

        The stored file is removed first on a best-effort basis; the metadata
        row is deleted even if the file could not be removed.
        """
        if not attachment_id:
            raise ValidationError("attachmentId is required", details={"field": "attachmentId"})
        self.guard.require_admin(actor, "delete attachments")

        attachment = self.attachment_repo.get_attachment_or_raise(attachment_id)
        if attachment.ticket_id != ticket_id:
            raise AttachmentNotFoundError(
                f"Attachment {attachment_id} not found on ticket {ticket_id}",
                details={"id": attachment_id, "ticket_id": ticket_id},
            )

        path = self.blob_store.owned_path(attachment.file_url, ticket_id)
        if path:
            try:
                self.blob_store.remove(path)
            except Exception as e:
                logger.warning(
                    f"Failed to remove stored file for attachment {attachment_id}: {e}",
                    extra={"attachment_id": attachment_id, "ticket_id": ticket_id}
                )

        self.attachment_repo.delete_attachment(attachment_id)
        logger.info(
            f"Attachment {attachment_id} deleted",
            extra={"attachment_id": attachment_id, "ticket_id": ticket_id, "actor_id": actor.id}
        )

    def open_attachment(
        self, ticket_id: str, attachment_id: str, actor: Profile
    ) -> Tuple[Attachment, Iterator[bytes]]:
        """
        Attachment metadata and a chunk iterator over its stored file.

        Only files this service stored for the ticket can be streamed; an
        attachment registered with an outside URL is fetched from that URL.
        """
        self.guard.require_can_view(actor, self.ticket_repo.get_ticket_or_raise(ticket_id))
        attachment = self.attachment_repo.get_attachment_or_raise(attachment_id)
        if attachment.ticket_id != ticket_id:
            raise AttachmentNotFoundError(
                f"Attachment {attachment_id} not found on ticket {ticket_id}",
                details={"id": attachment_id, "ticket_id": ticket_id},
            )

        path = self.blob_store.owned_path(attachment.file_url, ticket_id)
        if path is None:
            raise AttachmentNotFoundError(
                f"Attachment {attachment_id} is not stored by this service",
                details={"id": attachment_id, "file_url": attachment.file_url},
            )
        try:
            chunks = self.blob_store.iter_chunks(path)
        except BlobStoreError as e:
            logger.error(
                f"Stored file for attachment {attachment_id} is missing: {e}",
                extra={"attachment_id": attachment_id, "ticket_id": ticket_id}
            )
            raise AttachmentNotFoundError(
                f"File for attachment {attachment_id} is missing", details={"id": attachment_id}
            )
        return attachment, chunks
