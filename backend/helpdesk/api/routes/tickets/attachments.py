"""
Ticket Attachment Routes

Attachment metadata registration (file already in the blob store),
direct multipart upload and streamed download of stored files.
"""

import mimetypes
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from ...deps import get_current_profile_dep, get_correlation_id_dep, get_attachment_service
from ....domain.models import AttachmentWithUploader, Profile
from ....services.attachment_service import AttachmentService
from .schemas import ActionResponse, RegisterAttachmentRequest

router = APIRouter()


@router.get("/{ticket_id}/attachments", response_model=List[AttachmentWithUploader])
async def list_attachments(
    ticket_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Attachments of a ticket, newest first"""
    return service.list_attachments(ticket_id, actor)


@router.post("/{ticket_id}/attachments", response_model=AttachmentWithUploader, status_code=status.HTTP_201_CREATED)
async def register_attachment(
    ticket_id: str,
    request: RegisterAttachmentRequest,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Record an attachment whose file was uploaded out of band"""
    return service.register_attachment(
        ticket_id,
        file_name=request.file_name,
        file_url=request.file_url,
        file_size=request.file_size,
        actor=actor
    )


@router.post("/{ticket_id}/attachments/upload", response_model=AttachmentWithUploader, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    ticket_id: str,
    file: UploadFile = File(...),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Upload a file and attach it to the ticket"""
    content = await file.read()
    return service.upload_attachment(ticket_id, file.filename, content, actor)


@router.delete("/{ticket_id}/attachments", response_model=ActionResponse)
async def delete_attachment(
    ticket_id: str,
    attachment_id: Optional[str] = Query(None, alias="attachmentId"),
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Delete an attachment (admin only)"""
    service.delete_attachment(ticket_id, attachment_id, actor)
    return ActionResponse(success=True, message="Attachment deleted successfully")


@router.get("/{ticket_id}/attachments/{attachment_id}/download")
async def download_attachment(
    ticket_id: str,
    attachment_id: str,
    actor: Profile = Depends(get_current_profile_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Stream a stored attachment file"""
    attachment, chunks = service.open_attachment(ticket_id, attachment_id, actor)
    media_type = mimetypes.guess_type(attachment.file_name)[0] or "application/octet-stream"
    return StreamingResponse(
        chunks,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(attachment.file_name)}",
        },
    )
