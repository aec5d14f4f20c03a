"""
Error hierarchy for the helpdesk service.

Every error the services raise is a DomainError. The API layer turns it into
``{"error": message, "code": error_code[, "details": {...}]}`` with the class's
``http_status``; anything else becomes a 500.
"""
from typing import Any, ClassVar, Dict, Optional


class DomainError(Exception):
    error_code: ClassVar[str] = "DOMAIN_ERROR"
    http_status: ClassVar[int] = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code}: {self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


# --- 401 / 403 ---------------------------------------------------------------

class AuthenticationError(DomainError):
    """Missing, malformed or expired bearer token, or no profile behind it"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class AuthorizationError(DomainError):
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Caller is neither admin, creator, assignee nor in the ticket's department"""
    error_code = "PERMISSION_DENIED"


class AdminRequiredError(PermissionDeniedError):
    error_code = "ADMIN_REQUIRED"


# --- 400 ---------------------------------------------------------------------

class ValidationError(DomainError):
    error_code = "VALIDATION_ERROR"
    http_status = 400


class NothingToUpdateError(ValidationError):
    error_code = "NOTHING_TO_UPDATE"


# --- 404 ---------------------------------------------------------------------

class NotFoundError(DomainError):
    error_code = "NOT_FOUND"
    http_status = 404
    entity: ClassVar[str] = "Resource"

    @classmethod
    def for_id(cls, entity_id: str) -> "NotFoundError":
        return cls(f"{cls.entity} {entity_id} not found", details={"id": entity_id})


class TicketNotFoundError(NotFoundError):
    error_code = "TICKET_NOT_FOUND"
    entity = "Ticket"


class DepartmentNotFoundError(NotFoundError):
    error_code = "DEPARTMENT_NOT_FOUND"
    entity = "Department"


class ProfileNotFoundError(NotFoundError):
    error_code = "PROFILE_NOT_FOUND"
    entity = "Profile"


class CommentNotFoundError(NotFoundError):
    error_code = "COMMENT_NOT_FOUND"
    entity = "Comment"


class AttachmentNotFoundError(NotFoundError):
    error_code = "ATTACHMENT_NOT_FOUND"
    entity = "Attachment"


class SlaRuleNotFoundError(NotFoundError):
    error_code = "SLA_RULE_NOT_FOUND"
    entity = "SLA rule"


# --- 409, and the name/in-use conflicts answered with 400 --------------------

class ConflictError(DomainError):
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """The ticket changed since the version the caller read"""
    error_code = "CONCURRENCY_CONFLICT"


class DuplicateDepartmentError(ConflictError):
    error_code = "DUPLICATE_DEPARTMENT"
    http_status = 400


class DepartmentInUseError(ConflictError):
    """Tickets still reference the department; details carry ticket_count"""
    error_code = "DEPARTMENT_IN_USE"
    http_status = 400


# --- upstream failures -------------------------------------------------------

class ExternalServiceError(DomainError):
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class OpenAIError(ExternalServiceError):
    """Routing advisor call failed or timed out"""
    error_code = "OPENAI_ERROR"


class BlobStoreError(ExternalServiceError):
    error_code = "BLOB_STORE_ERROR"


class AttachmentError(DomainError):
    error_code = "ATTACHMENT_ERROR"


class AttachmentTooLargeError(AttachmentError):
    error_code = "ATTACHMENT_TOO_LARGE"
    http_status = 413
