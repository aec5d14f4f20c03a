"""Profile Service - Own profile and admin user management"""
from typing import List, Optional

from ..domain.models import Profile
from ..domain.enums import UserRole
from ..domain.errors import AuthenticationError, ValidationError
from ..repositories.profile_repo import ProfileRepository
from ..repositories.department_repo import DepartmentRepository
from ..engine.permission_guard import PermissionGuard
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Marker for "field not supplied" where None is a meaningful value
UNSET = object()


class ProfileService:
    """Service for profile operations"""

    def __init__(
        self,
        profile_repo: Optional[ProfileRepository] = None,
        department_repo: Optional[DepartmentRepository] = None
    ):
        self.profile_repo = profile_repo or ProfileRepository()
        self.department_repo = department_repo or DepartmentRepository()
        self.guard = PermissionGuard()

    def resolve_caller(self, user_id: str) -> Profile:
        """Load the profile of an authenticated user id; unknown ids are unauthenticated"""
        profile = self.profile_repo.get_profile(user_id)
        if not profile:
            logger.warning(f"No profile for authenticated user {user_id}")
            raise AuthenticationError("No profile exists for this user")
        return profile

    def update_own_profile(
        self,
        actor: Profile,
        full_name: Optional[str] = None,
        avatar_url=UNSET
    ) -> Profile:
        """Owners may change their display name and avatar only"""
        updates = {}
        if full_name is not None:
            full_name = full_name.strip()
            if not full_name:
                raise ValidationError("full_name cannot be empty", details={"field": "full_name"})
            updates["full_name"] = full_name
        if avatar_url is not UNSET:
            updates["avatar_url"] = avatar_url or None
        if not updates:
            raise ValidationError("Nothing to update")

        return self.profile_repo.update_profile(actor.id, updates)

    def list_users(
        self,
        actor: Profile,
        department_id: Optional[str] = None,
        role: Optional[UserRole] = None
    ) -> List[Profile]:
        """List all profiles (admin only)"""
        self.guard.require_admin(actor, "list users")
        return self.profile_repo.list_profiles(department_id=department_id, role=role)

    def update_user(
        self,
        user_id: str,
        actor: Profile,
        role: Optional[UserRole] = None,
        department_id=UNSET
    ) -> Profile:
        """
        Change a user's role and/or department (admin only).

        ``department_id=None`` detaches the user from their department.
        The change applies to the user's next request.
        """
        self.guard.require_admin(actor, "change user roles or departments")
        self.profile_repo.get_profile_or_raise(user_id)

        updates = {}
        if role is not None:
            updates["role"] = role.value
        if department_id is not UNSET:
            if department_id:
                self._require_department(department_id)
            updates["department_id"] = department_id or None
        if not updates:
            raise ValidationError("Nothing to update")

        profile = self.profile_repo.update_profile(user_id, updates)
        logger.info(
            f"User {user_id} updated by admin",
            extra={"actor_id": actor.id, "department_id": profile.department_id, "fields": sorted(updates)}
        )
        return profile

    def _require_department(self, department_id: str) -> None:
        if not self.department_repo.get_department(department_id):
            raise ValidationError(
                f"Department {department_id} does not exist",
                details={"field": "department_id"}
            )
