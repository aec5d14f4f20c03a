"""Profile Repository - Data access for caller profiles"""
from typing import Any, Dict, Iterable, List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument

from .mongo_client import get_collection, to_document
from ..domain.models import Profile
from ..domain.enums import UserRole
from ..domain.errors import ProfileNotFoundError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ProfileRepository:
    """Repository for profile operations"""

    def __init__(self):
        self._profiles: Collection = get_collection("profiles")

    def create_profile(self, profile: Profile) -> Profile:
        """Create a profile (normally done alongside identity registration)"""
        self._profiles.insert_one(to_document(profile))
        logger.info(f"Created profile: {profile.id}", extra={"actor_id": profile.id})
        return profile

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Get profile by ID"""
        doc = self._profiles.find_one({"id": profile_id})
        if doc:
            doc.pop("_id", None)
            return Profile.model_validate(doc)
        return None

    def get_profile_or_raise(self, profile_id: str) -> Profile:
        """Get profile by ID or raise error"""
        profile = self.get_profile(profile_id)
        if not profile:
            raise ProfileNotFoundError.for_id(profile_id)
        return profile

    def get_profiles_by_ids(self, profile_ids: Iterable[str]) -> Dict[str, Profile]:
        """Get several profiles keyed by id"""
        ids = [pid for pid in set(profile_ids) if pid]
        if not ids:
            return {}

        profiles = {}
        for doc in self._profiles.find({"id": {"$in": ids}}):
            doc.pop("_id", None)
            profile = Profile.model_validate(doc)
            profiles[profile.id] = profile
        return profiles

    def list_profiles(
        self,
        department_id: Optional[str] = None,
        role: Optional[UserRole] = None
    ) -> List[Profile]:
        """List profiles, optionally filtered"""
        query: Dict[str, Any] = {}
        if department_id:
            query["department_id"] = department_id
        if role:
            query["role"] = role.value

        profiles = []
        for doc in self._profiles.find(query).sort("full_name", ASCENDING):
            doc.pop("_id", None)
            profiles.append(Profile.model_validate(doc))
        return profiles

    def update_profile(self, profile_id: str, updates: Dict[str, Any]) -> Profile:
        """Update profile fields"""
        updates["updated_at"] = utc_now()
        result = self._profiles.find_one_and_update(
            {"id": profile_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise ProfileNotFoundError.for_id(profile_id)

        result.pop("_id", None)
        logger.info(f"Updated profile: {profile_id}", extra={"actor_id": profile_id})
        return Profile.model_validate(result)

    def detach_department(
        self,
        department_id: str,
        session: Optional[ClientSession] = None
    ) -> int:
        """Clear department_id on every profile pointing at the department"""
        result = self._profiles.update_many(
            {"department_id": department_id},
            {"$set": {"department_id": None, "updated_at": utc_now()}},
            session=session
        )
        return result.modified_count

    def count_profiles(self, department_id: Optional[str] = None) -> int:
        """Count profiles, optionally within a department"""
        query = {"department_id": department_id} if department_id else {}
        return self._profiles.count_documents(query)
