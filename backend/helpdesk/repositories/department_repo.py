"""Department Repository - Data access for departments"""
from typing import Any, Dict, List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, to_document, CASE_INSENSITIVE
from ..domain.models import Department
from ..domain.errors import DepartmentNotFoundError, DuplicateDepartmentError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DepartmentRepository:
    """Repository for department operations"""

    def __init__(self):
        self._departments: Collection = get_collection("departments")

    def create_department(self, department: Department) -> Department:
        """Create a department; names are unique ignoring case"""
        try:
            self._departments.insert_one(to_document(department))
        except DuplicateKeyError:
            raise DuplicateDepartmentError(
                "A department with this name already exists",
                details={"name": department.name}
            )

        logger.info(
            f"Created department: {department.name}",
            extra={"department_id": department.id}
        )
        return department

    def get_department(self, department_id: str) -> Optional[Department]:
        """Get department by ID"""
        doc = self._departments.find_one({"id": department_id})
        if doc:
            doc.pop("_id", None)
            return Department.model_validate(doc)
        return None

    def get_department_or_raise(self, department_id: str) -> Department:
        """Get department by ID or raise error"""
        department = self.get_department(department_id)
        if not department:
            raise DepartmentNotFoundError.for_id(department_id)
        return department

    def list_departments(self) -> List[Department]:
        """List all departments ordered by name"""
        cursor = self._departments.find({}).collation(CASE_INSENSITIVE).sort("name", ASCENDING)

        departments = []
        for doc in cursor:
            doc.pop("_id", None)
            departments.append(Department.model_validate(doc))
        return departments

    def update_department(self, department_id: str, updates: Dict[str, Any]) -> Department:
        """Update department fields"""
        try:
            result = self._departments.find_one_and_update(
                {"id": department_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise DuplicateDepartmentError(
                "A department with this name already exists",
                details={"name": updates.get("name")}
            )

        if result is None:
            raise DepartmentNotFoundError.for_id(department_id)

        result.pop("_id", None)
        logger.info(f"Updated department: {department_id}", extra={"department_id": department_id})
        return Department.model_validate(result)

    def delete_department(
        self,
        department_id: str,
        session: Optional[ClientSession] = None
    ) -> bool:
        """Delete department row"""
        result = self._departments.delete_one({"id": department_id}, session=session)
        if result.deleted_count > 0:
            logger.info(f"Deleted department: {department_id}", extra={"department_id": department_id})
            return True
        return False
