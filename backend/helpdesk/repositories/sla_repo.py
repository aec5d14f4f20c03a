"""SLA Rule Repository - Data access for per-department SLA targets"""
from typing import List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING, ReturnDocument

from .mongo_client import get_collection, to_document
from ..domain.models import SlaRule
from ..domain.enums import TicketPriority
from ..domain.errors import SlaRuleNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SlaRuleRepository:
    """Repository for SLA rules, one per (department, priority)"""

    def __init__(self):
        self._rules: Collection = get_collection("sla_rules")

    def list_rules(self, department_id: Optional[str] = None) -> List[SlaRule]:
        """List rules, optionally for one department"""
        query = {"department_id": department_id} if department_id else {}
        cursor = self._rules.find(query).sort([("department_id", ASCENDING), ("priority", ASCENDING)])

        rules = []
        for doc in cursor:
            doc.pop("_id", None)
            rules.append(SlaRule.model_validate(doc))
        return rules

    def get_rule(self, department_id: str, priority: TicketPriority) -> Optional[SlaRule]:
        """Get the rule for a department and priority"""
        doc = self._rules.find_one({"department_id": department_id, "priority": priority.value})
        if doc:
            doc.pop("_id", None)
            return SlaRule.model_validate(doc)
        return None

    def upsert_rule(self, rule: SlaRule) -> SlaRule:
        """Create or replace the rule for (department, priority), keeping its id"""
        doc = to_document(rule)
        doc.pop("_id", None)
        identity = {"id": doc.pop("id")}
        result = self._rules.find_one_and_update(
            {"department_id": rule.department_id, "priority": rule.priority.value},
            {"$set": doc, "$setOnInsert": {"_id": identity["id"], **identity}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        result.pop("_id", None)
        logger.info(
            f"Saved SLA rule for {rule.department_id}/{rule.priority.value}",
            extra={"department_id": rule.department_id}
        )
        return SlaRule.model_validate(result)

    def delete_rule(self, rule_id: str) -> None:
        """Delete a rule by id"""
        result = self._rules.delete_one({"id": rule_id})
        if result.deleted_count == 0:
            raise SlaRuleNotFoundError.for_id(rule_id)

    def delete_for_department(
        self,
        department_id: str,
        session: Optional[ClientSession] = None
    ) -> int:
        """Delete every rule of a department"""
        result = self._rules.delete_many({"department_id": department_id}, session=session)
        return result.deleted_count
