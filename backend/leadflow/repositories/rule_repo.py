"""Automation Rule Repository - Read access to rule configuration"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, RULES_COLLECTION
from ..domain.models import AutomationRule
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RuleRepository:
    """Repository for automation rules (created and edited by CRM surfaces)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._rules: Collection = collection if collection is not None else get_collection(RULES_COLLECTION)

    def list_active_rules(self) -> List[AutomationRule]:
        """Get all rules with is_active = true, oldest first"""
        cursor = self._rules.find({"is_active": True}).sort("created_at", ASCENDING)

        rules = []
        for doc in cursor:
            doc.pop("_id", None)
            rules.append(AutomationRule.model_validate(doc))
        return rules

    def create_rule(self, rule: AutomationRule) -> AutomationRule:
        """Insert a rule (used by seeding)"""
        doc = rule.model_dump(mode="json")
        doc["_id"] = rule.rule_id
        self._rules.insert_one(doc)
        logger.info(f"Created automation rule: {rule.name}", extra={"rule_id": rule.rule_id})
        return rule
