"""Run Log Repository - The automation run ledger

One entry per (rule_id, lead_id) pair, enforced by a unique compound index.
Inserting a second entry for a pair raises AlreadyExistsError, which the
dispatcher treats as "already executed". Entries are never updated or deleted.
"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, RUN_LOGS_COLLECTION
from ..domain.models import AutomationRunLog
from ..domain.errors import AlreadyExistsError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RunLogRepository:
    """Repository for the automation run ledger"""

    def __init__(self, collection: Optional[Collection] = None):
        self._logs: Collection = collection if collection is not None else get_collection(RUN_LOGS_COLLECTION)
        self._ensure_indexes()

    def _ensure_indexes(self):
        """Ensure the pair uniqueness index exists"""
        try:
            self._logs.create_index(
                [("rule_id", ASCENDING), ("lead_id", ASCENDING)],
                unique=True,
                name="rule_lead_unique"
            )
        except Exception as e:
            logger.debug(f"Index creation skipped (may already exist): {e}")

    def find_run_log(self, rule_id: str, lead_id: str) -> Optional[AutomationRunLog]:
        """Get the ledger entry for a (rule, lead) pair, if any"""
        doc = self._logs.find_one({"rule_id": rule_id, "lead_id": lead_id})
        if doc:
            doc.pop("_id", None)
            return AutomationRunLog.model_validate(doc)
        return None

    def create_run_log(self, entry: AutomationRunLog) -> AutomationRunLog:
        """
        Insert a ledger entry if the pair has none.

        Raises:
            AlreadyExistsError: the pair already has an entry
        """
        doc = entry.model_dump(mode="json")
        doc["_id"] = entry.run_log_id

        try:
            self._logs.insert_one(doc)
        except DuplicateKeyError:
            logger.info(
                "Run log already exists for pair",
                extra={"rule_id": entry.rule_id, "lead_id": entry.lead_id}
            )
            raise AlreadyExistsError(
                f"Run log already exists for rule {entry.rule_id} and lead {entry.lead_id}",
                details={"rule_id": entry.rule_id, "lead_id": entry.lead_id}
            )

        logger.debug(
            f"Created run log: {entry.action_type.value} {entry.action_result.value}",
            extra={"rule_id": entry.rule_id, "lead_id": entry.lead_id}
        )
        return entry

    def list_run_logs(
        self,
        rule_id: Optional[str] = None,
        lead_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[AutomationRunLog]:
        """Get ledger entries, newest first"""
        query: Dict[str, Any] = {}
        if rule_id:
            query["rule_id"] = rule_id
        if lead_id:
            query["lead_id"] = lead_id

        cursor = self._logs.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)

        logs = []
        for doc in cursor:
            doc.pop("_id", None)
            logs.append(AutomationRunLog.model_validate(doc))
        return logs
