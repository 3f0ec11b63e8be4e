"""Follow-Up Repository - Follow-ups scheduled by automations"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, FOLLOW_UPS_COLLECTION
from ..domain.models import FollowUp
from ..utils.logger import get_logger

logger = get_logger(__name__)


class FollowUpRepository:
    """Repository for lead follow-ups"""

    def __init__(self, collection: Optional[Collection] = None):
        self._follow_ups: Collection = (
            collection if collection is not None else get_collection(FOLLOW_UPS_COLLECTION)
        )

    def create_follow_up(self, follow_up: FollowUp) -> FollowUp:
        """Create a follow-up"""
        doc = follow_up.model_dump(mode="json")
        doc["_id"] = follow_up.follow_up_id

        self._follow_ups.insert_one(doc)

        logger.info(
            f"Created follow-up for lead {follow_up.lead_id} at {follow_up.scheduled_at.isoformat()}",
            extra={"lead_id": follow_up.lead_id, "user_id": follow_up.user_id}
        )
        return follow_up
