"""Notification Repository - In-app notifications raised by automations"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, NOTIFICATIONS_COLLECTION
from ..domain.models import Notification
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for in-app notifications"""

    def __init__(self, collection: Optional[Collection] = None):
        self._collection: Collection = (
            collection if collection is not None else get_collection(NOTIFICATIONS_COLLECTION)
        )

    def create_notification(self, notification: Notification) -> Notification:
        """Create a notification"""
        doc = notification.model_dump(mode="json")
        doc["_id"] = notification.notification_id

        self._collection.insert_one(doc)

        logger.info(
            f"Created {notification.type.value} notification for {notification.user_id}",
            extra={"user_id": notification.user_id}
        )
        return notification
