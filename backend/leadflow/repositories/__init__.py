"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .rule_repo import RuleRepository
from .lead_repo import LeadRepository
from .user_repo import UserRepository
from .run_log_repo import RunLogRepository
from .notification_repo import NotificationRepository
from .follow_up_repo import FollowUpRepository
from .store import AutomationStore, MongoAutomationStore

__all__ = [
    "get_database",
    "get_collection",
    "RuleRepository",
    "LeadRepository",
    "UserRepository",
    "RunLogRepository",
    "NotificationRepository",
    "FollowUpRepository",
    "AutomationStore",
    "MongoAutomationStore",
]
