"""Automation Store - The data-access contract the automation engine consumes

The engine only talks to an AutomationStore. MongoAutomationStore implements
it over the per-collection repositories; tests provide an in-memory one.
"""
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

from pymongo.errors import PyMongoError

from .rule_repo import RuleRepository
from .lead_repo import LeadRepository
from .user_repo import UserRepository
from .run_log_repo import RunLogRepository
from .notification_repo import NotificationRepository
from .follow_up_repo import FollowUpRepository
from ..domain.models import AutomationRule, AutomationRunLog, FollowUp, Lead, Notification, User
from ..domain.errors import StoreError


class AutomationStore(Protocol):
    """Entity, rule and ledger store used by the automation engine"""

    def list_active_rules(self) -> List[AutomationRule]: ...

    def list_all_leads(self) -> List[Lead]: ...

    def find_run_log(self, rule_id: str, lead_id: str) -> Optional[AutomationRunLog]: ...

    def create_run_log(self, entry: AutomationRunLog) -> AutomationRunLog:
        """Insert if absent; raises AlreadyExistsError when the pair has an entry"""
        ...

    def get_user(self, user_id: str) -> Optional[User]: ...

    def create_notification(self, notification: Notification) -> Notification: ...

    def create_follow_up(self, follow_up: FollowUp) -> FollowUp: ...


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Surface driver failures as StoreError"""
    try:
        yield
    except PyMongoError as e:
        raise StoreError(
            f"{operation} failed: {e}",
            details={"operation": operation, "error_type": type(e).__name__}
        ) from e


class MongoAutomationStore:
    """AutomationStore backed by MongoDB repositories"""

    def __init__(
        self,
        rule_repo: Optional[RuleRepository] = None,
        lead_repo: Optional[LeadRepository] = None,
        user_repo: Optional[UserRepository] = None,
        run_log_repo: Optional[RunLogRepository] = None,
        notification_repo: Optional[NotificationRepository] = None,
        follow_up_repo: Optional[FollowUpRepository] = None,
    ):
        self.rule_repo = rule_repo or RuleRepository()
        self.lead_repo = lead_repo or LeadRepository()
        self.user_repo = user_repo or UserRepository()
        self.run_log_repo = run_log_repo or RunLogRepository()
        self.notification_repo = notification_repo or NotificationRepository()
        self.follow_up_repo = follow_up_repo or FollowUpRepository()

    def list_active_rules(self) -> List[AutomationRule]:
        with _translate_errors("list_active_rules"):
            return self.rule_repo.list_active_rules()

    def list_all_leads(self) -> List[Lead]:
        with _translate_errors("list_all_leads"):
            return self.lead_repo.list_all_leads()

    def find_run_log(self, rule_id: str, lead_id: str) -> Optional[AutomationRunLog]:
        with _translate_errors("find_run_log"):
            return self.run_log_repo.find_run_log(rule_id, lead_id)

    def create_run_log(self, entry: AutomationRunLog) -> AutomationRunLog:
        with _translate_errors("create_run_log"):
            return self.run_log_repo.create_run_log(entry)

    def get_user(self, user_id: str) -> Optional[User]:
        with _translate_errors("get_user"):
            return self.user_repo.get_user(user_id)

    def create_notification(self, notification: Notification) -> Notification:
        with _translate_errors("create_notification"):
            return self.notification_repo.create_notification(notification)

    def create_follow_up(self, follow_up: FollowUp) -> FollowUp:
        with _translate_errors("create_follow_up"):
            return self.follow_up_repo.create_follow_up(follow_up)
