"""
Pytest Configuration and Fixtures

Shared fixtures for the automation engine tests. The engine runs against an
in-memory AutomationStore, so no MongoDB is needed.
"""
import os

# Keep test runs off the filesystem and away from a real database
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("AUTOMATION_ENABLED", "false")

import threading
from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional, Tuple

import pytest

from leadflow.domain.errors import AlreadyExistsError
from leadflow.domain.models import (
    AutomationRule, AutomationRunLog, FollowUp, Lead, Notification, User
)
from leadflow.utils.time import fixed_clock


NOW = datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)


class InMemoryAutomationStore:
    """AutomationStore over plain lists; the ledger rejects duplicate pairs"""

    def __init__(self):
        self.rules: List[AutomationRule] = []
        self.leads: List[Lead] = []
        self.users: Dict[str, User] = {}
        self.run_logs: Dict[Tuple[str, str], AutomationRunLog] = {}
        self.notifications: List[Notification] = []
        self.follow_ups: List[FollowUp] = []
        self._lock = threading.Lock()

    def list_active_rules(self) -> List[AutomationRule]:
        return [rule for rule in self.rules if rule.is_active]

    def list_all_leads(self) -> List[Lead]:
        return list(self.leads)

    def find_run_log(self, rule_id: str, lead_id: str) -> Optional[AutomationRunLog]:
        return self.run_logs.get((rule_id, lead_id))

    def create_run_log(self, entry: AutomationRunLog) -> AutomationRunLog:
        with self._lock:
            key = (entry.rule_id, entry.lead_id)
            if key in self.run_logs:
                raise AlreadyExistsError(f"Run log already exists for {key}")
            self.run_logs[key] = entry
        return entry

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def create_notification(self, notification: Notification) -> Notification:
        with self._lock:
            self.notifications.append(notification)
        return notification

    def create_follow_up(self, follow_up: FollowUp) -> FollowUp:
        with self._lock:
            self.follow_ups.append(follow_up)
        return follow_up

    def add_user(self, user: User) -> User:
        self.users[user.user_id] = user
        return user


_ids = count(1)


def make_lead(**overrides) -> Lead:
    """Lead with sensible defaults, created a week before NOW"""
    n = next(_ids)
    data = {
        "lead_id": f"LEAD-{n}",
        "name": f"Lead {n}",
        "mobile": "+91 98765-43210",
        "created_at": datetime(2025, 12, 29, 9, 0, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Lead(**data)


def make_rule(trigger: str, action: str, **overrides) -> AutomationRule:
    n = next(_ids)
    data = {
        "rule_id": f"RULE-{n}",
        "name": f"Rule {n}",
        "trigger": trigger,
        "action": action,
        "created_at": datetime(2025, 12, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return AutomationRule(**data)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def store() -> InMemoryAutomationStore:
    return InMemoryAutomationStore()


@pytest.fixture
def owner(store) -> User:
    return store.add_user(User(user_id="USR-owner", name="Priya", email="priya@example.com"))
